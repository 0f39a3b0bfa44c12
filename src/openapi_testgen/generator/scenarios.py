"""Rule-based scenario builder: one happy path plus negative and edge cases."""

import re
from typing import Any

from openapi_testgen.generator.model import (
    ExpectedResponse,
    GeneratorConfig,
    TestRequest,
    TestScenario,
    TestType,
)
from openapi_testgen.generator.synthesizer import build_response_assertions
from openapi_testgen.parser.base import EndpointInfo, FieldType, ParameterInfo, SchemaField
from openapi_testgen.parser.visitor import stringify

# Only the first few top-level body fields get constraint scenarios
MAX_CONSTRAINT_FIELDS = 5

INVALID_ENUM_VALUE = "INVALID_ENUM_VALUE"
FILLER = "x"

SAMPLE_FORMATS = {
    "uuid": "550e8400-e29b-41d4-a716-446655440000",
    "email": "test@example.com",
    "date": "2024-01-01",
    "date-time": "2024-01-01T00:00:00Z",
    "uri": "https://example.com",
    "url": "https://example.com",
}

NOT_FOUND_UUID = "00000000-0000-0000-0000-000000000000"
NOT_FOUND_INTEGER = 999999999
NOT_FOUND_STRING = "nonexistent"

_MISSING = object()


# -- naming -------------------------------------------------------------------


def to_snake_case(value: str) -> str:
    value = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", value)
    value = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", value)
    return sanitize_name(value)


def sanitize_name(value: str) -> str:
    value = re.sub(r"[^a-z0-9_]", "_", value.lower())
    return re.sub(r"_+", "_", value).strip("_")


def scenario_base_name(endpoint: EndpointInfo) -> str:
    """``test_<operation_id>``, or ``test_<method>_<path parts>``."""
    if endpoint.operation_id and to_snake_case(endpoint.operation_id):
        return f"test_{to_snake_case(endpoint.operation_id)}"

    path = re.sub(r"\{([^}]+)\}", r"by_\1", endpoint.path)
    parts = [to_snake_case(p) for p in path.split("/") if p]
    suffix = "_".join(p for p in parts if p)
    method = endpoint.method.value.lower()
    return f"test_{method}_{suffix}" if suffix else f"test_{method}"


def dedupe_names(scenarios: list[TestScenario], taken: set[str] | None = None) -> list[TestScenario]:
    """Suffix ``_2``, ``_3``... onto names already in ``taken`` (which is updated)."""
    taken = taken if taken is not None else set()
    result = []
    for scenario in scenarios:
        name = scenario.name
        counter = 2
        while name in taken:
            name = f"{scenario.name}_{counter}"
            counter += 1
        taken.add(name)
        result.append(scenario if name == scenario.name else scenario.model_copy(update={"name": name}))
    return result


def placeholder(name: str) -> str:
    return "${" + re.sub(r"[^A-Za-z0-9]", "_", name).upper() + "}"


# -- sample values ------------------------------------------------------------


def sample_value(field: SchemaField) -> Any:
    """A plausible valid value for one field."""
    if field.enum_values:
        return field.enum_values[0]

    if field.field_type is FieldType.STRING:
        literal = SAMPLE_FORMATS.get((field.format or "").lower())
        if literal:
            return literal
        value = f"Test {field.name}"
        if field.min_length and len(value) < field.min_length:
            value = value.ljust(field.min_length, FILLER)
        return value
    if field.field_type is FieldType.INTEGER:
        return int(field.minimum) if field.minimum is not None else 1
    if field.field_type is FieldType.NUMBER:
        return float(field.minimum) if field.minimum is not None else 1.0
    if field.field_type is FieldType.BOOLEAN:
        return True
    if field.field_type is FieldType.ARRAY:
        if not isinstance(field.example, list) or not field.example:
            return []
        items = list(field.example)
        while field.min_items and len(items) < field.min_items:
            items.append(items[0])
        return items
    if field.field_type is FieldType.OBJECT:
        return {}
    return None


def param_value(param: ParameterInfo) -> Any:
    if param.example is not None:
        return param.example
    if param.schema_field.enum_values:
        return param.schema_field.enum_values[0]
    return sample_value(param.schema_field)


def not_found_value(param: ParameterInfo) -> Any:
    field = param.schema_field
    if field.field_type is FieldType.INTEGER or field.field_type is FieldType.NUMBER:
        return NOT_FOUND_INTEGER
    if (field.format or "").lower() == "uuid":
        return NOT_FOUND_UUID
    return NOT_FOUND_STRING


def _shift(bound: float, field: SchemaField, delta: int) -> int | float:
    if field.field_type is FieldType.INTEGER or float(bound).is_integer():
        return int(bound) + delta
    return bound + delta


# -- builder ------------------------------------------------------------------


class ScenarioBuilder:
    """Builds the scenarios for one endpoint."""

    def __init__(self, max_constraint_fields: int = MAX_CONSTRAINT_FIELDS):
        self.max_constraint_fields = max_constraint_fields

    def build_scenarios(self, endpoint: EndpointInfo, config: GeneratorConfig) -> list[TestScenario]:
        base_name = scenario_base_name(endpoint)
        label = f"{endpoint.method.value} {endpoint.path}"

        scenarios = [self._positive(endpoint, config, base_name, label)]
        if config.generate_negative_tests:
            scenarios.extend(self._negative(endpoint, config, base_name, label))
        if config.generate_edge_cases:
            scenarios.extend(self._edge(endpoint, config, base_name, label))
        return dedupe_names(scenarios)

    # -- request parts --------------------------------------------------------

    def _path_params(self, endpoint: EndpointInfo, config: GeneratorConfig) -> dict[str, Any]:
        if config.use_placeholders:
            return {p.name: placeholder(p.name) for p in endpoint.path_params}
        return {p.name: sample_value(p.schema_field) for p in endpoint.path_params}

    def _request(
        self,
        endpoint: EndpointInfo,
        config: GeneratorConfig,
        body: Any = _MISSING,
        path_params: dict[str, Any] | None = None,
        skip_auth: bool = False,
    ) -> TestRequest:
        headers = {
            p.name: stringify(param_value(p))
            for p in endpoint.header_params
            if p.required
        }
        form = {}
        for p in endpoint.form_params:
            if not p.required:
                continue
            value = param_value(p)
            if value is not None:
                form[p.name] = value

        if body is _MISSING:
            body = self._body(endpoint) if endpoint.has_request_body else None

        return TestRequest(
            path_params=path_params if path_params is not None else self._path_params(endpoint, config),
            query_params={p.name: param_value(p) for p in endpoint.query_params},
            headers=headers,
            form=form,
            body=body,
            has_body=endpoint.has_request_body,
            skip_auth=skip_auth,
        )

    def _top_level_fields(self, endpoint: EndpointInfo) -> list[SchemaField]:
        return [f for f in endpoint.request_body_fields if f.is_top_level]

    def _body(self, endpoint: EndpointInfo, override: tuple[SchemaField, Any] | None = None, omit: str | None = None) -> dict:
        body: dict[str, Any] = {}
        for field in self._top_level_fields(endpoint):
            if field.required and field.name != omit:
                body[field.name] = self._wrap(field, sample_value(field))
        if override is not None:
            field, value = override
            body[field.name] = self._wrap(field, value)
        return body

    @staticmethod
    def _wrap(field: SchemaField, value: Any) -> Any:
        return [value] if field.is_array_element else value

    # -- scenarios ------------------------------------------------------------

    def _positive(self, endpoint: EndpointInfo, config: GeneratorConfig, base_name: str, label: str) -> TestScenario:
        return TestScenario(
            name=base_name,
            display_name=f"{label} returns {endpoint.success_status}",
            type=TestType.POSITIVE,
            request=self._request(endpoint, config),
            expected=ExpectedResponse(
                status_code=endpoint.success_status,
                assertions=build_response_assertions(endpoint),
            ),
        )

    def _negative(self, endpoint: EndpointInfo, config: GeneratorConfig, base_name: str, label: str) -> list[TestScenario]:
        scenarios = []

        def add(suffix: str, title: str, status: int, **request_kwargs: Any) -> None:
            scenarios.append(
                TestScenario(
                    name=f"{base_name}_{suffix}",
                    display_name=f"{label} - {title}",
                    type=TestType.NEGATIVE,
                    request=self._request(endpoint, config, **request_kwargs),
                    expected=ExpectedResponse(status_code=status),
                )
            )

        if endpoint.path_params:
            add("not_found", "not found", 404, path_params={p.name: not_found_value(p) for p in endpoint.path_params})
        if endpoint.request_body_required:
            add("empty_body", "empty body", 400, body={})
        if endpoint.security:
            add("unauthorized", "without credentials", 401, skip_auth=True)

        for field in self._top_level_fields(endpoint)[: self.max_constraint_fields]:
            key = sanitize_name(field.name)
            if field.enum_values:
                add(f"invalid_enum_{key}", f"invalid {field.name}", 400,
                    body=self._body(endpoint, override=(field, INVALID_ENUM_VALUE)))
            if field.minimum is not None:
                add(f"below_min_{key}", f"{field.name} below minimum", 400,
                    body=self._body(endpoint, override=(field, _shift(field.minimum, field, -1))))
            if field.maximum is not None:
                add(f"above_max_{key}", f"{field.name} above maximum", 400,
                    body=self._body(endpoint, override=(field, _shift(field.maximum, field, 1))))
            if field.min_length:
                add(f"too_short_{key}", f"{field.name} too short", 400,
                    body=self._body(endpoint, override=(field, FILLER * (field.min_length - 1))))
            if field.max_length is not None:
                add(f"too_long_{key}", f"{field.name} too long", 400,
                    body=self._body(endpoint, override=(field, FILLER * (field.max_length + 10))))
            if field.required:
                add(f"missing_{key}", f"missing {field.name}", 400,
                    body=self._body(endpoint, omit=field.name))

        return scenarios

    def _edge(self, endpoint: EndpointInfo, config: GeneratorConfig, base_name: str, label: str) -> list[TestScenario]:
        scenarios = []

        def add(suffix: str, title: str, field: SchemaField, value: Any) -> None:
            scenarios.append(
                TestScenario(
                    name=f"{base_name}_{suffix}",
                    display_name=f"{label} - {title}",
                    type=TestType.EDGE,
                    request=self._request(endpoint, config, body=self._body(endpoint, override=(field, value))),
                    expected=ExpectedResponse(status_code=endpoint.success_status),
                )
            )

        for field in self._top_level_fields(endpoint)[: self.max_constraint_fields]:
            key = sanitize_name(field.name)
            if field.minimum is not None:
                add(f"at_min_{key}", f"{field.name} at minimum", field, _shift(field.minimum, field, 0))
            if field.maximum is not None:
                add(f"at_max_{key}", f"{field.name} at maximum", field, _shift(field.maximum, field, 0))
            if field.min_length:
                add(f"min_length_{key}", f"{field.name} at minimum length", field, FILLER * field.min_length)
            if field.max_length is not None:
                add(f"max_length_{key}", f"{field.name} at maximum length", field, FILLER * field.max_length)

        return scenarios
