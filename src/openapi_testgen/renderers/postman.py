"""Postman Collection v2.1 renderer with pm.test scripts."""

import json
import uuid

from openapi_testgen.generator.model import (
    Assertion,
    EndpointTest,
    GeneratedFile,
    Matcher,
    TestModel,
    TestScenario,
)
from openapi_testgen.parser.base import FieldType
from openapi_testgen.renderers.base import (
    Renderer,
    as_text,
    auth_style,
    body_assertions,
    fill_path,
    group_by_tag,
    needs_auth,
    placeholder_name,
    slugify,
    split_path,
)

SCHEMA_URL = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"

_JS_TYPES = {
    FieldType.STRING: "string",
    FieldType.INTEGER: "number",
    FieldType.NUMBER: "number",
    FieldType.BOOLEAN: "boolean",
    FieldType.ARRAY: "array",
    FieldType.OBJECT: "object",
    FieldType.NULL: "null",
}


def js_accessor(path: str, root: str = "data") -> str:
    result = root
    for token in split_path(path):
        result += f"[{token}]" if isinstance(token, int) else f"[{json.dumps(token)}]"
    return result


def expectation(assertion: Assertion, root: str = "data") -> str:
    """One chai statement checking the assertion."""
    acc = js_accessor(assertion.path, root)
    value = assertion.value
    matcher = Matcher(assertion.matcher)
    literal = json.dumps(value) if matcher is not Matcher.EVERY_ITEM else ""

    if matcher is Matcher.NOT_NULL:
        return f"pm.expect({acc}).to.exist;"
    if matcher is Matcher.IS_NULL:
        return f"pm.expect({acc}).to.be.null;"
    if matcher is Matcher.EQUALS:
        return f"pm.expect({acc}).to.eql({literal});"
    if matcher is Matcher.NOT_EQUALS:
        return f"pm.expect({acc}).to.not.eql({literal});"
    if matcher is Matcher.CONTAINS:
        return f"pm.expect({acc}).to.include({literal});"
    if matcher is Matcher.MATCHES_PATTERN:
        return f"pm.expect(String({acc})).to.match(new RegExp({literal}));"
    if matcher is Matcher.ONE_OF:
        return f"pm.expect(String({acc})).to.be.oneOf({literal});"
    if matcher is Matcher.IS_TYPE:
        js_type = _JS_TYPES.get(FieldType(value))
        if js_type is None:
            return f"pm.expect({acc}).to.exist;"
        return f"pm.expect({acc}).to.be.a({json.dumps(js_type)});"
    if matcher is Matcher.NOT_EMPTY:
        return f"pm.expect({acc}).to.not.be.empty;"
    if matcher is Matcher.IS_EMPTY:
        return f"pm.expect({acc}).to.be.empty;"
    if matcher is Matcher.GREATER_THAN:
        return f"pm.expect({acc}).to.be.above({literal});"
    if matcher is Matcher.GREATER_THAN_OR_EQUAL:
        return f"pm.expect({acc}).to.be.at.least({literal});"
    if matcher is Matcher.LESS_THAN:
        return f"pm.expect({acc}).to.be.below({literal});"
    if matcher is Matcher.LESS_THAN_OR_EQUAL:
        return f"pm.expect({acc}).to.be.at.most({literal});"
    if matcher is Matcher.HAS_SIZE:
        return f"pm.expect({acc}).to.have.lengthOf({literal});"
    if matcher is Matcher.HAS_SIZE_GREATER_THAN:
        return f"pm.expect({acc}.length).to.be.above({literal});"
    if matcher is Matcher.HAS_SIZE_LESS_THAN:
        return f"pm.expect({acc}.length).to.be.below({literal});"
    if matcher is Matcher.HAS_MIN_LENGTH:
        return f"pm.expect({acc}.length).to.be.at.least({literal});"
    if matcher is Matcher.HAS_MAX_LENGTH:
        return f"pm.expect({acc}.length).to.be.at.most({literal});"
    if matcher is Matcher.HAS_KEY:
        return f"pm.expect({acc}).to.have.property({literal});"
    if matcher is Matcher.EVERY_ITEM:
        return f"{acc}.forEach(function (item) {{ {expectation(value, 'item')} }});"
    raise ValueError(f"Unsupported matcher: {matcher}")


def script_lines(scenario: TestScenario) -> list[str]:
    status = scenario.expected.status_code
    lines = [
        f'pm.test("Status code is {status}", function () {{',
        f"    pm.response.to.have.status({status});",
        "});",
    ]
    assertions = body_assertions(scenario)
    if assertions:
        lines.append("")
        lines.append("const data = pm.response.json();")
        for assertion in assertions:
            lines.append(f"pm.test({json.dumps(assertion.description)}, function () {{")
            lines.append(f"    {expectation(assertion)}")
            lines.append("});")
    return lines


class PostmanRenderer(Renderer):
    name = "postman"
    language = "json"

    def render(self, model: TestModel) -> list[GeneratedFile]:
        variables: dict[str, str] = {
            "baseUrl": model.config.base_url,
            "authToken": "",
        }
        folders = []
        for tag, tests in group_by_tag(model).items():
            items = [
                self._render_item(model, test, scenario, variables)
                for test in tests
                for scenario in test.scenarios
            ]
            folders.append({"name": tag, "item": items})

        collection = {
            "info": {
                "_postman_id": str(uuid.uuid5(uuid.NAMESPACE_URL, f"{model.meta.spec_title}/{model.meta.spec_version}")),
                "name": model.meta.spec_title,
                "description": (
                    f"Generated from {model.meta.source} at {model.meta.generated_at} "
                    f"by openapi-testgen {model.meta.generator_version}"
                ),
                "schema": SCHEMA_URL,
            },
            "item": folders,
            "variable": [{"key": key, "value": value} for key, value in variables.items()],
        }
        filename = f"{slugify(model.meta.spec_title)}.postman_collection.json"
        return [self._file(filename, json.dumps(collection, indent=2, ensure_ascii=False) + "\n")]

    def _render_item(self, model: TestModel, test: EndpointTest, scenario: TestScenario, variables: dict[str, str]) -> dict:
        endpoint = test.endpoint
        request = scenario.request

        for value in request.path_params.values():
            variable = placeholder_name(value)
            if variable:
                variables.setdefault(variable, "")

        path = fill_path(endpoint.path, request.path_params)
        segments = [s for s in path.split("/") if s]
        query = [
            {"key": key, "value": as_text(value)}
            for key, value in request.query_params.items()
            if value is not None
        ]
        raw = "{{baseUrl}}/" + "/".join(segments)
        if query:
            raw += "?" + "&".join(f"{q['key']}={q['value']}" for q in query)

        headers = []
        if needs_auth(endpoint, scenario):
            header, prefix = auth_style(model)
            headers.append({"key": header, "value": prefix + "{{authToken}}"})
        headers.extend({"key": key, "value": value} for key, value in request.headers.items())

        body = None
        if request.form:
            body = {
                "mode": "urlencoded",
                "urlencoded": [
                    {"key": key, "value": as_text(value), "type": "text"} for key, value in request.form.items()
                ],
            }
        elif request.has_body and request.body is not None:
            headers.append({"key": "Content-Type", "value": "application/json"})
            body = {
                "mode": "raw",
                "raw": json.dumps(request.body, indent=2, ensure_ascii=False, default=str),
                "options": {"raw": {"language": "json"}},
            }

        http_request: dict = {
            "method": endpoint.method.value,
            "header": headers,
            "url": {
                "raw": raw,
                "host": ["{{baseUrl}}"],
                "path": segments,
            },
        }
        if query:
            http_request["url"]["query"] = query
        if body is not None:
            http_request["body"] = body
        if endpoint.description or endpoint.summary:
            http_request["description"] = endpoint.description or endpoint.summary

        return {
            "name": scenario.display_name,
            "event": [
                {
                    "listen": "test",
                    "script": {"type": "text/javascript", "exec": script_lines(scenario)},
                }
            ],
            "request": http_request,
        }
