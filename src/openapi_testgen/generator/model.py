"""Test model: assertions, scenarios and the generation result types.

Renderers consume a TestModel and nothing else; everything here is plain
data.
"""

import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from openapi_testgen.parser.base import EndpointInfo, FieldType

GENERATOR_VERSION = "0.1.0"


class Matcher(str, Enum):
    NOT_NULL = "not_null"
    IS_NULL = "is_null"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    MATCHES_PATTERN = "matches_pattern"
    ONE_OF = "one_of"
    IS_TYPE = "is_type"
    NOT_EMPTY = "not_empty"
    IS_EMPTY = "is_empty"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    HAS_SIZE = "has_size"
    HAS_SIZE_GREATER_THAN = "has_size_greater_than"
    HAS_SIZE_LESS_THAN = "has_size_less_than"
    HAS_MIN_LENGTH = "has_min_length"
    HAS_MAX_LENGTH = "has_max_length"
    HAS_KEY = "has_key"
    EVERY_ITEM = "every_item"


_DESCRIPTIONS = {
    Matcher.NOT_NULL: "{path} is not null",
    Matcher.IS_NULL: "{path} is null",
    Matcher.EQUALS: "{path} equals {value}",
    Matcher.NOT_EQUALS: "{path} does not equal {value}",
    Matcher.CONTAINS: "{path} contains '{value}'",
    Matcher.MATCHES_PATTERN: "{path} matches {value}",
    Matcher.ONE_OF: "{path} is one of {value}",
    Matcher.IS_TYPE: "{path} is a {value}",
    Matcher.NOT_EMPTY: "{path} is not empty",
    Matcher.IS_EMPTY: "{path} is empty",
    Matcher.GREATER_THAN: "{path} > {value}",
    Matcher.GREATER_THAN_OR_EQUAL: "{path} >= {value}",
    Matcher.LESS_THAN: "{path} < {value}",
    Matcher.LESS_THAN_OR_EQUAL: "{path} <= {value}",
    Matcher.HAS_SIZE: "{path} has size {value}",
    Matcher.HAS_SIZE_GREATER_THAN: "{path} has more than {value} items",
    Matcher.HAS_SIZE_LESS_THAN: "{path} has fewer than {value} items",
    Matcher.HAS_MIN_LENGTH: "{path} has length >= {value}",
    Matcher.HAS_MAX_LENGTH: "{path} has length <= {value}",
    Matcher.HAS_KEY: "{path} has key '{value}'",
    Matcher.EVERY_ITEM: "every item of {path}: {value}",
}


def describe(path: str, matcher: Matcher | str, value: Any = None) -> str:
    matcher = Matcher(matcher)
    if isinstance(value, BaseModel):
        value = getattr(value, "description", value)
    elif isinstance(value, dict):
        value = value.get("description") or Matcher(value.get("matcher", Matcher.NOT_NULL)).name.lower()
    elif isinstance(value, list):
        value = ", ".join(str(v) for v in value)
    elif isinstance(value, Enum):
        value = value.value
    return _DESCRIPTIONS[matcher].format(path=path or "$", value=value)


class _AssertionBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fill_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("description") and "matcher" in data:
            data = {**data, "description": describe(data.get("path", "$"), data["matcher"], data.get("value"))}
        return data


class PresenceAssertion(_AssertionBase):
    matcher: Literal[Matcher.NOT_NULL, Matcher.IS_NULL, Matcher.NOT_EMPTY, Matcher.IS_EMPTY]
    value: None = None


class TextAssertion(_AssertionBase):
    matcher: Literal[Matcher.CONTAINS, Matcher.MATCHES_PATTERN, Matcher.HAS_KEY]
    value: str


class ComparisonAssertion(_AssertionBase):
    matcher: Literal[
        Matcher.GREATER_THAN,
        Matcher.GREATER_THAN_OR_EQUAL,
        Matcher.LESS_THAN,
        Matcher.LESS_THAN_OR_EQUAL,
    ]
    value: int | float


class SizeAssertion(_AssertionBase):
    matcher: Literal[
        Matcher.HAS_SIZE,
        Matcher.HAS_SIZE_GREATER_THAN,
        Matcher.HAS_SIZE_LESS_THAN,
        Matcher.HAS_MIN_LENGTH,
        Matcher.HAS_MAX_LENGTH,
    ]
    value: int


class EqualityAssertion(_AssertionBase):
    matcher: Literal[Matcher.EQUALS, Matcher.NOT_EQUALS]
    value: bool | int | float | str


class OneOfAssertion(_AssertionBase):
    matcher: Literal[Matcher.ONE_OF]
    value: list[str] = Field(min_length=1)


class TypeAssertion(_AssertionBase):
    matcher: Literal[Matcher.IS_TYPE]
    value: FieldType


class EveryItemAssertion(_AssertionBase):
    """Applies ``value`` to each element of the array at ``path``.

    The nested assertion's path is relative to the element; ``"$"`` means
    the element itself.
    """

    matcher: Literal[Matcher.EVERY_ITEM]
    value: "Assertion"


Assertion = Annotated[
    Union[
        PresenceAssertion,
        TextAssertion,
        ComparisonAssertion,
        SizeAssertion,
        EqualityAssertion,
        OneOfAssertion,
        TypeAssertion,
        EveryItemAssertion,
    ],
    Field(discriminator="matcher"),
]

EveryItemAssertion.model_rebuild()

_assertion_adapter = TypeAdapter(Assertion)


def make_assertion(path: str, matcher: Matcher, value: Any = None, description: str | None = None) -> Assertion:
    """Build the right Assertion variant for ``matcher``.

    Raises pydantic.ValidationError when the operand does not fit the matcher.
    """
    data: dict[str, Any] = {"path": path, "matcher": matcher, "value": value}
    if description:
        data["description"] = description
    return _assertion_adapter.validate_python(data)


# -- scenarios ----------------------------------------------------------------


class TestType(str, Enum):
    __test__ = False

    POSITIVE = "positive"
    NEGATIVE = "negative"
    EDGE = "edge"


class TestRequest(BaseModel):
    __test__ = False

    model_config = ConfigDict(frozen=True)

    path_params: dict[str, Any] = {}
    query_params: dict[str, Any] = {}
    headers: dict[str, str] = {}
    form: dict[str, Any] = {}
    body: Any = None
    has_body: bool = False
    skip_auth: bool = False


class ExpectedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: int
    content_type: str | None = "application/json"
    assertions: list[Assertion] = []


_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TestScenario(BaseModel):
    __test__ = False

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    type: TestType
    request: TestRequest
    expected: ExpectedResponse

    @field_validator("name")
    @classmethod
    def _valid_identifier(cls, v: str) -> str:
        if not _IDENTIFIER.match(v):
            raise ValueError(f"not a valid test identifier: {v!r}")
        return v


class EndpointTest(BaseModel):
    endpoint: EndpointInfo
    scenarios: list[TestScenario] = []


# -- model + config -----------------------------------------------------------


class Framework(str, Enum):
    PYTEST = "pytest"
    REST_ASSURED = "rest-assured"
    POSTMAN = "postman"
    TESTCASES = "testcases"
    XLSX = "xlsx"


class GeneratorConfig(BaseModel):
    base_url: str = ""  # empty: take it from the document's servers/host
    framework: Framework = Framework.PYTEST
    python_package: str = "api_tests"
    java_package: str = "com.example.api"
    generate_negative_tests: bool = True
    generate_edge_cases: bool = False
    use_placeholders: bool = False


class TestMeta(BaseModel):
    __test__ = False

    source: str
    generated_at: str
    generator_version: str = GENERATOR_VERSION
    spec_title: str = "API"
    spec_version: str = "1.0.0"


class TestModel(BaseModel):
    __test__ = False

    meta: TestMeta
    config: GeneratorConfig
    endpoints: list[EndpointTest] = []

    @property
    def scenarios(self) -> list[TestScenario]:
        return [s for ep in self.endpoints for s in ep.scenarios]


# -- output -------------------------------------------------------------------


class GeneratedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str  # relative, may contain "/"
    content: str | bytes  # bytes for binary formats such as xlsx
    language: str


class GenerationStats(BaseModel):
    total_endpoints: int = 0
    total_tests: int = 0
    positive_tests: int = 0
    negative_tests: int = 0
    edge_tests: int = 0
    assertions: int = 0


class GenerationResult(BaseModel):
    success: bool
    files: list[GeneratedFile] = []
    stats: GenerationStats = GenerationStats()
    errors: list[str] = []
    warnings: list[str] = []
