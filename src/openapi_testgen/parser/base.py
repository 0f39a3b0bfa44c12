"""Unified data models for parsed API documentation.

The parser converts OpenAPI 3.x and Swagger 2.0 documents into these
models; the scenario builder and renderers only ever see these.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class FieldType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"
    ANY = "any"

    @classmethod
    def from_schema_type(cls, value: str | None) -> "FieldType":
        try:
            return cls(value.lower()) if value else cls.ANY
        except ValueError:
            return cls.ANY


class SchemaField(BaseModel):
    """One flattened, addressable node of a JSON Schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: str  # "user.email", "items[0].id"; "$" is the document root
    field_type: FieldType
    format: str | None = None
    pattern: str | None = None
    required: bool = False
    nullable: bool = False
    enum_values: list[str] | None = None
    description: str | None = None

    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | None = None
    exclusive_maximum: float | None = None

    min_length: int | None = None
    max_length: int | None = None

    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None

    example: Any = None

    @property
    def dot_depth(self) -> int:
        return self.path.count(".")

    @property
    def is_top_level(self) -> bool:
        return "." not in self.path and bool(self.name)

    @property
    def is_array_element(self) -> bool:
        return self.path.endswith("[0]")


class ParamLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    FORM_DATA = "formData"
    COOKIE = "cookie"


class ParameterInfo(BaseModel):
    """A single API parameter (path, query, header, form or cookie)."""

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParamLocation
    required: bool
    schema_field: SchemaField
    example: Any = None


class SecurityRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str  # apiKey / http / oauth2 / openIdConnect / basic
    scheme: str | None = None  # bearer / basic for http
    name: str | None = None  # header or query name for apiKey
    location: str | None = None  # header / query / cookie


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class EndpointInfo(BaseModel):
    """A single API operation with all the metadata the generator needs."""

    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    path: str  # /api/users/{id}
    operation_id: str | None = None
    summary: str = ""
    description: str = ""
    tags: list[str] = []

    path_params: list[ParameterInfo] = []
    query_params: list[ParameterInfo] = []
    header_params: list[ParameterInfo] = []
    form_params: list[ParameterInfo] = []
    consumes: list[str] = []

    request_body_fields: list[SchemaField] = []
    request_body_example: Any = None
    request_body_required: bool = False

    success_status: int = 200
    response_fields: list[SchemaField] = []
    has_response_schema: bool = False

    security: list[SecurityRequirement] = []

    @property
    def primary_tag(self) -> str:
        return self.tags[0] if self.tags else "default"

    @property
    def has_request_body(self) -> bool:
        return bool(self.request_body_fields) or self.request_body_required

    @property
    def content_type(self) -> str:
        if self.form_params and not self.request_body_fields:
            return self.consumes[0] if self.consumes else "application/x-www-form-urlencoded"
        return "application/json"

    def all_params(self) -> list[ParameterInfo]:
        return self.path_params + self.query_params + self.header_params + self.form_params


class ParseSuccess(BaseModel):
    title: str = "API"
    version: str = "1.0.0"
    base_url: str = "http://localhost:8080"
    endpoints: list[EndpointInfo] = []
    warnings: list[str] = []

    @property
    def success(self) -> bool:
        return True


class ParseFailure(BaseModel):
    message: str
    details: list[str] = []

    @property
    def success(self) -> bool:
        return False


ParseResult = ParseSuccess | ParseFailure
