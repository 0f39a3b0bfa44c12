from pathlib import Path

import pytest

from openapi_testgen.parser.base import FieldType, HttpMethod, ParseFailure, ParseSuccess
from openapi_testgen.parser.detect import SpecLoadError, detect_spec_version, load_document
from openapi_testgen.parser.openapi import parse_spec

FIXTURES = Path(__file__).parent / "fixtures"


def _find(parsed, operation_id):
    return next(ep for ep in parsed.endpoints if ep.operation_id == operation_id)


class TestDetect:
    def test_detect_versions(self):
        assert detect_spec_version({"openapi": "3.1.0"}) == "openapi31"
        assert detect_spec_version({"openapi": "3.0.3"}) == "openapi30"
        assert detect_spec_version({"swagger": "2.0"}) == "swagger2"

    def test_detect_unknown(self):
        with pytest.raises(SpecLoadError):
            detect_spec_version({"info": {}})

    def test_load_keeps_dates_as_text(self):
        doc = load_document("openapi: 3.0.0\ninfo:\n  version: 2024-01-01\n")
        assert doc["info"]["version"] == "2024-01-01"

    def test_load_from_path_string(self):
        doc = load_document(str(FIXTURES / "swagger2.json"))
        assert doc["swagger"] == "2.0"


class TestOpenApi3:
    def test_document_info(self):
        parsed = parse_spec(FIXTURES / "petstore.yaml")
        assert isinstance(parsed, ParseSuccess)
        assert parsed.title == "Petstore"
        assert parsed.version == "1.2.0"
        assert parsed.base_url == "https://api.petstore.example.com/v1"
        assert parsed.warnings == []

    def test_endpoints_in_document_order(self):
        parsed = parse_spec(FIXTURES / "petstore.yaml")
        assert [(ep.method, ep.path) for ep in parsed.endpoints] == [
            (HttpMethod.GET, "/pets"),
            (HttpMethod.POST, "/pets"),
            (HttpMethod.GET, "/pets/{petId}"),
            (HttpMethod.DELETE, "/pets/{petId}"),
            (HttpMethod.GET, "/store/inventory"),
        ]

    def test_query_param_and_disabled_security(self):
        ep = _find(parse_spec(FIXTURES / "petstore.yaml"), "listPets")
        assert ep.security == []
        [limit] = ep.query_params
        assert limit.name == "limit"
        assert limit.required is False
        assert limit.example == 10
        assert limit.schema_field.minimum == 1
        assert limit.schema_field.maximum == 100

    def test_root_array_response(self):
        ep = _find(parse_spec(FIXTURES / "petstore.yaml"), "listPets")
        paths = [f.path for f in ep.response_fields]
        assert paths == [
            "[0].id",
            "[0].name",
            "[0].status",
            "[0].tags[0]",
            "[0].owner",
            "[0].owner.email",
            "[0].owner.website",
        ]
        assert ep.has_response_schema is True

    def test_request_body(self):
        ep = _find(parse_spec(FIXTURES / "petstore.yaml"), "createPet")
        assert ep.request_body_required is True
        assert [f.path for f in ep.request_body_fields] == ["name", "status", "age", "tags[0]"]
        assert [f.required for f in ep.request_body_fields] == [True, True, True, False]
        assert ep.request_body_example == {"name": "string", "status": "available", "age": 0, "tags": ["string"]}
        assert ep.consumes == ["application/json"]
        assert ep.success_status == 201

    def test_global_security(self):
        ep = _find(parse_spec(FIXTURES / "petstore.yaml"), "createPet")
        [requirement] = ep.security
        assert requirement.type == "http"
        assert requirement.scheme == "bearer"

    def test_path_level_param(self):
        ep = _find(parse_spec(FIXTURES / "petstore.yaml"), "deletePet")
        [pet_id] = ep.path_params
        assert pet_id.name == "petId"
        assert pet_id.required is True
        assert pet_id.schema_field.field_type is FieldType.INTEGER

    def test_no_content_response(self):
        ep = _find(parse_spec(FIXTURES / "petstore.yaml"), "deletePet")
        assert ep.success_status == 204
        assert ep.response_fields == []
        assert ep.has_response_schema is False

    def test_api_key_security(self):
        parsed = parse_spec(FIXTURES / "petstore.yaml")
        ep = parsed.endpoints[-1]
        assert ep.operation_id is None
        assert ep.tags == ["store"]
        [requirement] = ep.security
        assert (requirement.type, requirement.name, requirement.location) == ("apiKey", "X-API-Key", "header")

    def test_recursive_schema(self):
        parsed = parse_spec(FIXTURES / "recursive.yaml")
        [ep] = parsed.endpoints
        assert [f.path for f in ep.response_fields] == ["name"]
        assert parsed.base_url == "http://localhost:8080"

    def test_operation_param_overrides_path_param(self):
        doc = {
            "openapi": "3.0.0",
            "info": {"title": "x", "version": "1"},
            "paths": {
                "/items/{id}": {
                    "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
                    "get": {
                        "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}}],
                        "responses": {"200": {"description": "ok"}},
                    },
                }
            },
        }
        [ep] = parse_spec(doc).endpoints
        [param] = ep.path_params
        assert param.schema_field.field_type is FieldType.INTEGER

    def test_broken_operation_becomes_warning(self):
        doc = {
            "openapi": "3.0.0",
            "info": {"title": "x", "version": "1"},
            "paths": {
                "/broken": {"get": {"tags": 5, "responses": {}}},
                "/ok": {"get": {"responses": {"200": {"description": "ok"}}}},
            },
        }
        parsed = parse_spec(doc)
        assert [ep.path for ep in parsed.endpoints] == ["/ok"]
        assert len(parsed.warnings) == 1
        assert parsed.warnings[0].startswith("Skipped GET /broken")

    def test_inline_text(self):
        text = (FIXTURES / "petstore.yaml").read_text(encoding="utf-8")
        parsed = parse_spec(text)
        assert len(parsed.endpoints) == 5


class TestSwagger2:
    def test_base_url(self):
        parsed = parse_spec(FIXTURES / "swagger2.json")
        assert parsed.title == "Legacy Users"
        assert parsed.base_url == "http://legacy.example.com/api"

    def test_body_parameter(self):
        ep = _find(parse_spec(FIXTURES / "swagger2.json"), "createUser")
        assert ep.request_body_required is True
        assert [f.name for f in ep.request_body_fields] == ["id", "email", "role", "created_at"]
        assert ep.request_body_example["email"] == "user@example.com"
        assert ep.consumes == ["application/json"]
        assert ep.success_status == 201
        assert [f.path for f in ep.response_fields] == ["id", "email", "role", "created_at"]

    def test_form_and_header_parameters(self):
        ep = _find(parse_spec(FIXTURES / "swagger2.json"), "uploadAvatar")
        assert [p.name for p in ep.form_params] == ["caption", "public"]
        assert ep.form_params[0].schema_field.max_length == 140
        assert ep.form_params[1].schema_field.field_type is FieldType.BOOLEAN
        [header] = ep.header_params
        assert header.example == "req-1"
        [user_id] = ep.path_params
        assert user_id.schema_field.format == "uuid"
        assert ep.has_request_body is False
        assert ep.content_type == "application/x-www-form-urlencoded"

    def test_query_parameter_type(self):
        ep = _find(parse_spec(FIXTURES / "swagger2.json"), "listUsers")
        [page] = ep.query_params
        assert page.schema_field.field_type is FieldType.INTEGER
        assert page.schema_field.minimum == 1

    def test_basic_security(self):
        ep = _find(parse_spec(FIXTURES / "swagger2.json"), "listUsers")
        assert [r.type for r in ep.security] == ["basic"]


class TestParseFailures:
    def test_missing_file(self, tmp_path):
        result = parse_spec(tmp_path / "missing.yaml")
        assert isinstance(result, ParseFailure)
        assert result.success is False
        assert result.message.startswith("File not found")

    def test_not_openapi(self):
        result = parse_spec({"info": {"title": "x"}})
        assert isinstance(result, ParseFailure)
        assert "openapi" in result.message

    def test_non_mapping_root(self):
        result = parse_spec("- one\n- two\n")
        assert isinstance(result, ParseFailure)
        assert result.message == "Document root must be a mapping, got list"

    def test_invalid_yaml(self):
        result = parse_spec("openapi: [unclosed\n  paths: {\n")
        assert isinstance(result, ParseFailure)
        assert result.message == "Document is neither valid YAML nor JSON"
        assert result.details

    def test_validation_failure(self):
        doc = {"openapi": "3.0.3", "info": {"title": "x"}, "paths": {}}
        result = parse_spec(doc, validate_document=True)
        assert isinstance(result, ParseFailure)
        assert result.message == "Document failed OpenAPI validation"

    def test_validation_success(self):
        assert isinstance(parse_spec(FIXTURES / "petstore.yaml", validate_document=True), ParseSuccess)

    def test_paths_must_be_a_mapping(self):
        result = parse_spec({"openapi": "3.0.0", "paths": ["x"]})
        assert isinstance(result, ParseFailure)
        assert result.message == "'paths' must be a mapping"
        assert result.details == ["got list"]

    def test_info_must_be_a_mapping(self):
        result = parse_spec({"openapi": "3.0.0", "info": "x", "paths": {}})
        assert isinstance(result, ParseFailure)
        assert result.message == "'info' must be a mapping"


class TestOddDocuments:
    def test_numeric_description_keeps_endpoint(self):
        text = (
            "openapi: 3.0.0\n"
            "info: {title: Codes, version: '1'}\n"
            "paths:\n"
            "  /codes:\n"
            "    get:\n"
            "      responses:\n"
            "        '200':\n"
            "          description: ok\n"
            "          content:\n"
            "            application/json:\n"
            "              schema:\n"
            "                type: object\n"
            "                properties:\n"
            "                  code: {type: string, description: 2024}\n"
        )
        parsed = parse_spec(text)
        assert parsed.warnings == []
        [ep] = parsed.endpoints
        [code] = ep.response_fields
        assert code.path == "code"
        assert code.description is None

    def test_odd_servers_and_security(self):
        doc = {
            "openapi": "3.0.0",
            "info": {"title": "x", "version": "1"},
            "servers": [{"url": "https://{region}.example.com", "variables": "eu"}],
            "components": "none",
            "security": {"bearer": []},
            "paths": {"/ok": {"get": {"responses": {"200": {"description": "ok"}}}}},
        }
        parsed = parse_spec(doc)
        assert parsed.base_url == "https://{region}.example.com"
        [ep] = parsed.endpoints
        assert ep.security == []
