"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into EndpointInfo models.
Swagger 2.0 specifics (``body``/``formData`` parameters, response
``schema``, ``host``/``basePath``) are normalized here so nothing
downstream needs to know which version it came from.
"""

import logging
import re
from pathlib import Path
from typing import Any

from openapi_spec_validator import validate
from openapi_spec_validator.validation.exceptions import OpenAPIValidationError, ValidatorDetectError

from .base import (
    EndpointInfo,
    HttpMethod,
    ParamLocation,
    ParameterInfo,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    SchemaField,
    SecurityRequirement,
)
from .detect import SpecLoadError, detect_spec_version, load_document
from .refs import RefResolver
from .visitor import DEFAULT_MAX_DEPTH, SchemaVisitor

logger = logging.getLogger(__name__)

SUCCESS_CODES = ("200", "201", "202", "204")
DEFAULT_BASE_URL = "http://localhost:8080"

_SERVER_VARIABLE = re.compile(r"\{([^}]+)\}")


def parse_spec(
    source: str | Path | dict,
    validate_document: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ParseResult:
    """Parse an OpenAPI/Swagger document from a path, text or mapping.

    Never raises for bad input; every load or validation problem comes
    back as a ParseFailure.
    """
    try:
        document = load_document(source)
        version = detect_spec_version(document)
    except SpecLoadError as e:
        logger.warning("Cannot load document: %s", e.message)
        return ParseFailure(message=e.message, details=e.details)

    if validate_document:
        try:
            validate(document)
        except (OpenAPIValidationError, ValidatorDetectError) as e:
            logger.warning("Document failed validation: %s", e)
            return ParseFailure(message="Document failed OpenAPI validation", details=[str(e)])

    logger.debug("Parsing %s document", version)
    return SpecParser(document, max_depth=max_depth).parse()


class SpecParser:
    """Turns one loaded document into ParseSuccess, or ParseFailure for a malformed top level."""

    def __init__(self, document: dict, max_depth: int = DEFAULT_MAX_DEPTH):
        self.document = document
        self.resolver = RefResolver(document)
        self.visitor = SchemaVisitor(self.resolver, max_depth=max_depth)
        self.warnings: list[str] = []

    def parse(self) -> ParseResult:
        info = self.document.get("info") or {}
        paths = self.document.get("paths") or {}
        for key, value in (("info", info), ("paths", paths)):
            if not isinstance(value, dict):
                message = f"'{key}' must be a mapping"
                logger.warning("Cannot parse document: %s", message)
                return ParseFailure(message=message, details=[f"got {type(value).__name__}"])

        endpoints = self._parse_endpoints(paths)
        logger.info("Parsed %d endpoints", len(endpoints))
        return ParseSuccess(
            title=str(info.get("title") or "API"),
            version=str(info.get("version") or "1.0.0"),
            base_url=self._extract_base_url(),
            endpoints=endpoints,
            warnings=self.warnings,
        )

    def _extract_base_url(self) -> str:
        servers = self.document.get("servers")
        if isinstance(servers, list) and servers and isinstance(servers[0], dict) and servers[0].get("url"):
            server = servers[0]
            variables = _mapping(server.get("variables"))

            def substitute(match: re.Match) -> str:
                variable = _mapping(variables.get(match.group(1)))
                return str(variable.get("default", match.group(0)))

            return _SERVER_VARIABLE.sub(substitute, str(server["url"]))

        host = self.document.get("host")
        if host:
            schemes = self.document.get("schemes")
            scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
            base_path = self.document.get("basePath") or ""
            return f"{scheme}://{host}{base_path}"

        return DEFAULT_BASE_URL

    def _parse_endpoints(self, paths: dict) -> list[EndpointInfo]:
        endpoints = []

        for path, path_item in paths.items():
            path_item, _ = self.resolver.resolve(path_item)
            for method in HttpMethod:
                operation = path_item.get(method.value.lower())
                if not isinstance(operation, dict):
                    continue
                try:
                    endpoints.append(self._parse_operation(str(path), method, operation, path_item))
                except (AttributeError, TypeError, ValueError) as e:
                    message = f"Skipped {method.value} {path}: {e}"
                    logger.warning(message)
                    self.warnings.append(message)

        return endpoints

    def _parse_operation(self, path: str, method: HttpMethod, operation: dict, path_item: dict) -> EndpointInfo:
        params = self._parse_parameters(operation, path_item)
        body_fields, body_example, body_required, consumes = self._parse_request_body(operation, path_item)
        status, response_fields = self._parse_response(operation)

        def located(location: ParamLocation) -> list[ParameterInfo]:
            return [p for p in params if p.location is location]

        return EndpointInfo(
            method=method,
            path=path,
            operation_id=operation.get("operationId"),
            summary=operation.get("summary") or "",
            description=operation.get("description") or "",
            tags=[str(t) for t in operation.get("tags") or []],
            path_params=located(ParamLocation.PATH),
            query_params=located(ParamLocation.QUERY),
            header_params=located(ParamLocation.HEADER),
            form_params=located(ParamLocation.FORM_DATA),
            consumes=consumes,
            request_body_fields=body_fields,
            request_body_example=body_example,
            request_body_required=body_required,
            success_status=status,
            response_fields=response_fields,
            has_response_schema=bool(response_fields),
            security=self._parse_security(operation),
        )

    def _raw_parameters(self, operation: dict, path_item: dict) -> list[dict]:
        # Operation-level parameters override path-level ones with the same name and location
        merged: dict[tuple, dict] = {}
        for raw in list(path_item.get("parameters") or []) + list(operation.get("parameters") or []):
            param, _ = self.resolver.resolve(raw)
            if not param.get("name"):
                continue
            merged[(param["name"], param.get("in", "query"))] = param
        return list(merged.values())

    def _parse_parameters(self, operation: dict, path_item: dict) -> list[ParameterInfo]:
        result = []
        for p in self._raw_parameters(operation, path_item):
            location = p.get("in", "query")
            if location == "body":
                continue
            try:
                location = ParamLocation(location)
            except ValueError:
                logger.debug("Ignoring parameter %s in unknown location %s", p["name"], location)
                continue

            # Swagger 2.0 keeps type/format/enum on the parameter itself
            schema = p["schema"] if "schema" in p else {"type": "string", **p}
            required = bool(p.get("required")) or location is ParamLocation.PATH
            schema_field = self.visitor.field_for(str(p["name"]), schema, required=required)

            example = p.get("example", p.get("x-example"))
            if example is None:
                example = schema_field.example

            result.append(
                ParameterInfo(
                    name=str(p["name"]),
                    location=location,
                    required=required,
                    schema_field=schema_field,
                    example=example,
                )
            )
        return result

    def _parse_request_body(self, operation: dict, path_item: dict) -> tuple[list[SchemaField], Any, bool, list[str]]:
        request_body = operation.get("requestBody")
        if request_body is not None:
            return self._parse_openapi3_body(request_body)

        consumes = list(operation.get("consumes") or self.document.get("consumes") or [])
        for p in self._raw_parameters(operation, path_item):
            if p.get("in") == "body":
                fields, example = self._fields_and_example(p.get("schema"), {})
                return fields, example, bool(p.get("required")), consumes

        return [], None, False, consumes

    def _parse_openapi3_body(self, request_body: Any) -> tuple[list[SchemaField], Any, bool, list[str]]:
        resolved, _ = self.resolver.resolve(request_body)
        content = resolved.get("content") or {}
        required = bool(resolved.get("required"))
        consumes = list(content.keys())

        media = _json_media(content)
        if media is None or media.get("schema") is None:
            return [], None, required, consumes

        fields, example = self._fields_and_example(media["schema"], media)
        return fields, example, required, consumes

    def _fields_and_example(self, schema: Any, media: dict) -> tuple[list[SchemaField], Any]:
        if schema is None:
            return [], None
        fields = self.visitor.visit(schema)

        if "example" in media:
            return fields, media["example"]
        examples = media.get("examples")
        if isinstance(examples, dict) and examples:
            first, _ = self.resolver.resolve(next(iter(examples.values())))
            if "value" in first:
                return fields, first["value"]
        return fields, self.visitor.generate_example(schema)

    def _parse_response(self, operation: dict) -> tuple[int, list[SchemaField]]:
        responses = {str(code): value for code, value in (operation.get("responses") or {}).items()}

        for code in SUCCESS_CODES:
            if code in responses:
                status = int(code)
                response, _ = self.resolver.resolve(responses[code])
                break
        else:
            return 200, []

        # Swagger 2.0 puts the schema directly on the response
        schema = response.get("schema")
        if schema is None:
            media = _json_media(response.get("content") or {})
            schema = media.get("schema") if media else None
        if schema is None:
            return status, []

        # Primitive bodies have no addressable fields and come back empty
        return status, self.visitor.visit(schema)

    def _parse_security(self, operation: dict) -> list[SecurityRequirement]:
        # An explicit empty list on the operation switches global security off
        security = operation["security"] if "security" in operation else self.document.get("security")
        if not security:
            return []

        components = _mapping(self.document.get("components"))
        schemes = _mapping(components.get("securitySchemes") or self.document.get("securityDefinitions"))
        if not isinstance(security, list):
            return []

        requirements = []
        for requirement in security:
            if not isinstance(requirement, dict):
                continue
            for scheme_name in requirement:
                scheme, _ = self.resolver.resolve(schemes.get(scheme_name))
                if not scheme:
                    logger.debug("Unknown security scheme %s", scheme_name)
                    continue
                requirements.append(
                    SecurityRequirement(
                        type=str(scheme.get("type", "apiKey")),
                        scheme=scheme.get("scheme"),
                        name=scheme.get("name"),
                        location=scheme.get("in"),
                    )
                )
        return requirements


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _json_media(content: dict) -> dict | None:
    """Pick the JSON media type object, falling back to the first one with a schema."""
    if "application/json" in content:
        return content["application/json"] or {}
    for media_type, media in content.items():
        if "json" in media_type and isinstance(media, dict):
            return media
    for media in content.values():
        if isinstance(media, dict) and media.get("schema") is not None:
            return media
    return None
