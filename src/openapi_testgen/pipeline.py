"""End-to-end generation: document in, rendered files out."""

import logging
from fnmatch import fnmatchcase
from pathlib import Path

from openapi_testgen.generator.assembler import build_test_model, compute_stats
from openapi_testgen.generator.model import GenerationResult, GeneratorConfig
from openapi_testgen.generator.validator import validate_files
from openapi_testgen.parser.base import EndpointInfo, ParseFailure
from openapi_testgen.parser.openapi import parse_spec
from openapi_testgen.renderers.registry import get_renderer

logger = logging.getLogger(__name__)


def matches(endpoint: EndpointInfo, pattern: str) -> bool:
    """Match ``"POST /pets"``, ``"/pets/*"``, or an operationId/tag glob."""
    pattern = pattern.strip()
    method, _, path = pattern.partition(" ")
    if path:
        return endpoint.method.value == method.upper() and fnmatchcase(endpoint.path, path.strip())
    if pattern.startswith("/"):
        return fnmatchcase(endpoint.path, pattern)
    return fnmatchcase(endpoint.operation_id or "", pattern) or any(fnmatchcase(t, pattern) for t in endpoint.tags)


def filter_endpoints(endpoints: list[EndpointInfo], patterns: list[str] | tuple[str, ...]) -> list[EndpointInfo]:
    if not patterns:
        return list(endpoints)
    return [ep for ep in endpoints if any(matches(ep, p) for p in patterns)]


def describe_source(source: str | Path | dict) -> str:
    if isinstance(source, Path):
        return str(source)
    if isinstance(source, str) and "\n" not in source and len(source) < 4096:
        return source
    return "<inline document>"


def generate(
    source: str | Path | dict,
    config: GeneratorConfig | None = None,
    endpoint_filter: list[str] | tuple[str, ...] | None = None,
    validate_document: bool = False,
) -> GenerationResult:
    """Parse ``source``, build scenarios and render them.

    Bad documents, unknown frameworks and empty selections come back as
    ``success=False`` with errors; nothing here raises for bad input.
    """
    config = config or GeneratorConfig()

    try:
        renderer = get_renderer(config.framework)
    except ValueError as e:
        return GenerationResult(success=False, errors=[str(e)])

    parsed = parse_spec(source, validate_document=validate_document)
    if isinstance(parsed, ParseFailure):
        return GenerationResult(success=False, errors=[parsed.message, *parsed.details])

    warnings = list(parsed.warnings)
    endpoints = filter_endpoints(parsed.endpoints, endpoint_filter or [])
    if not endpoints:
        message = "No endpoints matched the filter" if endpoint_filter else "Document declares no endpoints"
        return GenerationResult(success=False, errors=[message], warnings=warnings)

    if not config.base_url:
        config = config.model_copy(update={"base_url": parsed.base_url})

    model = build_test_model(
        endpoints,
        config,
        title=parsed.title,
        version=parsed.version,
        source=describe_source(source),
        warnings=warnings,
    )
    stats = compute_stats(model)
    files = renderer.render(model)
    logger.info("Rendered %d files for %d scenarios", len(files), stats.total_tests)

    errors = validate_files(files)
    if errors:
        return GenerationResult(
            success=False,
            files=files,
            stats=stats,
            errors=[f"{name}: {message}" for name, message in errors.items()],
            warnings=warnings,
        )
    return GenerationResult(success=True, files=files, stats=stats, warnings=warnings)
