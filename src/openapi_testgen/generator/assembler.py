"""Assembles per-endpoint scenarios into a TestModel."""

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from openapi_testgen.generator.model import (
    EndpointTest,
    GenerationStats,
    GeneratorConfig,
    TestMeta,
    TestModel,
    TestType,
)
from openapi_testgen.generator.scenarios import ScenarioBuilder, dedupe_names
from openapi_testgen.parser.base import EndpointInfo

logger = logging.getLogger(__name__)


def build_test_model(
    endpoints: list[EndpointInfo],
    config: GeneratorConfig,
    title: str = "API",
    version: str = "1.0.0",
    source: str = "",
    builder: ScenarioBuilder | None = None,
    warnings: list[str] | None = None,
) -> TestModel:
    """Build scenarios for every endpoint.

    An endpoint whose scenarios cannot be built is logged, reported in
    ``warnings`` when given, and left out; the others still go through.
    Scenario names are unique across the whole model.
    """
    builder = builder or ScenarioBuilder()
    taken: set[str] = set()
    tests = []

    for endpoint in endpoints:
        try:
            scenarios = builder.build_scenarios(endpoint, config)
        except (ValidationError, ValueError, TypeError) as e:
            message = f"Skipped {endpoint.method.value} {endpoint.path}: {e}"
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
            continue
        tests.append(EndpointTest(endpoint=endpoint, scenarios=dedupe_names(scenarios, taken)))
        logger.debug("%s %s: %d scenarios", endpoint.method.value, endpoint.path, len(scenarios))

    meta = TestMeta(
        source=source,
        generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        spec_title=title,
        spec_version=version,
    )
    return TestModel(meta=meta, config=config, endpoints=tests)


def compute_stats(model: TestModel) -> GenerationStats:
    scenarios = model.scenarios
    return GenerationStats(
        total_endpoints=len(model.endpoints),
        total_tests=len(scenarios),
        positive_tests=sum(1 for s in scenarios if s.type is TestType.POSITIVE),
        negative_tests=sum(1 for s in scenarios if s.type is TestType.NEGATIVE),
        edge_tests=sum(1 for s in scenarios if s.type is TestType.EDGE),
        assertions=sum(len(s.expected.assertions) for s in scenarios),
    )
