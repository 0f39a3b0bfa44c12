"""Markdown test-case document: one table of numbered cases per endpoint."""

import json

from openapi_testgen.generator.model import EndpointTest, GeneratedFile, TestModel, TestScenario, TestType
from openapi_testgen.renderers.base import Renderer, body_assertions

PRIORITIES = {
    TestType.POSITIVE: "P0",
    TestType.NEGATIVE: "P1",
    TestType.EDGE: "P2",
}

MAX_CELL_LENGTH = 200


def cell(text: str) -> str:
    text = text.replace("\\", "\\\\").replace("|", "\\|").replace("\n", " ")
    if len(text) > MAX_CELL_LENGTH:
        text = text[: MAX_CELL_LENGTH - 3] + "..."
    return text


def _compact(value) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def describe_input(scenario: TestScenario) -> str:
    request = scenario.request
    parts = []
    if request.path_params:
        parts.append("path " + _compact(request.path_params))
    if request.query_params:
        parts.append("query " + _compact(request.query_params))
    if request.headers:
        parts.append("headers " + _compact(request.headers))
    if request.form:
        parts.append("form " + _compact(request.form))
    elif request.has_body and request.body is not None:
        parts.append(_compact(request.body))
    if request.skip_auth:
        parts.append("no credentials")
    return "; ".join(parts) or "-"


def describe_checks(scenario: TestScenario) -> str:
    checks = [a.description for a in body_assertions(scenario)]
    return "; ".join(checks) if checks else "status only"


class TestCaseRenderer(Renderer):
    __test__ = False

    name = "testcases"
    language = "markdown"

    def render(self, model: TestModel) -> list[GeneratedFile]:
        meta = model.meta
        sections = [
            f"# {meta.spec_title} {meta.spec_version}: test cases",
            "",
            f"> Source: {meta.source or '-'}. Generated at {meta.generated_at} "
            f"by openapi-testgen {meta.generator_version}.",
        ]
        for test in model.endpoints:
            sections.append("")
            sections.extend(self._render_section(test))
        return [self._file("testcases.md", "\n".join(sections) + "\n")]

    def _render_section(self, test: EndpointTest) -> list[str]:
        endpoint = test.endpoint
        lines = [f"## {endpoint.method.value} {endpoint.path}", ""]
        if endpoint.summary or endpoint.description:
            lines.extend([f"> {cell(endpoint.summary or endpoint.description)}", ""])
        if endpoint.request_body_example is not None:
            lines.extend([f"Sample payload: `{_compact(endpoint.request_body_example)}`", ""])

        lines.append("| ID | Scenario | Type | Input | Expected status | Checks | Priority |")
        lines.append("|----|----------|------|-------|-----------------|--------|----------|")
        for number, scenario in enumerate(test.scenarios, start=1):
            lines.append(
                f"| TC-{number:03d} | {cell(scenario.display_name)} | {scenario.type.value} "
                f"| {cell(describe_input(scenario))} | {scenario.expected.status_code} "
                f"| {cell(describe_checks(scenario))} | {PRIORITIES[scenario.type]} |"
            )
        return lines
