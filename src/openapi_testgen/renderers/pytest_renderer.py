"""pytest + requests renderer.

Produces a small layered project: ``<package>/config.py`` and
``<package>/client.py`` hold the environment-driven settings and the
HTTP session, ``tests/conftest.py`` exposes them as fixtures, and one
``tests/test_<tag>.py`` module per tag holds the scenarios.
"""

from urllib.parse import quote

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
    PATH_PARAM,
    Renderer,
    as_text,
    auth_style,
    body_assertions,
    group_by_tag,
    needs_auth,
    placeholder_name,
    split_path,
)

_PYTHON_TYPES = {
    FieldType.STRING: "str",
    FieldType.INTEGER: "int",
    FieldType.NUMBER: "(int, float)",
    FieldType.BOOLEAN: "bool",
    FieldType.ARRAY: "list",
    FieldType.OBJECT: "dict",
    FieldType.NULL: "type(None)",
    FieldType.ANY: "object",
}

CLIENT_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")


def accessor(path: str, root: str = "data") -> str:
    """``items[0].id`` -> ``data["items"][0]["id"]``."""
    result = root
    for token in split_path(path):
        result += f"[{token}]" if isinstance(token, int) else f"[{token!r}]"
    return result


def condition(assertion: Assertion, root: str = "data") -> str:
    """Boolean Python expression that holds when the assertion passes."""
    acc = accessor(assertion.path, root)
    value = assertion.value
    matcher = Matcher(assertion.matcher)

    if matcher is Matcher.NOT_NULL:
        return f"{acc} is not None"
    if matcher is Matcher.IS_NULL:
        return f"{acc} is None"
    if matcher is Matcher.EQUALS:
        return f"{acc} == {value!r}"
    if matcher is Matcher.NOT_EQUALS:
        return f"{acc} != {value!r}"
    if matcher in (Matcher.CONTAINS, Matcher.HAS_KEY):
        return f"{value!r} in {acc}"
    if matcher is Matcher.MATCHES_PATTERN:
        return f"re.search({value!r}, str({acc}))"
    if matcher is Matcher.ONE_OF:
        return f"_text({acc}) in {list(value)!r}"
    if matcher is Matcher.IS_TYPE:
        return f"isinstance({acc}, {_PYTHON_TYPES[FieldType(value)]})"
    if matcher is Matcher.NOT_EMPTY:
        return f"len({acc}) > 0"
    if matcher is Matcher.IS_EMPTY:
        return f"len({acc}) == 0"
    if matcher is Matcher.GREATER_THAN:
        return f"{acc} > {value!r}"
    if matcher is Matcher.GREATER_THAN_OR_EQUAL:
        return f"{acc} >= {value!r}"
    if matcher is Matcher.LESS_THAN:
        return f"{acc} < {value!r}"
    if matcher is Matcher.LESS_THAN_OR_EQUAL:
        return f"{acc} <= {value!r}"
    if matcher is Matcher.HAS_SIZE:
        return f"len({acc}) == {value!r}"
    if matcher is Matcher.HAS_SIZE_GREATER_THAN:
        return f"len({acc}) > {value!r}"
    if matcher is Matcher.HAS_SIZE_LESS_THAN:
        return f"len({acc}) < {value!r}"
    if matcher is Matcher.HAS_MIN_LENGTH:
        return f"len({acc}) >= {value!r}"
    if matcher is Matcher.HAS_MAX_LENGTH:
        return f"len({acc}) <= {value!r}"
    if matcher is Matcher.EVERY_ITEM:
        return f"all({condition(value, 'item')} for item in {acc})"
    raise ValueError(f"Unsupported matcher: {matcher}")


def _uses(assertions: list[Assertion], matcher: Matcher) -> bool:
    for assertion in assertions:
        if assertion.matcher == matcher:
            return True
        if assertion.matcher == Matcher.EVERY_ITEM and _uses([assertion.value], matcher):
            return True
    return False


def _docstring(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', "'''")


class PytestRenderer(Renderer):
    name = "pytest"
    language = "python"

    def render(self, model: TestModel) -> list[GeneratedFile]:
        package = model.config.python_package
        files = [
            self._file(f"{package}/__init__.py", ""),
            self._file(f"{package}/config.py", self._render_config(model)),
            self._file(f"{package}/client.py", self._render_client(package)),
            self._file("tests/__init__.py", ""),
            self._file("tests/conftest.py", self._render_conftest(package)),
        ]
        for tag, tests in group_by_tag(model).items():
            files.append(self._file(f"tests/test_{tag}.py", self._render_module(model, tag, tests)))
        files.append(self._file("requirements.txt", self._render_requirements(), "text"))
        return files

    # -- static layer ---------------------------------------------------------

    def _render_config(self, model: TestModel) -> str:
        header, prefix = auth_style(model)
        return f'''import os

BASE_URL = os.getenv("API_BASE_URL", {model.config.base_url!r})
API_TOKEN = os.getenv("API_TOKEN", "")
AUTH_HEADER = {header!r}
AUTH_PREFIX = {prefix!r}
TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))
'''

    def _render_client(self, package: str) -> str:
        shortcuts = "".join(
            f'''
    def {method}(self, path, **kwargs):
        return self.request("{method.upper()}", path, **kwargs)
'''
            for method in CLIENT_METHODS
        )
        return f'''import requests

from {package}.config import API_TOKEN, AUTH_HEADER, AUTH_PREFIX, BASE_URL, TIMEOUT


class HttpClient:
    def __init__(self, base_url=BASE_URL, token=API_TOKEN):
        self.session = requests.Session()
        self.base_url = base_url.rstrip("/")
        self.token = token

    def auth_headers(self):
        if not self.token:
            return {{}}
        return {{AUTH_HEADER: f"{{AUTH_PREFIX}}{{self.token}}"}}

    def request(self, method, path, auth=False, headers=None, **kwargs):
        merged = self.auth_headers() if auth else {{}}
        merged.update(headers or {{}})
        kwargs.setdefault("timeout", TIMEOUT)
        return self.session.request(method, f"{{self.base_url}}{{path}}", headers=merged, **kwargs)
{shortcuts}'''

    def _render_conftest(self, package: str) -> str:
        return f'''import pytest

from {package}.client import HttpClient
from {package}.config import BASE_URL


def pytest_configure(config):
    config.addinivalue_line("markers", "positive: happy-path scenario")
    config.addinivalue_line("markers", "negative: invalid input, expects an error status")
    config.addinivalue_line("markers", "edge: boundary value, expects success")


@pytest.fixture(scope="session")
def base_url():
    return BASE_URL


@pytest.fixture(scope="session")
def api_client(base_url):
    return HttpClient(base_url=base_url)


@pytest.fixture
def auth_headers(api_client):
    return api_client.auth_headers()
'''

    def _render_requirements(self) -> str:
        return "requests>=2.28\npytest>=7.0\n"

    # -- test modules ---------------------------------------------------------

    def _render_module(self, model: TestModel, tag: str, tests: list[EndpointTest]) -> str:
        scenarios = [s for t in tests for s in t.scenarios]
        assertions = [a for s in scenarios for a in body_assertions(s)]
        needs_os = any(
            placeholder_name(v) for s in scenarios for v in s.request.path_params.values()
        )

        lines = [
            f'"""Generated tests for the {tag} endpoints of {_docstring(model.meta.spec_title)} '
            f'{_docstring(model.meta.spec_version)}.',
            "",
            f"Source: {_docstring(model.meta.source)}",
            f"Generated at {model.meta.generated_at} by openapi-testgen {model.meta.generator_version}",
            '"""',
            "",
        ]
        if needs_os:
            lines.append("import os")
        if _uses(assertions, Matcher.MATCHES_PATTERN):
            lines.append("import re")
        if needs_os or _uses(assertions, Matcher.MATCHES_PATTERN):
            lines.append("")
        lines.append("import pytest")

        if _uses(assertions, Matcher.ONE_OF):
            lines.extend([
                "",
                "",
                "def _text(value):",
                "    if isinstance(value, bool):",
                '        return "true" if value else "false"',
                "    return str(value)",
            ])

        for test in tests:
            for scenario in test.scenarios:
                lines.extend(["", ""])
                lines.extend(self._render_test(test, scenario))

        return "\n".join(lines) + "\n"

    def _render_test(self, test: EndpointTest, scenario: TestScenario) -> list[str]:
        endpoint = test.endpoint
        request = scenario.request
        method = endpoint.method.value.lower()

        args = [self._path_expression(endpoint.path, request.path_params)]
        if request.query_params:
            args.append(f"params={request.query_params!r}")
        if request.headers:
            args.append(f"headers={request.headers!r}")
        if request.form:
            args.append(f"data={request.form!r}")
        elif request.has_body and request.body is not None:
            args.append(f"json={request.body!r}")
        if needs_auth(endpoint, scenario):
            args.append("auth=True")

        lines = [
            f"@pytest.mark.{scenario.type.value}",
            f"def {scenario.name}(api_client):",
            f'    """{_docstring(scenario.display_name)}"""',
            f"    response = api_client.{method}(",
        ]
        lines.extend(f"        {arg}," for arg in args)
        lines.append("    )")
        lines.append("")
        lines.append(
            f"    assert response.status_code == {scenario.expected.status_code}, response.text"
        )

        assertions = body_assertions(scenario)
        if assertions:
            if scenario.expected.content_type:
                lines.append(
                    f'    assert response.headers.get("Content-Type", "").startswith('
                    f"{scenario.expected.content_type!r})"
                )
            lines.append("")
            lines.append("    data = response.json()")
            for assertion in assertions:
                lines.append(f"    assert {condition(assertion)}, {assertion.description!r}")
        return lines

    def _path_expression(self, template: str, params: dict) -> str:
        """Python source for the request path, reading placeholders from the environment."""
        f_string = any(placeholder_name(v) for v in params.values())

        def literal(text: str) -> str:
            return text.replace("{", "{{").replace("}", "}}") if f_string else text

        def replace(match) -> str:
            name = match.group(1)
            if name not in params:
                return literal(match.group(0))
            variable = placeholder_name(params[name])
            if variable:
                return f"{{os.environ.get({variable!r}, '')}}"
            return literal(quote(as_text(params[name]), safe=""))

        path = PATH_PARAM.sub(replace, template)
        if f_string:
            return f'f"{path}"'
        return repr(path)
