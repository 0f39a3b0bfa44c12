"""Renderer contract and helpers shared by every output format."""

import re
from urllib.parse import quote

from openapi_testgen.generator.model import (
    Assertion,
    EndpointTest,
    GeneratedFile,
    TestModel,
    TestScenario,
)
from openapi_testgen.parser.base import EndpointInfo, SecurityRequirement

# Responses with these statuses carry no body worth asserting on
NO_CONTENT_STATUSES = frozenset({202, 204})

_PATH_TOKEN = re.compile(r"([^.\[\]]+)|\[(\d+)\]")
_PLACEHOLDER = re.compile(r"^\$\{([A-Za-z0-9_]+)\}$")
PATH_PARAM = re.compile(r"\{([^}]+)\}")


class Renderer:
    """Turns a TestModel into files for one target framework."""

    name = ""
    language = ""

    def render(self, model: TestModel) -> list[GeneratedFile]:
        raise NotImplementedError

    def _file(self, filename: str, content: str | bytes, language: str | None = None) -> GeneratedFile:
        return GeneratedFile(filename=filename, content=content, language=language or self.language)


def split_path(path: str) -> list[str | int]:
    """Tokenize a field path: ``items[0].id`` -> ``["items", 0, "id"]``; ``$`` -> ``[]``."""
    if not path or path == "$":
        return []
    if path.startswith("$.") or path.startswith("$["):
        path = path[1:].lstrip(".")
    tokens: list[str | int] = []
    for name, index in _PATH_TOKEN.findall(path):
        tokens.append(int(index) if index else name)
    return tokens


def placeholder_name(value: object) -> str | None:
    """``PET_ID`` for a ``${PET_ID}`` token, else None."""
    if not isinstance(value, str):
        return None
    match = _PLACEHOLDER.match(value)
    return match.group(1) if match else None


def fill_path(template: str, params: dict, placeholder_format: str = "{{{{{name}}}}}") -> str:
    """Substitute path params into ``/pets/{petId}``.

    Placeholder tokens become ``placeholder_format`` (``{{PET_ID}}`` by
    default, Postman's variable syntax); other values are URL-quoted.
    """

    def replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in params:
            return match.group(0)
        value = params[name]
        variable = placeholder_name(value)
        if variable:
            return placeholder_format.format(name=variable)
        return quote(as_text(value), safe="")

    return PATH_PARAM.sub(replace, template)


def as_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def body_assertions(scenario: TestScenario) -> list[Assertion]:
    if scenario.expected.status_code in NO_CONTENT_STATUSES:
        return []
    return list(scenario.expected.assertions)


def tag_key(tag: str) -> str:
    key = re.sub(r"[^a-z0-9]+", "_", tag.lower()).strip("_")
    return key or "default"


def group_by_tag(model: TestModel) -> dict[str, list[EndpointTest]]:
    """Group endpoint tests by their first tag. Untagged endpoints go to 'default'."""
    groups: dict[str, list[EndpointTest]] = {}
    for test in model.endpoints:
        groups.setdefault(tag_key(test.endpoint.primary_tag), []).append(test)
    return groups


def class_name(tag: str, suffix: str) -> str:
    name = "".join(part.title() for part in tag_key(tag).split("_"))
    if not name or name[0].isdigit():
        name = f"Api{name}"
    return f"{name}{suffix}"


def slugify(text: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", text).strip("_") or "api"


def auth_style(model: TestModel) -> tuple[str, str]:
    """(header name, value prefix) used to send the API token."""
    for test in model.endpoints:
        for requirement in test.endpoint.security:
            return _auth_style(requirement)
    return "Authorization", "Bearer "


def _auth_style(requirement: SecurityRequirement) -> tuple[str, str]:
    if requirement.type == "apiKey" and requirement.location == "header" and requirement.name:
        return requirement.name, ""
    if requirement.type == "basic" or (requirement.scheme or "").lower() == "basic":
        return "Authorization", "Basic "
    return "Authorization", "Bearer "


def needs_auth(endpoint: EndpointInfo, scenario: TestScenario) -> bool:
    return bool(endpoint.security) and not scenario.request.skip_auth
