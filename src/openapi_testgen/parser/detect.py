"""Load API documents and detect their OpenAPI/Swagger version."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class SpecLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as strings, as a JSON parser would."""


SpecLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class SpecLoadError(Exception):
    """Raised when a document cannot be read or is not an API description."""

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


def load_document(source: str | Path | dict) -> dict:
    """Load an OpenAPI/Swagger document.

    ``source`` may be an already-loaded mapping, a path to a YAML/JSON
    file, or the raw document text. JSON is a subset of YAML, so both go
    through the YAML loader.
    """
    if isinstance(source, dict):
        return source

    text = _read_source(source)
    try:
        data = yaml.load(text, Loader=SpecLoader)
    except yaml.YAMLError as e:
        # Tabs and some escapes are valid JSON but not valid YAML
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            raise SpecLoadError("Document is neither valid YAML nor JSON", [str(e)]) from e

    if not isinstance(data, dict):
        raise SpecLoadError(f"Document root must be a mapping, got {type(data).__name__}")
    return data


def _read_source(source: str | Path) -> str:
    if isinstance(source, Path):
        return _read_file(source)

    # Multi-line strings are document text; a short single line is a path
    if "\n" not in source and len(source) < 4096:
        candidate = Path(source)
        if candidate.suffix.lower() in (".yaml", ".yml", ".json") or candidate.exists():
            return _read_file(candidate)
    return source


def _read_file(path: Path) -> str:
    logger.debug("Reading %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SpecLoadError(f"File not found: {path}") from e
    except OSError as e:
        raise SpecLoadError(f"Cannot read {path}", [str(e)]) from e


def detect_spec_version(document: dict[str, Any]) -> str:
    """Return 'swagger2', 'openapi30' or 'openapi31'.

    Raises SpecLoadError for documents with neither key.
    """
    if "openapi" in document:
        version = str(document["openapi"])
        return "openapi31" if version.startswith("3.1") else "openapi30"
    if "swagger" in document:
        return "swagger2"
    raise SpecLoadError("Not an OpenAPI document: missing 'openapi' or 'swagger' key")
