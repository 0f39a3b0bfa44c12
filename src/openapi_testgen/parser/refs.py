"""Local $ref resolution and schema composition flattening.

Resolution is shallow: a call follows the $ref chain of one node and
folds its allOf/oneOf/anyOf, but leaves nested properties and items
untouched. Walking the nested graph (and guarding against cycles) is
the schema visitor's job.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)

UNRESOLVED = {"type": "object"}


class RefResolver:
    """Resolves JSON pointer refs (#/components/schemas/...) against one document."""

    def __init__(self, document: dict):
        self.document = document
        self._cache: dict[str, Any] = {}

    def resolve(self, schema: Any) -> tuple[dict, tuple[str, ...]]:
        """Return (resolved node, refs followed to reach it)."""
        refs: list[str] = []
        node = schema
        while isinstance(node, dict) and "$ref" in node:
            ref = node["$ref"]
            if not isinstance(ref, str) or ref in refs:
                logger.warning("Circular $ref chain at %s", ref)
                return dict(UNRESOLVED), tuple(refs)
            refs.append(ref)
            node = self.lookup(ref)

        if not isinstance(node, dict):
            return {}, tuple(refs)
        return self._flatten(node, set(refs)), tuple(refs)

    def lookup(self, ref: str) -> Any:
        if ref in self._cache:
            return self._cache[ref]

        if not ref.startswith("#/"):
            logger.warning("External $ref not supported: %s", ref)
            return dict(UNRESOLVED)

        current: Any = self.document
        for segment in ref[2:].split("/"):
            segment = segment.replace("~1", "/").replace("~0", "~")
            if not isinstance(current, dict) or segment not in current:
                logger.warning("Cannot resolve $ref: %s", ref)
                return dict(UNRESOLVED)
            current = current[segment]

        self._cache[ref] = current
        return current

    def _flatten(self, node: dict, seen: set[str]) -> dict:
        if isinstance(node.get("allOf"), list):
            node = self._merge_all_of(node, seen)

        for key in ("oneOf", "anyOf"):
            options = node.get(key)
            if isinstance(options, list) and options and not node.get("properties"):
                first = self._resolve_part(options[0], seen)
                rest = {k: v for k, v in node.items() if k != key}
                node = {**first, **rest}
                break

        return node

    def _resolve_part(self, part: Any, seen: set[str]) -> dict:
        node = part
        local_seen = set(seen)
        while isinstance(node, dict) and "$ref" in node:
            ref = node["$ref"]
            if not isinstance(ref, str) or ref in local_seen:
                return {}
            local_seen.add(ref)
            node = self.lookup(ref)
        if not isinstance(node, dict):
            return {}
        return self._flatten(node, local_seen)

    def _merge_all_of(self, node: dict, seen: set[str]) -> dict:
        merged: dict = {}
        properties: dict = {}
        required: list[str] = []

        for part in node["allOf"]:
            resolved = self._resolve_part(part, seen)
            properties.update(resolved.get("properties") or {})
            required.extend(resolved.get("required") or [])
            for key, value in resolved.items():
                if key not in ("properties", "required"):
                    merged[key] = value

        for key, value in node.items():
            if key == "allOf":
                continue
            if key == "properties":
                properties.update(value or {})
            elif key == "required":
                required.extend(value or [])
            else:
                merged[key] = value

        if properties:
            merged["properties"] = properties
            merged.setdefault("type", "object")
        if required:
            merged["required"] = list(dict.fromkeys(required))
        return merged
