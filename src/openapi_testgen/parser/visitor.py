"""Schema visitor: flattens a JSON Schema graph into addressable fields.

Paths use dots for properties and a synthetic ``[0]`` for array
elements: ``user.email``, ``items[0].id``. An array of primitives has no
field of its own; the element stands in for it. An array property whose
items are objects keeps a field for the array, followed by the element's
properties.
"""

import re
from typing import Any

from openapi_testgen.parser.base import FieldType, SchemaField
from openapi_testgen.parser.refs import RefResolver

DEFAULT_MAX_DEPTH = 5

FORMAT_EXAMPLES = {
    "date": "2024-01-01",
    "date-time": "2024-01-01T00:00:00Z",
    "email": "user@example.com",
    "uri": "https://example.com",
    "url": "https://example.com",
    "uuid": "550e8400-e29b-41d4-a716-446655440000",
}

_TRAILING_ELEMENTS = re.compile(r"(\[0\])+$")


def field_type_of(node: dict) -> FieldType:
    """Structural type of a resolved schema node."""
    declared = node.get("type")
    if isinstance(declared, list):
        non_null = [t for t in declared if t != "null"]
        declared = non_null[0] if non_null else "null"
    if declared:
        return FieldType.from_schema_type(str(declared))
    if node.get("properties"):
        return FieldType.OBJECT
    if "items" in node:
        return FieldType.ARRAY
    return FieldType.ANY


def stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _number(value: Any) -> float | None:
    # OAS 3.0 uses booleans for exclusiveMinimum/Maximum; only 3.1 numbers are bounds.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _integer(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _flag(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _element_name(path: str) -> str:
    return _TRAILING_ELEMENTS.sub("", path.rsplit(".", 1)[-1])


class SchemaVisitor:
    """Walks a resolved schema and returns a flat list of SchemaField."""

    def __init__(self, resolver: RefResolver | None = None, max_depth: int = DEFAULT_MAX_DEPTH):
        self.resolver = resolver or RefResolver({})
        self.max_depth = max_depth

    def visit(self, schema: Any, parent_path: str = "", depth: int = 0) -> list[SchemaField]:
        """Flatten ``schema`` into fields, in declaration order.

        Each call starts with an empty set of visited refs; branches get
        their own copy, so a component reused by two siblings is expanded
        under both while a self-reference stops at its second appearance.
        """
        return self._visit(schema, parent_path, depth, frozenset())

    def field_for(self, path: str, schema: Any, required: bool = False) -> SchemaField:
        """Describe one schema node as a single field, without recursing."""
        node, _ = self.resolver.resolve(schema)
        return self._create_field(path, node, name=path, required=required)

    def generate_example(self, schema: Any, depth: int = 0) -> Any:
        """Build a literal sample instance of ``schema``."""
        return self._example(schema, depth, frozenset())

    # -- traversal ------------------------------------------------------------

    def _enter(self, schema: Any, visited: frozenset[str]) -> tuple[dict, frozenset[str]] | None:
        node, refs = self.resolver.resolve(schema)
        if any(ref in visited for ref in refs):
            return None
        return node, visited.union(refs)

    def _visit(self, schema: Any, parent_path: str, depth: int, visited: frozenset[str]) -> list[SchemaField]:
        if depth > self.max_depth:
            return []
        entered = self._enter(schema, visited)
        if entered is None:
            return []
        node, visited = entered

        field_type = field_type_of(node)
        if field_type is FieldType.OBJECT:
            return self._visit_object(node, parent_path, depth, visited)
        if field_type is FieldType.ARRAY:
            return self._visit_array(node, parent_path, depth, visited)
        if parent_path:
            return [self._create_field(parent_path, node)]
        return []

    def _visit_object(self, node: dict, parent_path: str, depth: int, visited: frozenset[str]) -> list[SchemaField]:
        if depth > self.max_depth:
            return []

        fields: list[SchemaField] = []
        declared_required = node.get("required")
        required = {r for r in declared_required if isinstance(r, str)} if isinstance(declared_required, list) else set()
        properties = node.get("properties")
        if not isinstance(properties, dict):
            return fields

        for name, prop_schema in properties.items():
            name = str(name)
            path = f"{parent_path}.{name}" if parent_path else name
            entered = self._enter(prop_schema, visited)
            if entered is None:
                continue
            prop, prop_visited = entered
            prop_type = field_type_of(prop)

            if prop_type is FieldType.ARRAY:
                fields.extend(
                    self._visit_array(
                        prop, path, depth + 1, prop_visited, required=name in required, is_property=True
                    )
                )
                continue

            fields.append(self._create_field(path, prop, name=name, required=name in required))
            if prop_type is FieldType.OBJECT and prop.get("properties"):
                fields.extend(self._visit_object(prop, path, depth + 1, prop_visited))

        return fields

    def _visit_array(
        self,
        node: dict,
        path: str,
        depth: int,
        visited: frozenset[str],
        required: bool = False,
        is_property: bool = False,
    ) -> list[SchemaField]:
        if depth > self.max_depth:
            return []

        items = node.get("items")
        if isinstance(items, list):
            items = items[0] if items else None
        if not isinstance(items, dict):
            return []

        entered = self._enter(items, visited)
        if entered is None:
            return []
        item, item_visited = entered
        item_path = f"{path}[0]"
        item_type = field_type_of(item)

        if item_type is FieldType.OBJECT and item.get("properties"):
            fields = self._visit_object(item, item_path, depth + 1, item_visited)
            if is_property:
                # The array field holds presence and item bounds for object elements
                container = self._create_field(path, node, required=required)
                example = node.get("example")
                if not isinstance(example, list):
                    example = self._example(node, depth, visited)
                fields.insert(0, container.model_copy(update={"example": example}))
            return fields
        if item_type is FieldType.ARRAY:
            return self._visit_array(item, item_path, depth + 1, item_visited, required=required)
        return [self._create_field(item_path, item, required=required, container=node)]

    def _create_field(
        self,
        path: str,
        node: dict,
        name: str | None = None,
        required: bool = False,
        container: dict | None = None,
    ) -> SchemaField:
        if name is None:
            name = _element_name(path)

        declared = node.get("type")
        nullable = bool(node.get("nullable")) or (isinstance(declared, list) and "null" in declared)

        enum = node.get("enum")
        enum_values = [stringify(v) for v in enum] if isinstance(enum, list) and enum else None

        bounds = container if container is not None else node

        return SchemaField(
            name=name,
            path=path,
            field_type=field_type_of(node),
            format=_text(node.get("format")),
            pattern=_text(node.get("pattern")),
            required=required,
            nullable=nullable,
            enum_values=enum_values,
            description=_text(node.get("description")),
            minimum=_number(node.get("minimum")),
            maximum=_number(node.get("maximum")),
            exclusive_minimum=_number(node.get("exclusiveMinimum")),
            exclusive_maximum=_number(node.get("exclusiveMaximum")),
            min_length=_integer(node.get("minLength")),
            max_length=_integer(node.get("maxLength")),
            min_items=_integer(bounds.get("minItems")),
            max_items=_integer(bounds.get("maxItems")),
            unique_items=_flag(bounds.get("uniqueItems")),
            example=node.get("example"),
        )

    # -- example generation ---------------------------------------------------

    def _example(self, schema: Any, depth: int, visited: frozenset[str]) -> Any:
        if depth > self.max_depth:
            return None
        entered = self._enter(schema, visited)
        if entered is None:
            return None
        node, visited = entered

        if "example" in node:
            return node["example"]

        field_type = field_type_of(node)
        if field_type is FieldType.OBJECT:
            properties = node.get("properties")
            if not isinstance(properties, dict):
                return {}
            return {
                str(name): self._example(prop, depth + 1, visited)
                for name, prop in properties.items()
            }
        if field_type is FieldType.ARRAY:
            item = self._example(node.get("items") or {}, depth + 1, visited)
            return [item] if item is not None else []
        if field_type is FieldType.STRING:
            if isinstance(node.get("enum"), list) and node["enum"]:
                return node["enum"][0]
            return FORMAT_EXAMPLES.get(str(node.get("format", "")).lower(), "string")
        if field_type is FieldType.INTEGER:
            minimum = _number(node.get("minimum"))
            return int(minimum) if minimum is not None else 0
        if field_type is FieldType.NUMBER:
            minimum = _number(node.get("minimum"))
            return minimum if minimum is not None else 0
        if field_type is FieldType.BOOLEAN:
            return False
        return None
