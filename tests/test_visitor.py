from openapi_testgen.parser.base import FieldType
from openapi_testgen.parser.refs import RefResolver
from openapi_testgen.parser.visitor import SchemaVisitor, field_type_of, stringify

COMPONENTS = {
    "components": {
        "schemas": {
            "Node": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "parent": {"$ref": "#/components/schemas/Node"},
                    "children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}},
                },
            },
            "Address": {"type": "object", "properties": {"city": {"type": "string"}}},
        }
    }
}


def _paths(fields):
    return [f.path for f in fields]


def _nested(levels: int) -> dict:
    schema: dict = {"type": "string"}
    for _ in range(levels):
        schema = {"type": "object", "properties": {"child": schema}}
    return schema


class TestVisit:
    def test_flat_object(self):
        schema = {
            "type": "object",
            "required": ["id"],
            "properties": {
                "id": {"type": "integer"},
                "tags": {"type": "array", "items": {"type": "string"}},
                "age": {"type": "integer", "minimum": 0},
            },
        }
        fields = SchemaVisitor().visit(schema)

        assert _paths(fields) == ["id", "tags[0]", "age"]
        assert fields[0].required is True
        assert fields[1].name == "tags"
        assert fields[1].field_type is FieldType.STRING
        assert fields[2].minimum == 0

    def test_nested_object(self):
        schema = {
            "type": "object",
            "properties": {"user": {"type": "object", "properties": {"email": {"type": "string", "format": "email"}}}},
        }
        fields = SchemaVisitor().visit(schema)
        assert _paths(fields) == ["user", "user.email"]
        assert fields[0].field_type is FieldType.OBJECT
        assert fields[1].format == "email"

    def test_array_of_objects(self):
        schema = {
            "type": "object",
            "properties": {
                "items": {
                    "type": "array",
                    "items": {"type": "object", "properties": {"id": {"type": "string"}}},
                }
            },
        }
        assert _paths(SchemaVisitor().visit(schema)) == ["items", "items[0].id"]

    def test_array_of_objects_keeps_container_field(self):
        schema = {
            "type": "object",
            "required": ["lines"],
            "properties": {
                "lines": {
                    "type": "array",
                    "minItems": 1,
                    "maxItems": 10,
                    "items": {"type": "object", "properties": {"sku": {"type": "string"}}},
                }
            },
        }
        lines, sku = SchemaVisitor().visit(schema)
        assert lines.path == "lines"
        assert lines.field_type is FieldType.ARRAY
        assert lines.required is True
        assert lines.min_items == 1
        assert lines.max_items == 10
        assert lines.example == [{"sku": "string"}]
        assert sku.path == "lines[0].sku"
        assert sku.min_items is None

    def test_nested_array_name(self):
        schema = {
            "type": "object",
            "properties": {"matrix": {"type": "array", "items": {"type": "array", "items": {"type": "integer"}}}},
        }
        [cell] = SchemaVisitor().visit(schema)
        assert cell.path == "matrix[0][0]"
        assert cell.name == "matrix"

    def test_element_inherits_container_constraints(self):
        schema = {
            "type": "object",
            "required": ["tags"],
            "properties": {
                "tags": {"type": "array", "minItems": 1, "maxItems": 3, "uniqueItems": True, "items": {"type": "string"}}
            },
        }
        [tags] = SchemaVisitor().visit(schema)
        assert tags.required is True
        assert tags.min_items == 1
        assert tags.max_items == 3
        assert tags.unique_items is True

    def test_root_array(self):
        schema = {"type": "array", "items": {"type": "object", "properties": {"id": {"type": "integer"}}}}
        assert _paths(SchemaVisitor().visit(schema)) == ["[0].id"]

    def test_root_primitive_has_no_fields(self):
        assert SchemaVisitor().visit({"type": "string"}) == []

    def test_parent_path_prefix(self):
        schema = {"type": "object", "properties": {"id": {"type": "integer"}}}
        assert _paths(SchemaVisitor().visit(schema, parent_path="data")) == ["data.id"]

    def test_paths_are_unique(self):
        schema = {
            "type": "object",
            "properties": {
                "a": {"type": "object", "properties": {"b": {"type": "string"}}},
                "list": {"type": "array", "items": {"type": "object", "properties": {"b": {"type": "string"}}}},
            },
        }
        paths = _paths(SchemaVisitor().visit(schema))
        assert len(paths) == len(set(paths))


class TestVisitBounds:
    def test_depth_is_bounded(self):
        fields = SchemaVisitor(max_depth=2).visit(_nested(10))
        assert _paths(fields) == ["child", "child.child", "child.child.child"]
        assert max(f.dot_depth for f in fields) == 2

    def test_default_depth_terminates_deep_schema(self):
        fields = SchemaVisitor().visit(_nested(50))
        assert all(f.dot_depth <= 5 for f in fields)

    def test_self_reference_terminates(self):
        visitor = SchemaVisitor(RefResolver(COMPONENTS))
        fields = visitor.visit({"$ref": "#/components/schemas/Node"})
        assert _paths(fields) == ["name"]

    def test_sibling_reuse_expands_both(self):
        schema = {
            "type": "object",
            "properties": {
                "billing": {"$ref": "#/components/schemas/Address"},
                "shipping": {"$ref": "#/components/schemas/Address"},
            },
        }
        fields = SchemaVisitor(RefResolver(COMPONENTS)).visit(schema)
        assert _paths(fields) == ["billing", "billing.city", "shipping", "shipping.city"]

    def test_visits_are_independent(self):
        visitor = SchemaVisitor(RefResolver(COMPONENTS))
        first = visitor.visit({"$ref": "#/components/schemas/Address"})
        second = visitor.visit({"$ref": "#/components/schemas/Address"})
        assert _paths(first) == _paths(second) == ["city"]


class TestMalformedNodes:
    def test_non_string_attributes_are_dropped(self):
        schema = {
            "type": "object",
            "properties": {
                "code": {"type": "string", "description": 2024, "format": 7, "pattern": ["^a"]},
                "flags": {"type": "array", "uniqueItems": "yes", "items": {"type": "string"}},
            },
        }
        code, flags = SchemaVisitor().visit(schema)
        assert code.description is None
        assert code.format is None
        assert code.pattern is None
        assert flags.unique_items is None

    def test_odd_containers_are_ignored(self):
        visitor = SchemaVisitor()
        assert visitor.visit({"type": "object", "properties": ["a", "b"]}) == []
        assert _paths(visitor.visit({"type": "object", "required": "id", "properties": {"id": {"type": "integer"}}})) == ["id"]
        assert visitor.visit({"type": "array", "items": "string"}) == []
        assert visitor.generate_example({"type": "object", "properties": ["a"]}) == {}

    def test_non_string_property_names(self):
        fields = SchemaVisitor().visit({"type": "object", "properties": {200: {"type": "string"}}})
        assert _paths(fields) == ["200"]


class TestFieldFor:
    def test_nullable_type_list(self):
        f = SchemaVisitor().field_for("note", {"type": ["string", "null"], "maxLength": 20})
        assert f.field_type is FieldType.STRING
        assert f.nullable is True
        assert f.max_length == 20

    def test_boolean_exclusive_bound_ignored(self):
        f = SchemaVisitor().field_for("price", {"type": "number", "minimum": 0, "exclusiveMinimum": True})
        assert f.minimum == 0
        assert f.exclusive_minimum is None

    def test_numeric_exclusive_bound_kept(self):
        f = SchemaVisitor().field_for("price", {"type": "number", "exclusiveMinimum": 0})
        assert f.exclusive_minimum == 0

    def test_enum_values_are_text(self):
        f = SchemaVisitor().field_for("flag", {"enum": [True, 1, None]}, required=True)
        assert f.enum_values == ["true", "1", "null"]
        assert f.required is True


class TestGenerateExample:
    def test_object_example(self):
        schema = {
            "type": "object",
            "properties": {
                "email": {"type": "string", "format": "email"},
                "count": {"type": "integer", "minimum": 5},
                "kind": {"type": "string", "enum": ["a", "b"]},
                "tags": {"type": "array", "items": {"type": "string"}},
                "active": {"type": "boolean"},
            },
        }
        assert SchemaVisitor().generate_example(schema) == {
            "email": "user@example.com",
            "count": 5,
            "kind": "a",
            "tags": ["string"],
            "active": False,
        }

    def test_explicit_example_wins(self):
        schema = {"type": "object", "example": {"id": 7}, "properties": {"id": {"type": "integer"}}}
        assert SchemaVisitor().generate_example(schema) == {"id": 7}

    def test_recursive_example_terminates(self):
        visitor = SchemaVisitor(RefResolver(COMPONENTS))
        assert visitor.generate_example({"$ref": "#/components/schemas/Node"}) == {
            "name": "string",
            "parent": None,
            "children": [],
        }


class TestHelpers:
    def test_field_type_inferred_from_shape(self):
        assert field_type_of({"properties": {"a": {}}}) is FieldType.OBJECT
        assert field_type_of({"items": {}}) is FieldType.ARRAY
        assert field_type_of({}) is FieldType.ANY

    def test_stringify(self):
        assert stringify(False) == "false"
        assert stringify(None) == "null"
        assert stringify(3) == "3"
