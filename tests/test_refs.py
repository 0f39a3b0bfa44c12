from openapi_testgen.parser.refs import UNRESOLVED, RefResolver

DOC = {
    "paths": {"/pets": {"get": {"operationId": "listPets"}}},
    "components": {
        "schemas": {
            "Pet": {"type": "object", "required": ["id"], "properties": {"id": {"type": "integer"}}},
            "Alias": {"$ref": "#/components/schemas/Pet"},
            "Named": {"type": "object", "required": ["name"], "properties": {"name": {"type": "string"}}},
            "A": {"$ref": "#/components/schemas/B"},
            "B": {"$ref": "#/components/schemas/A"},
        }
    },
}


class TestResolve:
    def test_follows_ref(self):
        node, refs = RefResolver(DOC).resolve({"$ref": "#/components/schemas/Pet"})
        assert node["properties"]["id"] == {"type": "integer"}
        assert refs == ("#/components/schemas/Pet",)

    def test_follows_ref_chain(self):
        node, refs = RefResolver(DOC).resolve({"$ref": "#/components/schemas/Alias"})
        assert "id" in node["properties"]
        assert refs == ("#/components/schemas/Alias", "#/components/schemas/Pet")

    def test_plain_schema_untouched(self):
        node, refs = RefResolver(DOC).resolve({"type": "string"})
        assert node == {"type": "string"}
        assert refs == ()

    def test_non_mapping_resolves_empty(self):
        assert RefResolver(DOC).resolve(None) == ({}, ())

    def test_circular_chain_stops(self):
        node, refs = RefResolver(DOC).resolve({"$ref": "#/components/schemas/A"})
        assert node == UNRESOLVED
        assert refs == ("#/components/schemas/A", "#/components/schemas/B")


class TestLookup:
    def test_escaped_pointer(self):
        assert RefResolver(DOC).lookup("#/paths/~1pets/get") == {"operationId": "listPets"}

    def test_missing_ref_is_generic_object(self):
        assert RefResolver(DOC).lookup("#/components/schemas/Missing") == {"type": "object"}

    def test_external_ref_is_generic_object(self):
        assert RefResolver(DOC).lookup("other.yaml#/Pet") == {"type": "object"}


class TestComposition:
    def test_all_of_merges_properties_and_required(self):
        schema = {
            "allOf": [
                {"$ref": "#/components/schemas/Pet"},
                {"$ref": "#/components/schemas/Named"},
                {"properties": {"age": {"type": "integer"}}, "required": ["age"]},
            ]
        }
        node, _ = RefResolver(DOC).resolve(schema)
        assert list(node["properties"]) == ["id", "name", "age"]
        assert node["required"] == ["id", "name", "age"]
        assert node["type"] == "object"

    def test_one_of_takes_first_option(self):
        schema = {"oneOf": [{"$ref": "#/components/schemas/Named"}, {"type": "string"}], "description": "either"}
        node, _ = RefResolver(DOC).resolve(schema)
        assert "name" in node["properties"]
        assert node["description"] == "either"

    def test_any_of_takes_first_option(self):
        node, _ = RefResolver(DOC).resolve({"anyOf": [{"type": "integer"}, {"type": "string"}]})
        assert node["type"] == "integer"
