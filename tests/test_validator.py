from openapi_testgen.generator.model import GeneratedFile
from openapi_testgen.generator.validator import validate_files, validate_json, validate_python


def _file(filename: str, content: str, language: str = "python") -> GeneratedFile:
    return GeneratedFile(filename=filename, content=content, language=language)


class TestValidatePython:
    def test_valid_code(self):
        errors = validate_python([_file("test_ok.py", "import os\nx = 1\n")])
        assert errors == {}

    def test_syntax_error(self):
        errors = validate_python([_file("test_bad.py", "def foo(\n")])
        assert "test_bad.py" in errors
        assert "SyntaxError" in errors["test_bad.py"]

    def test_skips_non_python(self):
        errors = validate_python([_file("Pets.java", "class {", "java"), _file("test_ok.py", "x = 1")])
        assert errors == {}

    def test_skips_empty_init(self):
        errors = validate_python([_file("__init__.py", "")])
        assert errors == {}


class TestValidateJson:
    def test_valid_json(self):
        errors = validate_json([_file("api.postman_collection.json", '{"item": []}', "json")])
        assert errors == {}

    def test_invalid_json(self):
        errors = validate_json([_file("bad.json", '{"item": [', "json")])
        assert "bad.json" in errors
        assert errors["bad.json"].startswith("JSONDecodeError")

    def test_skips_non_json(self):
        errors = validate_json([_file("testcases.md", "# {", "markdown")])
        assert errors == {}


class TestValidateFiles:
    def test_collects_all_errors(self):
        errors = validate_files([
            _file("test_bad.py", "def foo(\n"),
            _file("bad.json", "{", "json"),
            _file("test_ok.py", "x = 1\n"),
        ])
        assert set(errors) == {"test_bad.py", "bad.json"}

    def test_skips_binary_files(self):
        errors = validate_files([
            GeneratedFile(filename="cases.xlsx", content=b"PK\x03\x04", language="xlsx"),
            GeneratedFile(filename="odd.json", content=b"{", language="json"),
        ])
        assert errors == {}
