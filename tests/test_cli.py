from pathlib import Path

from click.testing import CliRunner

from openapi_testgen.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliGenerate:
    def test_generate_pytest(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "petstore.yaml"), "-o", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "tests" / "test_pets.py").exists()
        assert (tmp_path / "api_tests" / "client.py").exists()
        assert "Generated 20 tests (5 positive, 15 negative, 0 edge) for 5 endpoints." in result.output

    def test_generate_postman(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--framework", "postman",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "Petstore.postman_collection.json").exists()

    def test_generate_spreadsheet(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--framework", "xlsx",
        ])

        assert result.exit_code == 0, result.output
        workbook = tmp_path / "Petstore_TestCases.xlsx"
        assert workbook.read_bytes().startswith(b"PK")

    def test_package_option_for_pytest(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--package", "petstore_api",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "petstore_api" / "client.py").exists()

    def test_package_option_for_rest_assured(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--framework", "rest-assured",
            "--package", "org.acme",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "src" / "test" / "java" / "org" / "acme" / "PetsApiTest.java").exists()
        assert (tmp_path / "pom.xml").exists()

    def test_framework_from_environment(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["generate", str(FIXTURES / "petstore.yaml"), "-o", str(tmp_path)],
            env={"TESTGEN_FRAMEWORK": "testcases"},
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "testcases.md").exists()

    def test_endpoint_filter(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--endpoint", "POST /pets",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "tests" / "test_pets.py").exists()
        assert not (tmp_path / "tests" / "test_store.py").exists()
        assert "Generated 11 tests" in result.output

    def test_edge_cases_and_no_negative(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--no-negative",
            "--edge-cases",
        ])

        assert result.exit_code == 0, result.output
        assert "Generated 9 tests (5 positive, 0 negative, 4 edge)" in result.output
        assert "def test_create_pet_at_max_age(api_client):" in (tmp_path / "tests" / "test_pets.py").read_text()

    def test_append_keeps_existing_files(self, tmp_path):
        (tmp_path / "requirements.txt").write_text("custom\n")
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--append",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "requirements.txt").read_text() == "custom\n"
        assert "Skipped" in result.output
        assert (tmp_path / "tests" / "conftest.py").exists()

    def test_overwrites_by_default(self, tmp_path):
        (tmp_path / "requirements.txt").write_text("custom\n")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "petstore.yaml"), "-o", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "requests" in (tmp_path / "requirements.txt").read_text()

    def test_no_matching_endpoints(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path / "out"),
            "--endpoint", "nothing*",
        ])

        assert result.exit_code == 1
        assert "No endpoints matched the filter" in result.output
        assert not (tmp_path / "out").exists()

    def test_invalid_document(self, tmp_path):
        doc = tmp_path / "notes.yaml"
        doc.write_text("title: not an api\n")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(doc), "-o", str(tmp_path / "out")])

        assert result.exit_code == 1
        assert "Not an OpenAPI document" in result.output

    def test_missing_document(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(tmp_path / "missing.yaml"), "-o", str(tmp_path)])
        assert result.exit_code == 2

    def test_unknown_framework_rejected(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.yaml"),
            "-o", str(tmp_path),
            "--framework", "junit",
        ])
        assert result.exit_code == 2


class TestCliEndpoints:
    def test_lists_endpoints(self):
        runner = CliRunner()
        result = runner.invoke(main, ["endpoints", str(FIXTURES / "petstore.yaml")])

        assert result.exit_code == 0, result.output
        assert "Petstore 1.2.0 (https://api.petstore.example.com/v1)" in result.output
        assert "createPet" in result.output
        assert "[store]" in result.output
        assert "Found 5 endpoints." in result.output

    def test_filtered(self):
        runner = CliRunner()
        result = runner.invoke(main, ["endpoints", str(FIXTURES / "petstore.yaml"), "--endpoint", "/pets/*"])

        assert result.exit_code == 0, result.output
        assert "Found 2 endpoints." in result.output

    def test_invalid_document(self, tmp_path):
        doc = tmp_path / "notes.yaml"
        doc.write_text("title: not an api\n")
        runner = CliRunner()
        result = runner.invoke(main, ["endpoints", str(doc)])
        assert result.exit_code == 1


class TestCliVersion:
    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
