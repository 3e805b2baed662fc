import json
from pathlib import Path
from unittest.mock import patch

import yaml
from click.testing import CliRunner

from auto_openapi.cli import main

FIXTURES = Path(__file__).parent / "fixtures"
APP = "sample_app:routes"


def _invoke(*args):
    runner = CliRunner()
    return runner.invoke(main, list(args))


class TestCliGenerate:
    def test_generate_json_file(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        result = _invoke("generate", APP, "--app-dir", str(FIXTURES), "-o", str(output_file))

        assert result.exit_code == 0
        assert "Documentation saved to" in result.output
        doc = json.loads(output_file.read_text(encoding="utf-8"))
        assert doc["openapi"] == "3.0.0"
        assert "/api/items/{id}" in doc["paths"]

    def test_generate_yaml_from_suffix(self, tmp_path):
        output_file = tmp_path / "docs" / "openapi.yml"
        result = _invoke("generate", APP, "--app-dir", str(FIXTURES), "-o", str(output_file))

        assert result.exit_code == 0
        doc = yaml.safe_load(output_file.read_text(encoding="utf-8"))
        assert doc["info"]["title"] == "API Documentation"

    def test_explicit_format_overrides_suffix(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        result = _invoke("generate", APP, "--app-dir", str(FIXTURES), "-o", str(output_file), "--format", "yaml")

        assert result.exit_code == 0
        assert yaml.safe_load(output_file.read_text(encoding="utf-8"))["openapi"] == "3.0.0"
        assert not output_file.read_text(encoding="utf-8").startswith("{")

    def test_generate_to_stdout(self):
        result = _invoke("generate", APP, "--app-dir", str(FIXTURES))

        assert result.exit_code == 0
        assert '"openapi": "3.0.0"' in result.output

    def test_unsupported_format(self, tmp_path):
        output_file = tmp_path / "openapi.xml"
        result = _invoke("generate", APP, "--app-dir", str(FIXTURES), "-o", str(output_file), "--format", "xml")

        assert result.exit_code == 1
        assert "Error generating documentation: Unsupported format: xml" in result.output
        assert not output_file.exists()

    def test_config_and_overrides(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        result = _invoke(
            "generate", APP,
            "--app-dir", str(FIXTURES),
            "-o", str(output_file),
            "--config", str(FIXTURES / "config.yaml"),
            "--title", "Override",
            "--base-url", "https://staging.example.com/api",
            "--no-oauth2",
        )

        assert result.exit_code == 0
        doc = json.loads(output_file.read_text(encoding="utf-8"))
        assert doc["info"]["title"] == "Override"
        assert doc["info"]["version"] == "2.1.0"
        assert doc["servers"] == [{"url": "https://staging.example.com/api", "description": "API Server"}]
        schemes = doc["components"]["securitySchemes"]
        assert set(schemes) == {"bearerAuth", "apiKey"}
        assert doc["paths"]["/api/users/{team}"]["get"]["security"] == [{"apiKey": []}]

    def test_always_bearer(self, tmp_path):
        output_file = tmp_path / "openapi.json"
        result = _invoke("generate", APP, "--app-dir", str(FIXTURES), "-o", str(output_file), "--always-bearer")

        assert result.exit_code == 0
        doc = json.loads(output_file.read_text(encoding="utf-8"))
        for path_item in doc["paths"].values():
            for operation in path_item.values():
                assert operation["security"] == [{"bearerAuth": []}]

    def test_bad_route_table(self):
        result = _invoke("generate", "sample_app:nothing", "--app-dir", str(FIXTURES))

        assert result.exit_code == 1
        assert "Error generating documentation" in result.output


class TestCliRoutes:
    def test_lists_operations(self):
        result = _invoke("routes", APP, "--app-dir", str(FIXTURES))

        assert result.exit_code == 0
        assert "GET     /api/items/{id}  [Items]  Get item by ID" in result.output
        assert "POST    /api/items  [Items]  Create a new item" in result.output
        assert "/api/items/internal" not in result.output

    def test_import_error(self):
        result = _invoke("routes", "no_such_module_here:routes")

        assert result.exit_code == 1
        assert "Cannot import" in result.output


class TestCliFailures:
    @patch("auto_openapi.cli.DocumentAssembler")
    def test_assembler_failure_exits_one(self, MockAssembler, tmp_path):
        MockAssembler.return_value.assemble.side_effect = RuntimeError("boom")
        output_file = tmp_path / "openapi.json"

        result = _invoke("generate", APP, "--app-dir", str(FIXTURES), "-o", str(output_file))

        assert result.exit_code == 1
        assert "Error generating documentation: boom" in result.output
        assert not output_file.exists()
