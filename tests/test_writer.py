import json
from pathlib import Path

import pytest
import yaml

from auto_openapi.errors import UnsupportedFormatError
from auto_openapi.generator.writer import detect_format, normalize_format, render, write_document

DOCUMENT = {
    "openapi": "3.0.0",
    "info": {"title": "Café API", "version": "1.0.0"},
    "paths": {"/api/items": {"get": {"responses": {"200": {"description": "OK"}}}}},
}


class TestFormats:
    def test_normalize(self):
        assert normalize_format("json") == "json"
        assert normalize_format("YAML") == "yaml"
        assert normalize_format("yml") == "yaml"

    def test_unsupported(self):
        with pytest.raises(UnsupportedFormatError, match="Unsupported format: xml") as exc_info:
            normalize_format("xml")
        assert exc_info.value.format == "xml"

    def test_detect_yaml(self):
        assert detect_format(Path("openapi.yaml")) == "yaml"
        assert detect_format(Path("openapi.YML")) == "yaml"

    def test_detect_json_default(self):
        assert detect_format(Path("openapi.json")) == "json"
        assert detect_format(Path("openapi")) == "json"


class TestRender:
    def test_json(self):
        text = render(DOCUMENT, "json")
        assert text.endswith("\n")
        assert json.loads(text) == DOCUMENT
        assert "Café" in text

    def test_yaml_keeps_key_order(self):
        text = render(DOCUMENT, "yaml")
        assert yaml.safe_load(text) == DOCUMENT
        assert text.index("openapi") < text.index("info") < text.index("paths")

    def test_render_rejects_unknown(self):
        with pytest.raises(UnsupportedFormatError):
            render(DOCUMENT, "toml")


class TestWriteDocument:
    def test_creates_parent_dirs(self, tmp_path):
        output = tmp_path / "docs" / "api" / "openapi.yaml"
        assert write_document(DOCUMENT, output, "yaml") == output
        assert yaml.safe_load(output.read_text(encoding="utf-8"))["info"]["title"] == "Café API"
