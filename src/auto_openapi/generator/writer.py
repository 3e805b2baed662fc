"""Rendering and persistence of generated documents."""

import json
from pathlib import Path

import yaml

from auto_openapi.errors import UnsupportedFormatError

FORMATS = {"json": "json", "yaml": "yaml", "yml": "yaml"}


def normalize_format(fmt: str) -> str:
    """Return ``json`` or ``yaml``; raise for anything else."""
    try:
        return FORMATS[fmt.strip().lower()]
    except KeyError:
        raise UnsupportedFormatError(fmt) from None


def detect_format(file_path: Path) -> str:
    """Pick the output format from the file suffix. Defaults to JSON."""
    if file_path.suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return "json"


def render(document: dict, fmt: str) -> str:
    fmt = normalize_format(fmt)
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def write_document(document: dict, output: Path, fmt: str) -> Path:
    """Render ``document`` and write it to ``output``, creating parent directories."""
    text = render(document, fmt)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    return output
