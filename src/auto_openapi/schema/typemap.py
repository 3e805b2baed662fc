"""Translation tables from host type names to OpenAPI primitive types."""

import decimal
import re
import types
import typing
from typing import Any

TYPE_NAMES = {
    "int": "integer",
    "integer": "integer",
    "float": "number",
    "double": "number",
    "decimal": "number",
    "number": "number",
    "bool": "boolean",
    "boolean": "boolean",
    "str": "string",
    "string": "string",
    "list": "array",
    "tuple": "array",
    "array": "array",
    "dict": "object",
    "object": "object",
}

COLUMN_FAMILIES = {
    "string": ("varchar", "nvarchar", "text", "char", "nchar", "string"),
    "integer": ("int", "integer", "smallint", "bigint", "tinyint"),
    "number": ("float", "double", "decimal", "numeric", "real"),
    "boolean": ("boolean", "bool"),
    "object": ("json", "jsonb"),
}
# date, datetime, timestamp and time columns fall through to "string".
COLUMN_TYPES = {name: family for family, names in COLUMN_FAMILIES.items() for name in names}

PYTHON_TYPES = {
    bool: "boolean",
    int: "integer",
    float: "number",
    decimal.Decimal: "number",
    str: "string",
    list: "array",
    tuple: "array",
    set: "array",
    frozenset: "array",
    dict: "object",
}

_SQL_NAME = re.compile(r"[A-Za-z_]+")


def type_name_to_openapi(name: str) -> str:
    """Map a documented type name (``int``, ``bool``, ``array``...) to OpenAPI."""
    return TYPE_NAMES.get(name.strip().lower(), "string")


def column_type_to_openapi(sql_type: str) -> str:
    """Map a SQL column type such as ``VARCHAR(255)`` to OpenAPI."""
    match = _SQL_NAME.match(sql_type.strip())
    if not match:
        return "string"
    return COLUMN_TYPES.get(match.group().lower(), "string")


def hint_to_openapi(hint: Any) -> str:
    """Map a Python type hint to OpenAPI; unknown hints become ``string``."""
    origin = typing.get_origin(hint)
    if origin in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        return hint_to_openapi(args[0]) if args else "string"
    return PYTHON_TYPES.get(origin or hint, "string")


def item_hint(hint: Any) -> Any:
    """Element hint of ``list[X]``-style hints, or None."""
    if typing.get_origin(hint) in (list, tuple, set, frozenset):
        args = typing.get_args(hint)
        if args:
            return args[0]
    return None
