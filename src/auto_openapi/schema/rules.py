"""Validation-rule schema compiler.

Turns a per-field rule set such as::

    {"name": ["required", "string", "max:255"], "tags.*": "string|max:50"}

into a JSON-Schema-shaped object descriptor.

Tokens are folded strictly left to right over one accumulator. Bounds
(``min``/``max``/``between``) are interpreted under the type the field has
*when the bound is folded*, so ``["max:5", "integer"]`` yields ``maxLength``
while ``["integer", "max:5"]`` yields ``maximum``.
"""

import logging
from typing import Any

from auto_openapi.annotations import DimensionsRule, EnumRule, FileRule
from auto_openapi.routing.introspect import MetadataProvider, RuntimeIntrospector

logger = logging.getLogger(__name__)

ARRAY_SUFFIX = ".*"

TYPE_TOKENS = {
    "string": "string",
    "integer": "integer",
    "int": "integer",
    "numeric": "integer",
    "boolean": "boolean",
    "bool": "boolean",
    "array": "array",
    "json": "object",
}

FORMAT_TOKENS = {
    "date": "date",
    "date_format": "date-time",
    "email": "email",
    "url": "uri",
    "ip": "ipv4",
    "ipv4": "ipv4",
    "ipv6": "ipv6",
    "file": "binary",
    "image": "binary",
}


def split_rules(rules: Any) -> list:
    """Normalize ``"a|b:c"`` strings, lists and single rule objects to a list."""
    if isinstance(rules, str):
        return [token for token in rules.split("|") if token]
    if isinstance(rules, (list, tuple)):
        return list(rules)
    return [rules]


def _number(text: str) -> int | float | None:
    for cast in (int, float):
        try:
            return cast(text.strip())
        except ValueError:
            continue
    return None


def _set_type(schema: dict, type_: str) -> None:
    schema["type"] = type_
    if type_ == "array":
        schema.setdefault("items", {"type": "string"})
    else:
        schema.pop("items", None)


def _set_bounds(schema: dict, low: int | float | None, high: int | float | None) -> None:
    if schema["type"] == "string":
        low_key, high_key = "minLength", "maxLength"
    else:
        low_key, high_key = "minimum", "maximum"
    if low is not None:
        schema[low_key] = low
    if high is not None:
        schema[high_key] = high


class RuleSchemaCompiler:
    """Compiles rule sets into object schemas."""

    def __init__(self, provider: MetadataProvider | None = None):
        self.provider = provider or RuntimeIntrospector()

    def compile_request(self, request_type: Any) -> dict:
        """Schema for a FormRequest type; ``{}`` when it cannot be introspected."""
        if not self.provider.is_form_request(request_type):
            return {}
        try:
            rules = self.provider.rules(request_type)
        except Exception:
            logger.warning("Cannot read rules of %r", request_type, exc_info=True)
            return {}
        return self.compile_all(rules)

    def compile_all(self, rules: dict) -> dict:
        properties: dict[str, dict | None] = {}
        element_rules: dict[str, dict[int, list]] = {}
        required = []

        for field, field_rules in rules.items():
            tokens = split_rules(field_rules)
            if field.endswith(ARRAY_SUFFIX):
                base, depth = field, 0
                while base.endswith(ARRAY_SUFFIX):
                    base, depth = base[: -len(ARRAY_SUFFIX)], depth + 1
                element_rules.setdefault(base, {})[depth] = tokens
                properties.setdefault(base, None)
                continue
            properties[field] = self.compile(field, tokens)
            if "required" in tokens:
                required.append(field)

        for base, levels in element_rules.items():
            # innermost element first; each level wraps the one below it
            items = None
            for depth in range(max(levels), 0, -1):
                node = self.compile(base + ARRAY_SUFFIX * depth, levels[depth]) if depth in levels else None
                if items is not None:
                    node = node or {}
                    node["type"] = "array"
                    node["items"] = items
                items = node
            parent = properties[base] or {}
            parent["type"] = "array"
            parent["items"] = items
            properties[base] = parent

        schema: dict = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    def compile(self, field: str, rules: Any) -> dict:
        schema: dict = {"type": "string"}
        for token in split_rules(rules):
            if isinstance(token, str):
                self._apply_token(field, token, schema)
            elif isinstance(token, EnumRule):
                schema["enum"] = list(token.values)
            elif isinstance(token, (FileRule, DimensionsRule)):
                _set_type(schema, "string")
                schema["format"] = "binary"
            else:
                logger.debug("Ignoring rule object %r on %s", token, field)
        return schema

    def _apply_token(self, field: str, token: str, schema: dict) -> None:
        name, _, argument = token.strip().partition(":")
        if name == "regex":
            if argument:
                schema["pattern"] = argument
            return
        args = [arg.strip() for arg in argument.split(",")] if argument else []

        if name in TYPE_TOKENS:
            _set_type(schema, TYPE_TOKENS[name])
        elif name in FORMAT_TOKENS:
            _set_type(schema, "string")
            schema["format"] = FORMAT_TOKENS[name]
        elif name == "min" and args:
            _set_bounds(schema, _number(args[0]), None)
        elif name == "max" and args:
            _set_bounds(schema, None, _number(args[0]))
        elif name == "between" and len(args) == 2:
            _set_bounds(schema, _number(args[0]), _number(args[1]))
        elif name == "in" and args:
            schema["enum"] = args
        elif name == "nullable":
            schema["nullable"] = True
        elif name != "required":
            logger.debug("Ignoring unrecognized rule %r on %s", token, field)
