"""Resource schema compiler.

A response or request payload type ("resource") is described by up to four
independent evidence sources, merged property by property with later
sources overwriting earlier ones:

1. ``@property <type> <name> [description]`` tags in the class docstring;
2. columns of the SQLAlchemy record the resource wraps;
3. literal-shape inference over the ``to_dict`` serializer;
4. explicit annotations (``ApiResource.properties`` then ``ApiProperty``).

Explicit annotations are always applied last.
"""

import ast
import copy
import inspect
import logging
import re
from typing import Any, Callable, Iterable

from auto_openapi.annotations import ApiProperty, ApiResource
from auto_openapi.routing.introspect import MetadataProvider, RuntimeIntrospector
from auto_openapi.schema.typemap import (
    column_type_to_openapi,
    hint_to_openapi,
    item_hint,
    type_name_to_openapi,
)

logger = logging.getLogger(__name__)

DEFAULT_SOURCES = ("docstring", "columns", "serializer")

PROPERTY_TAG_RE = re.compile(r"^[ \t]*@property[ \t]+(\S+)[ \t]+(\w+)(?:[ \t]+(.+))?$", re.MULTILINE)


def property_schema(annotation: ApiProperty, hint: Any = None) -> dict:
    """Schema for one ``ApiProperty``; the hint fills in a missing type."""
    schema: dict = {"type": annotation.type or hint_to_openapi(hint)}
    for key in ("format", "description", "example", "enum"):
        value = getattr(annotation, key)
        if value is not None:
            schema[key] = value
    if annotation.nullable:
        schema["nullable"] = True
    if schema["type"] == "array":
        if annotation.items:
            schema["items"] = copy.deepcopy(annotation.items)
        else:
            element = item_hint(hint)
            schema["items"] = {"type": hint_to_openapi(element) if element is not None else "string"}
    return schema


def _literal_schema(node: ast.expr) -> dict | None:
    """Schema inferred from a literal expression; None for anything else."""
    if isinstance(node, ast.UnaryOp) and isinstance(node.op, (ast.USub, ast.UAdd)):
        node = node.operand
        if not (isinstance(node, ast.Constant) and type(node.value) in (int, float)):
            return None
    if isinstance(node, ast.Constant):
        value = node.value
        if isinstance(value, bool):
            return {"type": "boolean"}
        if isinstance(value, int):
            return {"type": "integer"}
        if isinstance(value, float):
            return {"type": "number"}
        if isinstance(value, str):
            return {"type": "string"}
        return None
    if isinstance(node, ast.Dict):
        return {"type": "object", "properties": _literal_properties(node)}
    if isinstance(node, (ast.List, ast.Tuple, ast.Set)):
        items = _literal_schema(node.elts[0]) if node.elts else None
        return {"type": "array", "items": items or {"type": "string"}}
    return None


def _literal_properties(node: ast.Dict) -> dict:
    properties = {}
    for key, value in zip(node.keys, node.values):
        if not (isinstance(key, ast.Constant) and isinstance(key.value, str)):
            continue
        schema = _literal_schema(value)
        if schema is not None:
            properties[key.value] = schema
    return properties


def _named_type_schema(type_name: str) -> dict:
    schema = {"type": type_name_to_openapi(type_name)}
    if schema["type"] == "array":
        schema["items"] = {"type": "string"}
    return schema


def _declared_schema(declared: Any) -> dict:
    if not isinstance(declared, dict):
        return _named_type_schema(declared)
    schema = copy.deepcopy(declared)
    if schema.get("type") == "array":
        schema.setdefault("items", {"type": "string"})
    return schema


def _is_docstring(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


class ResourceSchemaCompiler:
    """Derives object schemas for resource classes."""

    def __init__(self, provider: MetadataProvider | None = None, sources: Iterable[str] = DEFAULT_SOURCES):
        self.provider = provider or RuntimeIntrospector()
        self._collectors: dict[str, Callable[[type], dict]] = {
            "docstring": self._from_docstring,
            "columns": self._from_columns,
            "serializer": self._from_serializer,
        }
        self.sources = tuple(sources)
        unknown = set(self.sources) - set(self._collectors)
        if unknown:
            raise ValueError(f"Unknown evidence sources: {sorted(unknown)}")

    def compile_resource(self, resource: Any, is_collection: bool = False) -> dict:
        """Object schema for ``resource``; ``{}`` when nothing is known about it."""
        if not inspect.isclass(resource):
            logger.debug("Not a resource type: %r", resource)
            return {}

        properties: dict = {}
        for source in self.sources:
            properties.update(self._collect(source, resource))
        properties.update(self._collect("annotations", resource))
        if not properties:
            logger.debug("No usable evidence for %s", resource.__name__)
            return {}

        schema = {"type": "object", "properties": properties}
        if is_collection:
            return {"type": "array", "items": schema}
        return schema

    def compile_descriptor(self, descriptor: Any) -> dict:
        """Schema for a literal descriptor such as ``{"id": "integer", "tags": ["string"]}``.

        Dicts become nested objects, a list wraps its first element as
        ``items`` and classes are compiled as resources.
        """
        if isinstance(descriptor, dict):
            properties = {}
            for name, value in descriptor.items():
                schema = self.compile_descriptor(value)
                if schema:
                    properties[name] = schema
            return {"type": "object", "properties": properties}
        if isinstance(descriptor, (list, tuple)):
            items = self.compile_descriptor(descriptor[0]) if descriptor else {}
            return {"type": "array", "items": items or {"type": "string"}}
        if isinstance(descriptor, str):
            return _named_type_schema(descriptor)
        return self.compile_resource(descriptor)

    def resource_name(self, resource: Any) -> str | None:
        if not inspect.isclass(resource):
            return None
        markers = self.provider.annotations(resource, ApiResource)
        return markers[0].name if markers else None

    def _collect(self, source: str, resource: type) -> dict:
        collector = self._from_annotations if source == "annotations" else self._collectors[source]
        try:
            return collector(resource)
        except Exception:
            logger.debug("Evidence source %r failed for %s", source, resource.__name__, exc_info=True)
            return {}

    def _from_docstring(self, resource: type) -> dict:
        properties = {}
        for type_name, name, description in PROPERTY_TAG_RE.findall(self.provider.docstring(resource)):
            schema = _named_type_schema(type_name)
            if description:
                schema["description"] = description.strip()
            properties[name] = schema
        return properties

    def _from_columns(self, resource: type) -> dict:
        return {
            name: {"type": column_type_to_openapi(sql_type)}
            for name, sql_type in self.provider.columns(resource)
        }

    def _from_serializer(self, resource: type) -> dict:
        source = self.provider.serializer_source(resource)
        if not source:
            return {}
        tree = ast.parse(source)
        if not tree.body or not isinstance(tree.body[0], (ast.FunctionDef, ast.AsyncFunctionDef)):
            return {}

        body = tree.body[0].body
        if body and _is_docstring(body[0]):
            body = body[1:]
        if len(body) != 1 or not isinstance(body[0], ast.Return) or not isinstance(body[0].value, ast.Dict):
            return {}

        return _literal_properties(body[0].value)

    def _from_annotations(self, resource: type) -> dict:
        properties = {}
        for marker in self.provider.annotations(resource, ApiResource):
            for name, declared in marker.properties.items():
                properties[name] = _declared_schema(declared)
        for name, (hint, annotation) in self.provider.property_annotations(resource).items():
            properties[name] = property_schema(annotation, hint)
        return properties
