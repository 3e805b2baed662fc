"""Route metadata resolver.

Walks the host route table and turns every handler marked with
``@api_swagger`` into an :class:`Operation`. A route that cannot be resolved
is logged and skipped; it never stops the scan.
"""

import copy
import logging
import re
from typing import Any, Iterable

from auto_openapi.annotations import ApiQuery, ApiRequest, ApiResponse, ApiSwagger
from auto_openapi.routing.base import Operation, Parameter, ResponseDescriptor, Route, Tag
from auto_openapi.routing.introspect import MetadataProvider, RuntimeIntrospector
from auto_openapi.schema.resource import ResourceSchemaCompiler
from auto_openapi.schema.rules import RuleSchemaCompiler

logger = logging.getLogger(__name__)

PATH_PARAM_RE = re.compile(r"\{(\w+)(\?)?\}")
OPTIONAL_PARAM_RE = re.compile(r"\{(\w+)\?\}")
DOC_RESPONSE_RE = re.compile(r"^[ \t]*@response[ \t]+(\d{3})[ \t]+(.+)$", re.MULTILINE)

DEFAULT_RESPONSE_DESCRIPTION = "Successful operation"
MULTIPART = "multipart/form-data"

PAGINATION_SCHEMA = {
    "type": "object",
    "properties": {
        "total": {"type": "integer"},
        "count": {"type": "integer"},
        "per_page": {"type": "integer"},
        "current_page": {"type": "integer"},
        "total_pages": {"type": "integer"},
    },
}

VALIDATION_ERROR_SCHEMA = {
    "type": "object",
    "properties": {
        "message": {"type": "string"},
        "errors": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
    },
}

FILE_UPLOAD_SCHEMA = {
    "type": "object",
    "properties": {"file": {"type": "string", "format": "binary"}},
}


def normalize_path(uri: str) -> str:
    """``api/items/{id?}/`` -> ``/api/items/{id}``"""
    return "/" + OPTIONAL_PARAM_RE.sub(r"{\1}", uri).strip("/")


def humanize(name: str) -> str:
    """``showItem`` -> ``Show Item``, ``list_items`` -> ``List items``"""
    spaced = re.sub(r"[A-Z]", r" \g<0>", name).replace("_", " ").strip()
    return spaced[:1].upper() + spaced[1:]


def paginate(schema: dict) -> dict:
    """Wrap ``schema`` in the pagination envelope."""
    return {
        "type": "object",
        "properties": {
            "pagination": copy.deepcopy(PAGINATION_SCHEMA),
            "data": {"type": "array", "items": schema},
        },
    }


def _doc_tag(doc: str, tag: str) -> str | None:
    match = re.search(rf"^[ \t]*@{tag}[ \t]+(.+)$", doc, re.MULTILINE)
    return match.group(1).strip() if match else None


def _json_content(schema: dict, media_type: str = "application/json") -> dict:
    return {media_type: {"schema": schema}}


class RouteResolver:
    """Resolves documented routes into operations.

    Named resources (``@api_resource(name=...)``) met while resolving
    responses are collected in :attr:`schemas` for the components block.
    """

    def __init__(
        self,
        provider: MetadataProvider | None = None,
        rule_compiler: RuleSchemaCompiler | None = None,
        resource_compiler: ResourceSchemaCompiler | None = None,
    ):
        self.provider = provider or RuntimeIntrospector()
        self.rule_compiler = rule_compiler or RuleSchemaCompiler(self.provider)
        self.resource_compiler = resource_compiler or ResourceSchemaCompiler(self.provider)
        self.schemas: dict[str, dict] = {}

    def resolve_all(self, routes: Iterable[Route]) -> list[Operation]:
        operations = []
        for route in routes:
            try:
                operation = self.resolve_one(route)
            except Exception:
                logger.warning("Skipping %s %s: cannot resolve handler metadata", route.method, route.uri, exc_info=True)
                continue
            if operation is not None:
                operations.append(operation)
        return operations

    def resolve_one(self, route: Route) -> Operation | None:
        handler = route.handler
        if handler is None:
            logger.debug("Skipping %s %s: no handler bound", route.method, route.uri)
            return None
        markers = self.provider.annotations(handler, ApiSwagger)
        if not markers:
            logger.debug("Skipping %s %s: handler not marked for documentation", route.method, route.uri)
            return None
        marker = markers[0]
        doc = self.provider.docstring(handler)

        request_body, validated = self._request_body(route)
        responses = self._responses(handler, doc)
        if validated and "422" not in responses:
            responses["422"] = ResponseDescriptor(
                status="422",
                description="Validation error",
                content=_json_content(copy.deepcopy(VALIDATION_ERROR_SCHEMA)),
            )

        return Operation(
            method=route.method.upper(),
            path=normalize_path(route.uri),
            tags=self._tags(route, marker),
            summary=self._summary(handler, marker, doc),
            description=self._description(route, marker, doc),
            operation_id=marker.operation_id or self.provider.handler_name(handler),
            parameters=self._parameters(route),
            request_body=request_body,
            responses=responses,
            deprecated=marker.deprecated,
            middleware=list(route.middleware),
        )

    def _tags(self, route: Route, marker: ApiSwagger) -> list[Tag]:
        prefix = route.prefix.strip("/")
        if marker.tag:
            return [Tag(name=marker.tag, description=f"Endpoints for {prefix or marker.tag}")]
        if prefix:
            return [Tag(name=prefix, description=f"Endpoints for {prefix}")]
        name = self.provider.declaring_name(route.handler).removesuffix("Controller")
        return [Tag(name=name, description=f"Endpoints for {name}")]

    def _summary(self, handler: Any, marker: ApiSwagger, doc: str) -> str:
        tagged = _doc_tag(doc, "summary")
        if tagged:
            return tagged
        if marker.summary:
            return marker.summary
        for line in doc.splitlines():
            line = line.strip()
            if line and not line.startswith("@"):
                return line
        return humanize(self.provider.handler_name(handler))

    def _description(self, route: Route, marker: ApiSwagger, doc: str) -> str:
        if marker.description:
            return marker.description
        return _doc_tag(doc, "description") or f"Handle {route.method.upper()} request to {route.uri}"

    def _parameters(self, route: Route) -> list[Parameter]:
        parameters = [
            Parameter(
                name=name,
                location="path",
                required=not optional,
                param_type="string",
                description=f"The {name} parameter",
            )
            for name, optional in PATH_PARAM_RE.findall(route.uri)
        ]
        for query in self.provider.annotations(route.handler, ApiQuery):
            parameters.append(
                Parameter(
                    name=query.name,
                    location="query",
                    required=query.required,
                    param_type=query.param_type,
                    description=query.description or f"The {query.name} parameter",
                )
            )
        return parameters

    def _request_body(self, route: Route) -> tuple[dict | None, bool]:
        """The requestBody object and whether it is bound to a rule set."""
        explicit = next(iter(self.provider.annotations(route.handler, ApiRequest)), None)
        request_type = explicit.request if explicit and explicit.request else self._form_request_param(route.handler)
        validated = request_type is not None and self.provider.is_form_request(request_type)
        media_type = explicit.media_type if explicit else "application/json"

        if validated:
            schema = self.rule_compiler.compile_request(request_type)
            description = f"Request data for {route.uri}"
        elif explicit and media_type == MULTIPART:
            schema = copy.deepcopy(FILE_UPLOAD_SCHEMA)
            description = f"File upload for {route.uri}"
        else:
            return None, validated

        if not schema:
            return None, validated
        body = {
            "description": explicit.description if explicit and explicit.description else description,
            "required": explicit.required if explicit else True,
            "content": _json_content(schema, media_type),
        }
        return body, validated

    def _form_request_param(self, handler: Any) -> type | None:
        for _, hint in self.provider.parameters(handler):
            if self.provider.is_form_request(hint):
                return hint
        return None

    def _responses(self, handler: Any, doc: str) -> dict[str, ResponseDescriptor]:
        responses = {}
        for annotation in self.provider.annotations(handler, ApiResponse):
            status = str(annotation.status)
            content = None
            if annotation.resource is not None:
                schema = self._response_schema(annotation)
                if schema:
                    content = _json_content(schema, annotation.media_type)
            responses[status] = ResponseDescriptor(
                status=status,
                description=annotation.description or DEFAULT_RESPONSE_DESCRIPTION,
                content=content,
            )

        if not responses:
            for status, text in DOC_RESPONSE_RE.findall(doc):
                responses[status] = ResponseDescriptor(status=status, description=text.strip())
        return responses

    def _response_schema(self, annotation: ApiResponse) -> dict:
        resource = annotation.resource
        if isinstance(resource, (dict, list, tuple)):
            schema = self.resource_compiler.compile_descriptor(resource)
            if annotation.is_collection:
                schema = {"type": "array", "items": schema}
        else:
            schema = self.resource_compiler.compile_resource(resource, annotation.is_collection)
            self._remember(resource)
        if schema and annotation.is_pagination:
            schema = paginate(schema)
        return schema

    def _remember(self, resource: Any) -> None:
        name = self.resource_compiler.resource_name(resource)
        if name and name not in self.schemas:
            schema = self.resource_compiler.compile_resource(resource)
            if schema:
                self.schemas[name] = schema
