"""Document assembler.

Combines resolved operations and compiled schemas into one OpenAPI 3.0.0
document, applying the configured security schemes.
"""

from typing import Iterable

from auto_openapi.config import GeneratorConfig
from auto_openapi.routing.base import Operation, Parameter, Tag

OPENAPI_VERSION = "3.0.0"

AUTH_MIDDLEWARE = frozenset({"auth", "auth:api", "auth:sanctum", "auth:token"})
API_KEY_MIDDLEWARE = "api_key"

BEARER_SCHEME = "bearerAuth"
OAUTH2_SCHEME = "oauth2"
API_KEY_SCHEME = "apiKey"


class DocumentAssembler:
    """Builds the final document from a list of operations."""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()

    def assemble(self, operations: Iterable[Operation], schemas: dict | None = None) -> dict:
        operations = list(operations)
        document = {
            "openapi": OPENAPI_VERSION,
            "info": self._info(),
            "servers": self._servers(),
            "paths": self._paths(operations),
            "components": {
                "schemas": dict(schemas or {}),
                "securitySchemes": self._security_schemes(),
            },
            "tags": self._tags(operations),
        }
        if not document["components"]["schemas"] and not document["components"]["securitySchemes"]:
            del document["components"]
        return document

    def security_for(self, operation: Operation) -> list[dict]:
        """Security requirements of ``operation`` under the current configuration."""
        security = self.config.security
        if self.config.always_require_bearer:
            return [{BEARER_SCHEME: []}]

        requirements = [dict(requirement) for requirement in operation.security]
        middleware = set(operation.middleware)
        if middleware & AUTH_MIDDLEWARE:
            if security.bearer.enabled:
                requirements.append({BEARER_SCHEME: []})
            if security.oauth2.enabled:
                requirements.append({OAUTH2_SCHEME: list(security.oauth2.scopes)})
        if API_KEY_MIDDLEWARE in middleware and security.api_key.enabled:
            requirements.append({API_KEY_SCHEME: []})
        return requirements

    def _info(self) -> dict:
        info = {
            "title": self.config.title,
            "description": self.config.description,
            "version": self.config.version,
        }
        contact = {key: value for key, value in self.config.contact.model_dump().items() if value}
        if contact:
            info["contact"] = contact
        license_ = {key: value for key, value in self.config.license.model_dump().items() if value}
        if license_:
            info["license"] = license_
        return info

    def _servers(self) -> list[dict]:
        servers = []
        for server in self.config.servers:
            entry = {"url": server.url}
            if server.description is not None:
                entry["description"] = server.description
            servers.append(entry)
        return servers

    def _paths(self, operations: list[Operation]) -> dict:
        paths: dict[str, dict] = {}
        for operation in operations:
            resolved = operation.model_copy(update={"security": self.security_for(operation)})
            paths.setdefault(resolved.path, {})[resolved.method.lower()] = self._operation_object(resolved)
        return paths

    def _operation_object(self, operation: Operation) -> dict:
        result = {
            "tags": [tag.name for tag in operation.tags],
            "summary": operation.summary,
            "description": operation.description,
            "operationId": operation.operation_id,
            "parameters": self._parameters(operation.parameters),
            "responses": {status: response.to_openapi() for status, response in operation.responses.items()},
        }
        if operation.request_body:
            result["requestBody"] = operation.request_body
        if operation.security:
            result["security"] = operation.security
        if operation.deprecated:
            result["deprecated"] = True
        return result

    def _parameters(self, parameters: list[Parameter]) -> list[dict]:
        grouped = {}
        for param in parameters:
            grouped[(param.name, param.location)] = {
                "name": param.name,
                "in": param.location,
                "required": param.required,
                "schema": {"type": param.param_type},
                "description": param.description,
            }
        return list(grouped.values())

    def _tags(self, operations: list[Operation]) -> list[dict]:
        seen: dict[str, Tag] = {}
        for operation in operations:
            for tag in operation.tags:
                seen.setdefault(tag.name, tag)
        return [tag.model_dump() for tag in sorted(seen.values(), key=lambda tag: tag.name)]

    def _security_schemes(self) -> dict:
        security = self.config.security
        schemes = {}
        if security.bearer.enabled or self.config.always_require_bearer:
            schemes[BEARER_SCHEME] = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        if security.oauth2.enabled:
            schemes[OAUTH2_SCHEME] = {"type": "oauth2", "flows": security.oauth2.flows}
        if security.api_key.enabled:
            schemes[API_KEY_SCHEME] = {
                "type": "apiKey",
                "in": security.api_key.location,
                "name": security.api_key.name,
            }
        return schemes
