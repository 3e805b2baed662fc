"""Data models shared by the resolver and the document assembler.

The resolver turns every documented :class:`Route` into an
:class:`Operation`; the assembler renders operations into OpenAPI objects.
"""

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict


class Route(BaseModel):
    """One entry of the host application's route table."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    method: str  # GET / POST / PUT / DELETE / PATCH
    uri: str  # api/items/{id?}
    handler: Callable[..., Any] | None = None
    middleware: list[str] = []
    prefix: str = ""


class Tag(BaseModel):
    name: str
    description: str = ""


class Parameter(BaseModel):
    """A single path or query parameter."""

    name: str
    location: str  # path / query
    required: bool
    param_type: str = "string"  # string / integer / number / boolean / array
    description: str = ""


class ResponseDescriptor(BaseModel):
    status: str
    description: str
    content: dict | None = None  # {media_type: {"schema": {...}}}

    def to_openapi(self) -> dict:
        result: dict = {"description": self.description}
        if self.content:
            result["content"] = self.content
        return result


class Operation(BaseModel):
    """A documented (path, method) pair with all of its metadata."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    tags: list[Tag]
    summary: str
    description: str
    operation_id: str
    parameters: list[Parameter]
    request_body: dict | None = None
    responses: dict[str, ResponseDescriptor] = {}
    security: list[dict] = []
    deprecated: bool = False
    middleware: list[str] = []
