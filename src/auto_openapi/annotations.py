"""Annotation records attached by the host application to handlers and types.

A handler opts into documentation with ``@api_swagger``. The other
decorators describe its responses, query parameters and request payload.
Resource classes are named with ``@api_resource`` and document individual
fields with ``Annotated[<hint>, ApiProperty(...)]``.
"""

import enum
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict

ANNOTATIONS_ATTR = "__api_annotations__"


class ApiSwagger(BaseModel):
    """Marks a handler for inclusion in the generated document."""

    summary: str | None = None
    description: str | None = None
    tag: str | None = None
    operation_id: str | None = None
    deprecated: bool = False


class ApiResponse(BaseModel):
    """One documented response of a handler. Repeatable."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status: int = 200
    resource: Any = None  # resource class, or a dict/list literal descriptor
    description: str | None = None
    media_type: str = "application/json"
    is_collection: bool = False
    is_pagination: bool = False


class ApiQuery(BaseModel):
    """A documented query-string parameter. Repeatable."""

    name: str
    description: str = ""
    required: bool = False
    param_type: str = "string"


class ApiRequest(BaseModel):
    """Explicit request payload metadata for a handler."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    request: type | None = None
    description: str | None = None
    media_type: str = "application/json"
    required: bool = True


class ApiProperty(BaseModel):
    """Authoritative schema metadata for one field of a resource."""

    type: str | None = None
    description: str | None = None
    format: str | None = None
    example: Any = None
    enum: list | None = None
    nullable: bool = False
    items: dict | None = None


class ApiResource(BaseModel):
    """Names a resource class and optionally declares its properties."""

    name: str
    description: str | None = None
    properties: dict[str, Any] = {}


def _attach(target: Any, record: BaseModel) -> Any:
    # Decorators run bottom-up; inserting at the front keeps source order.
    records = target.__dict__.get(ANNOTATIONS_ATTR)
    if records is None:
        records = []
        setattr(target, ANNOTATIONS_ATTR, records)
    records.insert(0, record)
    return target


def _decorator(record: BaseModel) -> Callable[[Any], Any]:
    def decorate(target: Any) -> Any:
        return _attach(target, record)

    return decorate


def api_swagger(**kwargs: Any) -> Callable[[Any], Any]:
    return _decorator(ApiSwagger(**kwargs))


def api_response(**kwargs: Any) -> Callable[[Any], Any]:
    return _decorator(ApiResponse(**kwargs))


def api_query(**kwargs: Any) -> Callable[[Any], Any]:
    return _decorator(ApiQuery(**kwargs))


def api_request(**kwargs: Any) -> Callable[[Any], Any]:
    return _decorator(ApiRequest(**kwargs))


def api_resource(**kwargs: Any) -> Callable[[Any], Any]:
    return _decorator(ApiResource(**kwargs))


class FormRequest:
    """Base class for request payloads validated by a rule set.

    Subclasses return ``{field: rules}`` from :meth:`rules`, where rules is
    either a ``"required|string|max:255"`` string or a list of tokens and
    rule objects.
    """

    def rules(self) -> dict:
        return {}


class EnumRule(BaseModel):
    """Restricts a field to a fixed set of values."""

    kind: Literal["enum"] = "enum"
    values: list[Any]

    @classmethod
    def of(cls, enum_type: type[enum.Enum]) -> "EnumRule":
        return cls(values=[member.value for member in enum_type])


class FileRule(BaseModel):
    """Requires an uploaded file."""

    kind: Literal["file"] = "file"
    mimes: list[str] = []


class DimensionsRule(BaseModel):
    """Requires an uploaded image within the given dimensions."""

    kind: Literal["dimensions"] = "dimensions"
    min_width: int | None = None
    min_height: int | None = None
    max_width: int | None = None
    max_height: int | None = None


RuleObject = EnumRule | FileRule | DimensionsRule
