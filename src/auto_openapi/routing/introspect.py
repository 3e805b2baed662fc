"""Metadata access for handlers and types.

The resolver and the schema compilers only talk to a :class:`MetadataProvider`.
:class:`RuntimeIntrospector` implements it over live Python objects using
``inspect``, ``typing`` and SQLAlchemy's runtime inspection API.
"""

import inspect
import logging
import textwrap
import typing
from typing import Any, Protocol

from sqlalchemy import inspect as sa_inspect

from auto_openapi.annotations import ANNOTATIONS_ATTR, ApiProperty, FormRequest

logger = logging.getLogger(__name__)

SERIALIZER_METHOD = "to_dict"


class MetadataProvider(Protocol):
    """What the core needs to know about a handler or a type."""

    def annotations(self, target: Any, kind: type) -> list: ...

    def docstring(self, target: Any) -> str: ...

    def handler_name(self, handler: Any) -> str: ...

    def declaring_name(self, handler: Any) -> str: ...

    def parameters(self, handler: Any) -> list[tuple[str, Any]]: ...

    def is_form_request(self, tp: Any) -> bool: ...

    def rules(self, request_type: type) -> dict: ...

    def property_annotations(self, resource: type) -> dict[str, tuple[Any, ApiProperty]]: ...

    def columns(self, resource: type) -> list[tuple[str, str]]: ...

    def serializer_source(self, resource: type) -> str | None: ...


class RuntimeIntrospector:
    """MetadataProvider backed by the running interpreter."""

    def annotations(self, target: Any, kind: type) -> list:
        target = getattr(target, "__func__", target)
        records = getattr(target, ANNOTATIONS_ATTR, ())
        return [record for record in records if isinstance(record, kind)]

    def docstring(self, target: Any) -> str:
        doc = getattr(target, "__doc__", None)
        return inspect.cleandoc(doc) if doc else ""

    def handler_name(self, handler: Any) -> str:
        return handler.__name__

    def declaring_name(self, handler: Any) -> str:
        """Name of the class declaring ``handler``, or its module for plain functions."""
        parts = handler.__qualname__.split(".")
        if len(parts) > 1 and parts[-2] != "<locals>":
            return parts[-2]
        return handler.__module__.rsplit(".", 1)[-1]

    def parameters(self, handler: Any) -> list[tuple[str, Any]]:
        """Declared parameters of ``handler`` with their resolved type hints."""
        hints = typing.get_type_hints(handler)
        result = []
        for name in inspect.signature(handler).parameters:
            if name in ("self", "cls"):
                continue
            result.append((name, hints.get(name)))
        return result

    def is_form_request(self, tp: Any) -> bool:
        return inspect.isclass(tp) and issubclass(tp, FormRequest) and tp is not FormRequest

    def rules(self, request_type: type) -> dict:
        # Rule sets are declared on the class; the constructor is never run.
        instance = request_type.__new__(request_type)
        return dict(instance.rules())

    def property_annotations(self, resource: type) -> dict[str, tuple[Any, ApiProperty]]:
        result = {}
        hints = typing.get_type_hints(resource, include_extras=True)
        for name, hint in hints.items():
            if typing.get_origin(hint) is not typing.Annotated:
                continue
            base, *extras = typing.get_args(hint)
            for extra in extras:
                if isinstance(extra, ApiProperty):
                    result[name] = (base, extra)
                    break
        return result

    def columns(self, resource: type) -> list[tuple[str, str]]:
        """Column name/SQL type pairs of the record wrapped by ``resource``."""
        model = self._model_for(resource)
        if model is None:
            return []
        mapper = sa_inspect(model, raiseerr=False)
        if mapper is None:
            return []
        return [(attr.key, str(attr.columns[0].type)) for attr in mapper.column_attrs]

    def serializer_source(self, resource: type) -> str | None:
        method = getattr(resource, SERIALIZER_METHOD, None)
        if not inspect.isfunction(method):
            return None
        try:
            return textwrap.dedent(inspect.getsource(method))
        except (OSError, TypeError):
            logger.debug("No source available for %s.%s", resource.__name__, SERIALIZER_METHOD)
            return None

    def _model_for(self, resource: type) -> type | None:
        model = getattr(resource, "__model__", None)
        if model is not None:
            return model
        init = resource.__dict__.get("__init__")
        if not inspect.isfunction(init):
            return None
        hints = typing.get_type_hints(init)
        names = [name for name in inspect.signature(init).parameters if name != "self"]
        if not names:
            return None
        candidate = hints.get(names[0])
        if inspect.isclass(candidate) and sa_inspect(candidate, raiseerr=False) is not None:
            return candidate
        return None
