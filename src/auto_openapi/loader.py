"""Route table loading from ``module:attribute`` import strings."""

import importlib
import sys
from pathlib import Path

from pydantic import ValidationError

from auto_openapi.errors import RouteTableError
from auto_openapi.routing.base import Route


def load_routes(target: str, app_dir: Path | None = None) -> list[Route]:
    """Import ``target`` and return its route table.

    The attribute may be a list of :class:`Route` (or route dicts), or a
    callable returning one.
    """
    module_name, _, attr_path = target.partition(":")
    if not module_name or not attr_path:
        raise RouteTableError(f"Expected 'module:attribute', got {target!r}")

    if app_dir is not None and str(app_dir) not in sys.path:
        sys.path.insert(0, str(app_dir))

    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise RouteTableError(f"Cannot import {module_name!r}: {e}") from e
    try:
        for attr in attr_path.split("."):
            obj = getattr(obj, attr)
    except AttributeError as e:
        raise RouteTableError(f"{module_name!r} has no attribute {attr_path!r}") from e

    if callable(obj):
        obj = obj()
    if not isinstance(obj, (list, tuple)):
        raise RouteTableError(f"{target!r} is not a route table")

    routes = []
    for item in obj:
        try:
            routes.append(item if isinstance(item, Route) else Route.model_validate(item))
        except ValidationError as e:
            raise RouteTableError(f"Invalid route entry {item!r}:\n{e}") from e
    return routes
