"""Sample host application used by the tests: models, resources, requests and routes."""

import enum
from datetime import datetime
from typing import Annotated

from sqlalchemy import JSON, Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from auto_openapi.annotations import (
    ApiProperty,
    EnumRule,
    FileRule,
    FormRequest,
    api_query,
    api_request,
    api_resource,
    api_response,
    api_swagger,
)
from auto_openapi.routing.base import Route


class Base(DeclarativeBase):
    pass


class Item(Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Numeric(10, 2))
    is_active: Mapped[bool] = mapped_column(Boolean)
    attributes: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime)


class ItemStatus(enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class StoreItemRequest(FormRequest):
    def rules(self):
        return {
            "name": ["required", "string", "max:255"],
            "description": "required|string",
            "price": ["required", "numeric", "min:0"],
            "quantity": ["required", "integer", "min:0"],
            "status": ["required", EnumRule.of(ItemStatus)],
            "tags": ["array"],
            "tags.*": ["string", "max:50"],
            "image": ["nullable", FileRule()],
        }


class BrokenRequest(FormRequest):
    def rules(self):
        raise RuntimeError("rules need a database connection")


@api_resource(name="Item", description="An item resource")
class ItemResource:
    """An item exposed by the API.

    @property int id The item ID
    @property bool on_sale Whether the item is discounted
    """

    __model__ = Item

    sku: Annotated[str, ApiProperty(description="Stock keeping unit")]
    price: Annotated[float, ApiProperty(type="number", format="float", description="The item price")]

    def __init__(self, item: Item):
        self.item = item

    def to_dict(self):
        return {
            "id": self.item.id,
            "name": self.item.name,
            "currency": "EUR",
            "on_sale": False,
            "rating": 4.5,
            "dimensions": {"width": 1, "height": 2},
            "related": [],
        }


@api_resource(name="User")
class UserResource:
    id: Annotated[int, ApiProperty(type="integer", description="The user ID")]
    email: Annotated[str, ApiProperty(type="string", format="email")]
    roles: Annotated[
        list,
        ApiProperty(
            type="array",
            items={"type": "object", "properties": {"id": {"type": "integer"}, "name": {"type": "string"}}},
        ),
    ]


class ItemController:
    @api_swagger(tag="Items")
    @api_response(status=200, resource=ItemResource, description="Item found")
    @api_response(status=404, description="Item not found")
    def show(self, id: int):
        """Get item by ID

        @description Retrieve a specific item by its unique identifier.
        """

    @api_swagger(tag="Items", description="Create a new item with the provided data")
    @api_response(status=201, resource=ItemResource, description="Item created")
    def store(self, request: StoreItemRequest):
        """@summary Create a new item"""

    @api_swagger()
    @api_query(name="page", param_type="integer", description="Page number")
    @api_query(name="search")
    @api_response(status=200, resource=ItemResource, is_pagination=True)
    def index(self):
        """List items"""

    @api_swagger(tag="Items")
    @api_request(description="Item image file", media_type="multipart/form-data")
    @api_response(status=200, resource={"message": "string", "url": "string"})
    def uploadImage(self, id: int):
        pass

    @api_swagger(tag="Items")
    def broken(self, request: BrokenRequest):
        pass

    def internal(self):
        pass


class UserController:
    @api_swagger(deprecated=True)
    @api_response(status=200, resource=UserResource, is_collection=True)
    def listUsers(self):
        pass

    @api_swagger()
    def unresolvable(self, request: "MissingRequest"):  # noqa: F821
        pass


routes = [
    Route(method="GET", uri="api/items/{id}", handler=ItemController.show, middleware=["api"], prefix="api/items"),
    Route(method="POST", uri="api/items", handler=ItemController.store, middleware=["api", "auth:sanctum"], prefix="api/items"),
    Route(method="GET", uri="api/items", handler=ItemController.index, middleware=["api"], prefix="api/items"),
    Route(method="POST", uri="api/items/{id}/image", handler=ItemController.uploadImage, middleware=["auth"]),
    Route(method="POST", uri="api/items/broken", handler=ItemController.broken),
    Route(method="GET", uri="api/items/internal", handler=ItemController.internal),
    Route(method="GET", uri="api/users/{team?}", handler=UserController.listUsers, middleware=["api_key"]),
    Route(method="GET", uri="api/users/missing", handler=UserController.unresolvable),
    Route(method="GET", uri="up"),
]


def route_table():
    return list(routes)


class RouteRegistry:
    def __init__(self, entries):
        self.entries = entries


registry = RouteRegistry([{"method": "GET", "uri": "api/health", "middleware": ["api"]}])

invalid_routes = [{"uri": "api/no-method"}]
