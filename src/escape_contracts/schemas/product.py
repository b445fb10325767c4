"""Product catalog contract."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from escape_contracts.rpc.service import HttpRule, MethodDescriptor, ServiceDescriptor
from escape_contracts.wire import Kind, Message, proto_field

PACKAGE = "go.escape.ship.proto.v1"


@dataclass(frozen=True)
class Category(Message, package=PACKAGE):
    id: int = proto_field(1, Kind.INT64)
    name: str = proto_field(2, Kind.STRING)


@dataclass(frozen=True)
class Product(Message, package=PACKAGE):
    id: str = proto_field(1, Kind.STRING)
    name: str = proto_field(2, Kind.STRING)
    categories: tuple[Category, ...] = proto_field(3, Kind.MESSAGE, message=Category, repeated=True)
    price: int = proto_field(4, Kind.INT64)
    image_url: str = proto_field(5, Kind.STRING)
    created_at: str = proto_field(6, Kind.STRING)
    updated_at: str = proto_field(7, Kind.STRING)


@dataclass(frozen=True)
class GetProductsRequest(Message, package=PACKAGE):
    pass


@dataclass(frozen=True)
class GetProductsResponse(Message, package=PACKAGE):
    products: tuple[Product, ...] = proto_field(1, Kind.MESSAGE, message=Product, repeated=True)


@dataclass(frozen=True)
class GetProductByIDRequest(Message, package=PACKAGE):
    id: str = proto_field(1, Kind.STRING, required=True)


@dataclass(frozen=True)
class GetProductByIDResponse(Message, package=PACKAGE):
    product: Product | None = proto_field(1, Kind.MESSAGE, message=Product)


@dataclass(frozen=True)
class PostProductsRequest(Message, package=PACKAGE):
    name: str = proto_field(1, Kind.STRING, required=True)
    categories: tuple[str, ...] = proto_field(2, Kind.STRING, repeated=True)
    price: int = proto_field(3, Kind.INT64)
    image_url: str = proto_field(4, Kind.STRING)


@dataclass(frozen=True)
class PostProductsResponse(Message, package=PACKAGE):
    message: str = proto_field(1, Kind.STRING)


@dataclass(frozen=True)
class GetProductOptionsRequest(Message, package=PACKAGE):
    id: str = proto_field(1, Kind.STRING, required=True)


@dataclass(frozen=True)
class OptionValue(Message, package=PACKAGE):
    value_id: int = proto_field(1, Kind.INT32)
    value: str = proto_field(2, Kind.STRING)


@dataclass(frozen=True)
class ProductOption(Message, package=PACKAGE):
    option_id: int = proto_field(1, Kind.INT32)
    option_name: str = proto_field(2, Kind.STRING)
    values: tuple[OptionValue, ...] = proto_field(3, Kind.MESSAGE, message=OptionValue, repeated=True)


@dataclass(frozen=True)
class GetProductOptionsResponse(Message, package=PACKAGE):
    product_id: str = proto_field(1, Kind.STRING)
    options: tuple[ProductOption, ...] = proto_field(2, Kind.MESSAGE, message=ProductOption, repeated=True)


PRODUCT_SERVICE = ServiceDescriptor(
    name="ProductService",
    package=PACKAGE,
    methods=(
        MethodDescriptor(
            "GetProducts",
            GetProductsRequest,
            GetProductsResponse,
            HttpRule("GET", "/products"),
        ),
        MethodDescriptor(
            "GetProductByID",
            GetProductByIDRequest,
            GetProductByIDResponse,
            # the gateway answers with the product object itself
            HttpRule("GET", "/products/{id}", response_body="product"),
        ),
        MethodDescriptor(
            "PostProducts",
            PostProductsRequest,
            PostProductsResponse,
            HttpRule("POST", "/products", body="*"),
        ),
        MethodDescriptor(
            "GetProductOptions",
            GetProductOptionsRequest,
            GetProductOptionsResponse,
            HttpRule("POST", "/product/{id}/options", body="*"),
        ),
    ),
)


class ProductServicer(Protocol):
    async def get_products(self, request: GetProductsRequest, context: Any) -> GetProductsResponse:
        ...

    async def get_product_by_id(self, request: GetProductByIDRequest, context: Any) -> GetProductByIDResponse:
        ...

    async def post_products(self, request: PostProductsRequest, context: Any) -> PostProductsResponse:
        ...

    async def get_product_options(
        self, request: GetProductOptionsRequest, context: Any
    ) -> GetProductOptionsResponse:
        ...
