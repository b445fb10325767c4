"""Shared pytest fixtures for escape-contracts tests.

In-memory service implementations, and factories for HTTP and binary RPC
clients that talk to an Application in-process through httpx.ASGITransport.
"""

from __future__ import annotations

import sys
from typing import Any, Callable

import httpx
import pytest
import structlog

from escape_contracts.core.app import Application
from escape_contracts.core.config import ClientConfig
from escape_contracts.errors import RpcError
from escape_contracts.factory import create_service_app
from escape_contracts.rpc.transport import HttpRpcTransport
from escape_contracts.schemas.order import (
    ORDER_SERVICE,
    GetAllOrdersResponse,
    InsertOrderResponse,
    Order,
    OrderItem,
)
from escape_contracts.schemas.product import (
    PRODUCT_SERVICE,
    Category,
    GetProductByIDResponse,
    GetProductOptionsResponse,
    GetProductsResponse,
    OptionValue,
    PostProductsResponse,
    Product,
    ProductOption,
)
from escape_contracts.status import StatusCode


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


PROD001 = Product(
    id="prod001",
    name="Escape room ticket",
    categories=(Category(id=1, name="tickets"),),
    price=25000,
    image_url="https://img.example/prod001.png",
    created_at="2024-01-01T00:00:00Z",
    updated_at="2024-01-02T00:00:00Z",
)


class FakeCatalog:
    """ProductService implementation over a dict. Records every request."""

    def __init__(self) -> None:
        self.products = {PROD001.id: PROD001}
        self.requests: list[tuple[str, Any, Any]] = []

    async def get_products(self, request, context):
        self.requests.append(("GetProducts", request, context))
        return GetProductsResponse(products=tuple(self.products.values()))

    async def get_product_by_id(self, request, context):
        self.requests.append(("GetProductByID", request, context))
        product = self.products.get(request.id)
        if product is None:
            raise RpcError(StatusCode.NOT_FOUND, f"product {request.id} not found")
        return GetProductByIDResponse(product=product)

    def post_products(self, request, context):
        # sync handlers are supported too
        self.requests.append(("PostProducts", request, context))
        return PostProductsResponse(message=f"created {request.name}")

    async def get_product_options(self, request, context):
        self.requests.append(("GetProductOptions", request, context))
        return GetProductOptionsResponse(
            product_id=request.id,
            options=(
                ProductOption(
                    option_id=1,
                    option_name="time",
                    values=(OptionValue(value_id=10, value="10:00"), OptionValue(value_id=11, value="11:00")),
                ),
            ),
        )


class FakeOrders:
    """OrderService with only InsertOrder and GetAllOrders backed by a list."""

    def __init__(self) -> None:
        self.orders: list[Order] = []

    async def insert_order(self, request, context):
        order_id = f"order-{len(self.orders) + 1}"
        self.orders.append(
            Order(
                id=order_id,
                user_id=request.user_id,
                status=request.status or "PENDING",
                total_price=request.total_price,
                quantity=request.quantity,
                items=tuple(
                    OrderItem(
                        id=f"{order_id}-{i}",
                        order_id=order_id,
                        product_id=item.product_id,
                        product_name=item.product_name,
                        product_price=item.product_price,
                        quantity=item.quantity,
                    )
                    for i, item in enumerate(request.items, start=1)
                ),
            )
        )
        return InsertOrderResponse(id=order_id)

    async def get_all_orders(self, request, context):
        return GetAllOrdersResponse(orders=tuple(self.orders))


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def orders() -> FakeOrders:
    return FakeOrders()


@pytest.fixture
def product_app(catalog: FakeCatalog) -> Application:
    """Product service on both transports."""
    return create_service_app(PRODUCT_SERVICE, catalog)


@pytest.fixture
def order_app(orders: FakeOrders) -> Application:
    return create_service_app(ORDER_SERVICE, orders)


@pytest.fixture
def http_client() -> Callable[[Any], httpx.AsyncClient]:
    """Factory: JSON client for an ASGI app. Use as an async context manager."""

    def factory(app: Any) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")

    return factory


@pytest.fixture
def rpc_transport() -> Callable[..., HttpRpcTransport]:
    """Factory: binary RPC transport for an ASGI app. Use as an async context manager."""

    def factory(app: Any, **config: Any) -> HttpRpcTransport:
        return HttpRpcTransport(
            ClientConfig(address="test", **config),
            http_transport=httpx.ASGITransport(app=app),
        )

    return factory
