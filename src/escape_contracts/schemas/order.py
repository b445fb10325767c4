"""Order contract. Prices are integers in the smallest currency unit; status is free text."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from escape_contracts.rpc.service import HttpRule, MethodDescriptor, ServiceDescriptor
from escape_contracts.wire import Kind, Message, proto_field

PACKAGE = "go.escape.ship.proto.v1"


@dataclass(frozen=True)
class OrderItem(Message, package=PACKAGE):
    """Snapshot of the product at order time."""

    id: str = proto_field(1, Kind.STRING)
    order_id: str = proto_field(2, Kind.STRING)
    product_id: str = proto_field(3, Kind.STRING)
    product_name: str = proto_field(4, Kind.STRING)
    product_price: int = proto_field(5, Kind.INT64)
    quantity: int = proto_field(6, Kind.INT32)


@dataclass(frozen=True)
class Order(Message, package=PACKAGE):
    id: str = proto_field(1, Kind.STRING)
    user_id: str = proto_field(2, Kind.STRING)
    order_number: str = proto_field(3, Kind.STRING)
    status: str = proto_field(4, Kind.STRING)
    total_price: int = proto_field(5, Kind.INT64)
    quantity: int = proto_field(6, Kind.INT32)
    payment_method: str = proto_field(7, Kind.STRING)
    shipping_fee: int = proto_field(8, Kind.INT32)
    shipping_address: str = proto_field(9, Kind.STRING)
    ordered_at: str = proto_field(10, Kind.STRING)
    paid_at: str = proto_field(11, Kind.STRING)
    memo: str = proto_field(12, Kind.STRING)
    items: tuple[OrderItem, ...] = proto_field(13, Kind.MESSAGE, message=OrderItem, repeated=True)


@dataclass(frozen=True)
class InsertOrderItem(Message, package=PACKAGE):
    product_id: str = proto_field(1, Kind.STRING, required=True)
    product_name: str = proto_field(2, Kind.STRING)
    product_options: str = proto_field(3, Kind.STRING)
    product_price: int = proto_field(4, Kind.INT64)
    quantity: int = proto_field(5, Kind.INT32)


@dataclass(frozen=True)
class InsertOrderRequest(Message, package=PACKAGE):
    user_id: str = proto_field(1, Kind.STRING, required=True)
    order_number: str = proto_field(2, Kind.STRING)
    status: str = proto_field(3, Kind.STRING)
    total_price: int = proto_field(4, Kind.INT64)
    quantity: int = proto_field(5, Kind.INT32)
    payment_method: str = proto_field(6, Kind.STRING)
    shipping_fee: int = proto_field(7, Kind.INT32)
    shipping_address: str = proto_field(8, Kind.STRING)
    paid_at: str = proto_field(9, Kind.STRING)
    memo: str = proto_field(10, Kind.STRING)
    # 11 is unused
    items: tuple[InsertOrderItem, ...] = proto_field(12, Kind.MESSAGE, message=InsertOrderItem, repeated=True)


@dataclass(frozen=True)
class InsertOrderResponse(Message, package=PACKAGE):
    id: str = proto_field(1, Kind.STRING)


@dataclass(frozen=True)
class GetAllOrdersRequest(Message, package=PACKAGE):
    pass


@dataclass(frozen=True)
class GetAllOrdersResponse(Message, package=PACKAGE):
    orders: tuple[Order, ...] = proto_field(1, Kind.MESSAGE, message=Order, repeated=True)


ORDER_SERVICE = ServiceDescriptor(
    name="OrderService",
    package=PACKAGE,
    methods=(
        MethodDescriptor(
            "InsertOrder",
            InsertOrderRequest,
            InsertOrderResponse,
            HttpRule("POST", "/v1/order/insert", body="*"),
        ),
        MethodDescriptor(
            "GetAllOrders",
            GetAllOrdersRequest,
            GetAllOrdersResponse,
            HttpRule("GET", "/v1/order"),
        ),
    ),
)


class OrderServicer(Protocol):
    async def insert_order(self, request: InsertOrderRequest, context: Any) -> InsertOrderResponse:
        ...

    async def get_all_orders(self, request: GetAllOrdersRequest, context: Any) -> GetAllOrdersResponse:
        ...
