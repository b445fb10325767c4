"""
Kakao Pay checkout over the binary transport:
product lookup -> order insert -> payment ready -> payment approve.

Against running services:  ESCAPE_SHIP_ADDRESS=localhost:50051 python kakao_payment_flow.py
Without it, small in-memory services are composed into one app and called in-process.
"""
import asyncio
import os
import uuid

import httpx

from escape_contracts import Application, ClientConfig, ClientSet, HttpRpcTransport, RpcError, RpcModule, authenticated
from escape_contracts.core.observability import configure_logging
from escape_contracts.schemas.order import ORDER_SERVICE, InsertOrderItem, InsertOrderRequest, InsertOrderResponse
from escape_contracts.schemas.payment import (
    PAYMENT_SERVICE,
    KakaoApproveRequest,
    KakaoApproveResponse,
    KakaoReadyRequest,
    KakaoReadyResponse,
)
from escape_contracts.schemas.product import (
    PRODUCT_SERVICE,
    Category,
    GetProductByIDRequest,
    GetProductByIDResponse,
    Product,
)
from escape_contracts.status import StatusCode


class Catalog:
    products = {
        "prod001": Product(id="prod001", name="Escape room ticket", price=25000, categories=(Category(1, "tickets"),)),
    }

    async def get_product_by_id(self, request, context):
        product = self.products.get(request.id)
        if product is None:
            raise RpcError(StatusCode.NOT_FOUND, f"product {request.id} not found")
        return GetProductByIDResponse(product=product)


class Orders:
    async def insert_order(self, request, context):
        return InsertOrderResponse(id=f"order-{uuid.uuid4().hex[:8]}")


class Payments:
    async def kakao_ready(self, request, context):
        tid = f"T{uuid.uuid4().hex[:12]}"
        return KakaoReadyResponse(tid=tid, next_redirect_pc_url=f"https://pay.example/{tid}")

    async def kakao_approve(self, request, context):
        return KakaoApproveResponse(partner_order_id=request.partner_order_id)


def in_memory_app() -> Application:
    rpc = (
        RpcModule()
        .service(PRODUCT_SERVICE, Catalog())
        .service(ORDER_SERVICE, Orders())
        .service(PAYMENT_SERVICE, Payments())
    )
    return Application().register(rpc)


async def checkout(clients: ClientSet, user_id: str, product_id: str, token: str) -> str:
    metadata = authenticated("Bearer", token)
    found = await clients.product.get_product_by_id(GetProductByIDRequest(id=product_id), timeout=3)
    product = found.product
    print(f"product: {product.name} ({product.price} KRW)")

    order = await clients.order.insert_order(
        InsertOrderRequest(
            user_id=user_id,
            total_price=product.price,
            quantity=1,
            payment_method="kakaopay",
            items=[InsertOrderItem(product_id=product.id, product_name=product.name, product_price=product.price, quantity=1)],
        ),
        metadata=metadata,
        timeout=3,
    )
    print(f"order: {order.id}")

    ready = await clients.payment.kakao_ready(
        KakaoReadyRequest(
            partner_order_id=order.id,
            partner_user_id=user_id,
            item_name=product.name,
            quantity=1,
            total_amount=product.price,
        ),
        metadata=metadata,
        timeout=5,
    )
    print(f"redirect the user to {ready.next_redirect_pc_url}")

    # pg_token comes back on the provider's redirect; a fixed one stands in here
    approved = await clients.payment.kakao_approve(
        KakaoApproveRequest(tid=ready.tid, partner_order_id=order.id, partner_user_id=user_id, pg_token="pg-demo"),
        metadata=metadata,
        timeout=5,
    )
    return approved.partner_order_id


async def main() -> None:
    configure_logging(log_level="INFO", json_format=False)
    address = os.environ.get("ESCAPE_SHIP_ADDRESS")
    if address:
        clients = ClientSet(ClientConfig.default(address))
    else:
        config = ClientConfig.default("escape-ship.local")
        transport = HttpRpcTransport(config, http_transport=httpx.ASGITransport(app=in_memory_app()))
        clients = ClientSet(config, transport=transport)
    async with clients:
        try:
            paid = await checkout(clients, user_id="user-42", product_id="prod001", token="demo-token")
        except RpcError as exc:
            print(f"checkout failed: {exc}")
            return
    print(f"paid: {paid}")


if __name__ == "__main__":
    asyncio.run(main())
