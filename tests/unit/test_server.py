"""Unit tests for RpcServer dispatch."""

from __future__ import annotations

import asyncio

import pytest

from escape_contracts.errors import RpcError
from escape_contracts.rpc.protocol import CallContext, RpcServerHandler
from escape_contracts.rpc.server import RpcServer, parse_timeout
from escape_contracts.schemas.order import ORDER_SERVICE, InsertOrderRequest, InsertOrderResponse
from escape_contracts.schemas.product import (
    PRODUCT_SERVICE,
    GetProductByIDRequest,
    GetProductByIDResponse,
    GetProductsRequest,
    PostProductsRequest,
)
from escape_contracts.status import StatusCode


class Recording:
    """OrderService double capturing the context of each call."""

    def __init__(self) -> None:
        self.contexts: list[CallContext] = []

    async def insert_order(self, request, context):
        self.contexts.append(context)
        return InsertOrderResponse(id=f"order-for-{request.user_id}")


class Misbehaving:
    async def get_products(self, request, context):
        raise KeyError("db row missing")

    async def get_product_by_id(self, request, context):
        return "not a message"

    async def post_products(self, request, context):
        await asyncio.sleep(5)

    async def get_product_options(self, request, context):
        raise RpcError(StatusCode.PERMISSION_DENIED, "options are private")


class TestInvoke:
    """Tests for typed dispatch."""

    @pytest.mark.asyncio
    async def test_dispatches_to_handler(self) -> None:
        impl = Recording()
        server = RpcServer(ORDER_SERVICE, impl)

        response = await server.invoke(
            "InsertOrder", InsertOrderRequest(user_id="u1"), metadata={"authorization": "Bearer t"}
        )

        assert response == InsertOrderResponse(id="order-for-u1")
        context = impl.contexts[0]
        assert context.method == "InsertOrder"
        assert context.service == "go.escape.ship.proto.v1.OrderService"
        assert context.authorization == "Bearer t"
        assert context.deadline is None

    @pytest.mark.asyncio
    async def test_deadline_visible_to_handler(self) -> None:
        impl = Recording()
        server = RpcServer(ORDER_SERVICE, impl)

        await server.invoke("insert_order", InsertOrderRequest(user_id="u1"), timeout=10)

        remaining = impl.contexts[0].time_remaining()
        assert remaining is not None
        assert 0 < remaining <= 10

    @pytest.mark.asyncio
    async def test_missing_method_is_unimplemented(self) -> None:
        server = RpcServer(ORDER_SERVICE, Recording())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetAllOrders", ORDER_SERVICE.method("GetAllOrders").input_type())

        assert exc_info.value.code is StatusCode.UNIMPLEMENTED

    @pytest.mark.asyncio
    async def test_no_implementation_at_all(self) -> None:
        server = RpcServer(PRODUCT_SERVICE)

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetProducts", GetProductsRequest())

        assert exc_info.value.code is StatusCode.UNIMPLEMENTED

    @pytest.mark.asyncio
    async def test_required_field_missing(self) -> None:
        impl = Recording()
        server = RpcServer(ORDER_SERVICE, impl)

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("InsertOrder", InsertOrderRequest())

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT
        assert "user_id" in exc_info.value.message
        assert impl.contexts == []

    @pytest.mark.asyncio
    async def test_wrong_request_type(self) -> None:
        server = RpcServer(PRODUCT_SERVICE, Misbehaving())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetProductByID", GetProductsRequest())

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT

    @pytest.mark.asyncio
    async def test_handler_crash_is_internal(self) -> None:
        server = RpcServer(PRODUCT_SERVICE, Misbehaving())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetProducts", GetProductsRequest())

        assert exc_info.value.code is StatusCode.INTERNAL
        assert "db row" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_wrong_response_type_is_internal(self) -> None:
        server = RpcServer(PRODUCT_SERVICE, Misbehaving())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetProductByID", GetProductByIDRequest(id="p"))

        assert exc_info.value.code is StatusCode.INTERNAL

    @pytest.mark.asyncio
    async def test_deadline_exceeded(self) -> None:
        server = RpcServer(PRODUCT_SERVICE, Misbehaving())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("PostProducts", PostProductsRequest(name="x"), timeout=0.05)

        assert exc_info.value.code is StatusCode.DEADLINE_EXCEEDED

    @pytest.mark.parametrize("timeout", [None, 5.0])
    @pytest.mark.asyncio
    async def test_handler_timeout_error_is_internal(self, timeout: float | None) -> None:
        class PoolExhausted:
            async def get_products(self, request, context):
                raise TimeoutError("db pool timeout")

        server = RpcServer(PRODUCT_SERVICE, PoolExhausted())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetProducts", GetProductsRequest(), timeout=timeout)

        assert exc_info.value.code is StatusCode.INTERNAL
        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_rpc_error_passes_through(self) -> None:
        server = RpcServer(PRODUCT_SERVICE, Misbehaving())

        with pytest.raises(RpcError) as exc_info:
            await server.invoke("GetProductOptions", PRODUCT_SERVICE.method("GetProductOptions").input_type(id="p"))

        assert exc_info.value.code is StatusCode.PERMISSION_DENIED
        assert exc_info.value.message == "options are private"

    @pytest.mark.asyncio
    async def test_sync_handler(self) -> None:
        class Sync:
            def get_product_by_id(self, request, context):
                return GetProductByIDResponse()

        server = RpcServer(PRODUCT_SERVICE, Sync())

        assert await server.invoke("GetProductByID", GetProductByIDRequest(id="p")) == GetProductByIDResponse()


class TestHandle:
    """Tests for the bytes-level handler."""

    @pytest.mark.asyncio
    async def test_bytes_round_trip(self) -> None:
        server = RpcServer(ORDER_SERVICE, Recording())

        raw = await server.handle("InsertOrder", InsertOrderRequest(user_id="u7").to_bytes())

        assert InsertOrderResponse.from_bytes(raw).id == "order-for-u7"

    @pytest.mark.asyncio
    async def test_malformed_payload(self) -> None:
        server = RpcServer(ORDER_SERVICE, Recording())

        with pytest.raises(RpcError) as exc_info:
            await server.handle("InsertOrder", b"\x0a\x09short")

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT

    def test_satisfies_handler_protocol(self) -> None:
        assert isinstance(RpcServer(ORDER_SERVICE), RpcServerHandler)


class TestParseTimeout:
    def test_values(self) -> None:
        assert parse_timeout(None) is None
        assert parse_timeout("") is None
        assert parse_timeout("2.500") == 2.5

    @pytest.mark.parametrize("raw", ["soon", "0", "-1"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(RpcError) as exc_info:
            parse_timeout(raw)

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT
