"""Typed client proxy over an RpcTransport."""
from __future__ import annotations

import time
from typing import Any, Mapping

import structlog

from escape_contracts.errors import DecodeError, RpcError
from escape_contracts.rpc.protocol import RpcTransport
from escape_contracts.rpc.retry import RetryConfig, call_with_retry
from escape_contracts.rpc.service import MethodDescriptor, ServiceDescriptor
from escape_contracts.status import StatusCode
from escape_contracts.wire import Message

logger = structlog.get_logger(__name__)


def authenticated(
    scheme: str,
    token: str,
    metadata: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Call metadata with authorization: '<scheme> <token>' added (Bearer, KakaoAK ...)."""
    out = dict(metadata or {})
    out["authorization"] = f"{scheme} {token}"
    return out


class ServiceClient:
    """
    Client for one service. Methods are exposed in snake_case:

        orders = ServiceClient(ORDER_SERVICE, transport)
        reply = await orders.insert_order(InsertOrderRequest(user_id="u1"), timeout=3)

    Each call is independent, so one client may be shared across tasks.
    The timeout bounds the whole call, retries and backoff included.
    """

    def __init__(
        self,
        service: ServiceDescriptor,
        transport: RpcTransport,
        *,
        default_timeout: float | None = None,
        metadata: Mapping[str, str] | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.service = service
        self._transport = transport
        self._default_timeout = default_timeout
        self._metadata = dict(metadata or {})
        self._retry = retry

    async def call(
        self,
        method_name: str,
        request: Message,
        *,
        timeout: float | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> Message:
        method = self.service.method(method_name)
        if not isinstance(request, method.input_type):
            raise TypeError(
                f"{method.name} expects {method.input_type.__name__}, got {type(request).__name__}"
            )
        try:
            payload = request.to_bytes()
        except ValueError as exc:
            raise RpcError(StatusCode.INVALID_ARGUMENT, f"{method.name}: request cannot be encoded") from exc
        path = self.service.rpc_path(method)
        call_metadata = {**self._metadata, **(metadata or {})}
        if timeout is None:
            timeout = self._default_timeout
        deadline = time.monotonic() + timeout if timeout is not None else None

        async def attempt() -> bytes:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise RpcError(StatusCode.DEADLINE_EXCEEDED, f"{method.name}: deadline exceeded")
            return await self._transport.call(path, payload, metadata=call_metadata, timeout=remaining)

        try:
            if self._retry is None:
                raw = await attempt()
            else:
                raw = await call_with_retry(attempt, self._retry, operation=path, deadline=deadline)
        except RpcError as exc:
            logger.warning(
                "rpc_call_failed",
                service=self.service.full_name,
                method=method.name,
                code=exc.code.name,
                message=exc.message,
            )
            raise
        return self._decode(method, raw)

    def _decode(self, method: MethodDescriptor, raw: bytes) -> Message:
        try:
            return method.output_type.from_bytes(raw)
        except DecodeError as exc:
            raise RpcError.from_exception(exc) from exc

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            method = self.service.method(name)
        except RpcError:
            raise AttributeError(f"{self.service.name} has no method {name!r}") from None

        async def stub(
            request: Message,
            *,
            timeout: float | None = None,
            metadata: Mapping[str, str] | None = None,
        ) -> Message:
            return await self.call(method.name, request, timeout=timeout, metadata=metadata)

        stub.__name__ = method.python_name
        stub.__doc__ = method.summary or None
        return stub

    def __repr__(self) -> str:
        return f"ServiceClient({self.service.full_name})"
