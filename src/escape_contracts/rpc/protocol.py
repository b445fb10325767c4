"""RPC protocols: transport (client side) and handler (server side), plus the per-call context."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Mapping, Protocol, runtime_checkable

PROTOBUF_MEDIA_TYPE = "application/x-protobuf"
TIMEOUT_HEADER = "x-rpc-timeout"


@runtime_checkable
class RpcTransport(Protocol):
    """Binary RPC transport: send protobuf bytes to /{package}.{Service}/{Method}, get bytes back.

    Raises RpcError for every failure (server-reported or transport-level).
    """

    async def call(
        self,
        path: str,
        payload: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bytes:
        ...

    async def aclose(self) -> None:
        ...


@runtime_checkable
class RpcServerHandler(Protocol):
    """Incoming RPC handler: method + body -> response body, or RpcError."""

    async def handle(
        self,
        method: str,
        payload: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bytes:
        ...


@dataclass(frozen=True)
class CallContext:
    """What a handler knows about the call besides the request message."""

    service: str
    method: str
    metadata: Mapping[str, str] = field(default_factory=dict)
    deadline: float | None = None  # time.monotonic() value

    def time_remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def authorization(self) -> str | None:
        return self.metadata.get("authorization")
