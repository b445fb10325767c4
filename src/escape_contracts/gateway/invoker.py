"""Where the gateway sends a decoded request: an in-process server or a remote binary client."""
from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from escape_contracts.rpc.client import ServiceClient
from escape_contracts.rpc.server import RpcServer
from escape_contracts.wire import Message


@runtime_checkable
class Invoker(Protocol):
    async def invoke(
        self,
        method: str,
        request: Message,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Message:
        ...


class LocalInvoker:
    """Same process: the gateway calls the RpcServer directly, no wire hop."""

    def __init__(self, server: RpcServer) -> None:
        self.server = server

    async def invoke(
        self,
        method: str,
        request: Message,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Message:
        return await self.server.invoke(method, request, metadata=metadata, timeout=timeout)


class RemoteInvoker:
    """Standalone gateway: forwards over the binary transport to the backend service."""

    def __init__(self, client: ServiceClient) -> None:
        self.client = client

    async def invoke(
        self,
        method: str,
        request: Message,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Message:
        return await self.client.call(method, request, timeout=timeout, metadata=metadata)
