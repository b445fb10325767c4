"""Binary RPC over HTTP POST: protobuf body in, protobuf body (or error envelope) out."""
from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping

import httpx
import structlog

from escape_contracts.core.config import ClientConfig
from escape_contracts.core.routing import join_path
from escape_contracts.errors import RpcError
from escape_contracts.rpc.protocol import PROTOBUF_MEDIA_TYPE, TIMEOUT_HEADER
from escape_contracts.status import StatusCode

logger = structlog.get_logger(__name__)


def error_from_response(status_code: int, content: bytes) -> RpcError:
    """Rebuild the server's RpcError from an envelope, or classify by HTTP status."""
    try:
        data = json.loads(content.decode()) if content else None
    except (ValueError, UnicodeDecodeError):
        data = None
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict) and "code" in err:
        return RpcError(StatusCode.from_name(str(err["code"])), str(err.get("message", "")))
    if isinstance(err, str):
        return RpcError(StatusCode.from_http_status(status_code), err)
    return RpcError(StatusCode.from_http_status(status_code), f"HTTP {status_code}")


class HttpRpcTransport:
    """
    One pooled httpx.AsyncClient per transport: many calls may be in flight at once,
    each independent. Deadline = total time for the call; the server sees it in x-rpc-timeout.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        prefix: str = "/rpc",
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._prefix = prefix
        headers = {"content-type": PROTOBUF_MEDIA_TYPE, "accept": PROTOBUF_MEDIA_TYPE}
        if config.authority:
            headers["host"] = config.authority
        options: dict[str, Any] = {}
        if http_transport is not None:
            options["transport"] = http_transport
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=httpx.Timeout(None, connect=config.dial_timeout),
            limits=httpx.Limits(
                max_connections=config.max_connections,
                keepalive_expiry=config.keepalive_expiry,
            ),
            http2=config.http2,
            **options,
        )

    async def call(
        self,
        path: str,
        payload: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bytes:
        headers = dict(metadata or {})
        if timeout is not None:
            headers[TIMEOUT_HEADER] = f"{max(timeout, 0.001):.3f}"
        url = join_path(self._prefix, path)
        request = self._client.post(url, content=payload, headers=headers)
        try:
            if timeout is None:
                response = await request
            else:
                response = await asyncio.wait_for(request, timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise RpcError(StatusCode.DEADLINE_EXCEEDED, f"{path}: deadline exceeded") from None
        except httpx.TransportError as exc:
            raise RpcError(
                StatusCode.UNAVAILABLE,
                f"{path}: service unavailable",
                internal_details=f"{type(exc).__name__}: {exc}",
            ) from exc
        if response.status_code == 200:
            return response.content
        raise error_from_response(response.status_code, response.content)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpRpcTransport:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
