"""
Server side of the binary transport.
RpcServer dispatches by method name to the consuming service's implementation;
RpcModule exposes every method as POST {prefix}/{package}.{Service}/{Method}.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Mapping

import structlog
from starlette.requests import Request
from starlette.responses import Response

from escape_contracts.core.app import Application, error_response
from escape_contracts.core.module import Module
from escape_contracts.core.routing import join_path
from escape_contracts.errors import DecodeError, RpcError, ValidationError
from escape_contracts.rpc.protocol import PROTOBUF_MEDIA_TYPE, TIMEOUT_HEADER, CallContext
from escape_contracts.rpc.service import MethodDescriptor, ServiceDescriptor
from escape_contracts.status import StatusCode
from escape_contracts.wire import Message

logger = structlog.get_logger(__name__)

# transport headers that are not call metadata
_NOT_METADATA = frozenset(
    {
        "host",
        "content-length",
        "content-type",
        "accept",
        "accept-encoding",
        "connection",
        "user-agent",
        TIMEOUT_HEADER,
    }
)


class RpcServer:
    """
    Dispatcher for one service. The implementation provides methods named after
    the RPCs in snake_case (insert_order(self, request, context)), sync or async.
    Methods it does not provide fall back to Unimplemented.
    Raise RpcError for taxonomy failures; anything else is reported as INTERNAL.
    """

    def __init__(self, service: ServiceDescriptor, implementation: Any = None) -> None:
        self.service = service
        self._implementation = implementation
        self._fallback = service.unimplemented()

    def _handler_for(self, method: MethodDescriptor) -> Callable[..., Any]:
        handler = getattr(self._implementation, method.python_name, None)
        if not callable(handler):
            handler = getattr(self._fallback, method.python_name)
        return handler

    async def invoke(
        self,
        method_name: str,
        request: Message,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Message:
        """Typed call: validate, run the handler under the deadline, check the response type."""
        method = self.service.method(method_name)
        if not isinstance(request, method.input_type):
            raise RpcError(
                StatusCode.INVALID_ARGUMENT,
                f"{method.name} expects {method.input_type.__name__}, got {type(request).__name__}",
            )
        try:
            request.validate()
        except ValidationError as exc:
            raise RpcError.from_exception(exc) from exc

        context = CallContext(
            service=self.service.full_name,
            method=method.name,
            metadata=dict(metadata or {}),
            deadline=time.monotonic() + timeout if timeout is not None else None,
        )
        handler = self._handler_for(method)
        try:
            if timeout is None:
                result = await self._run(handler, request, context)
            else:
                result = await asyncio.wait_for(self._run(handler, request, context), timeout)
        except RpcError:
            raise
        except asyncio.TimeoutError as exc:
            # handlers may raise TimeoutError themselves; only an expired deadline is DEADLINE_EXCEEDED
            if context.deadline is not None and context.time_remaining() == 0:
                raise RpcError(StatusCode.DEADLINE_EXCEEDED, f"{method.name}: deadline exceeded") from None
            logger.exception("rpc_handler_failed", service=self.service.full_name, method=method.name)
            raise RpcError(StatusCode.INTERNAL, "internal error") from exc
        except DecodeError as exc:
            raise RpcError.from_exception(exc) from exc
        except Exception as exc:
            logger.exception("rpc_handler_failed", service=self.service.full_name, method=method.name)
            raise RpcError(StatusCode.INTERNAL, "internal error") from exc

        if not isinstance(result, method.output_type):
            logger.error(
                "rpc_bad_response",
                service=self.service.full_name,
                method=method.name,
                expected=method.output_type.__name__,
                got=type(result).__name__,
            )
            raise RpcError(StatusCode.INTERNAL, f"{method.name} produced no valid response")
        return result

    async def _run(self, handler: Callable[..., Any], request: Message, context: CallContext) -> Any:
        result = handler(request, context)
        if hasattr(result, "__await__"):
            result = await result
        return result

    async def handle(
        self,
        method: str,
        payload: bytes,
        *,
        metadata: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> bytes:
        """Bytes in, bytes out (RpcServerHandler). Malformed payload -> INVALID_ARGUMENT."""
        descriptor = self.service.method(method)
        try:
            request = descriptor.input_type.from_bytes(payload)
        except DecodeError as exc:
            raise RpcError.from_exception(exc) from exc
        response = await self.invoke(method, request, metadata=metadata, timeout=timeout)
        try:
            return response.to_bytes()
        except (TypeError, ValueError) as exc:
            logger.exception("rpc_encode_failed", service=self.service.full_name, method=descriptor.name)
            raise RpcError(StatusCode.INTERNAL, "internal error") from exc


def parse_timeout(raw: str | None) -> float | None:
    """x-rpc-timeout header: positive seconds as a decimal number."""
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        raise RpcError(StatusCode.INVALID_ARGUMENT, f"invalid {TIMEOUT_HEADER}: {raw!r}") from None
    if value <= 0:
        raise RpcError(StatusCode.INVALID_ARGUMENT, f"invalid {TIMEOUT_HEADER}: {raw!r}")
    return value


class RpcModule(Module):
    """
    Binary RPC as object: .service(descriptor, implementation) for each served contract.
    Register with app.register(rpc).
    """

    def __init__(self, prefix: str = "/rpc") -> None:
        self.prefix = prefix
        self._servers: list[RpcServer] = []

    def service(self, descriptor: ServiceDescriptor, implementation: Any) -> RpcModule:
        self._servers.append(RpcServer(descriptor, implementation))
        return self

    def server(self, server: RpcServer) -> RpcModule:
        """Serve an already built RpcServer (shared with a local gateway)."""
        self._servers.append(server)
        return self

    def register_into(self, app: Application) -> None:
        for server in self._servers:
            for method in server.service.methods:
                path = join_path(self.prefix, server.service.rpc_path(method))
                app.add_route(path, self._make_endpoint(server, method), methods=["POST"])

    def _make_endpoint(self, server: RpcServer, method: MethodDescriptor) -> Callable:
        async def endpoint(request: Request) -> Response:
            payload = await request.body()
            metadata = {k: v for k, v in request.headers.items() if k not in _NOT_METADATA}
            try:
                timeout = parse_timeout(request.headers.get(TIMEOUT_HEADER))
                body = await server.handle(method.name, payload, metadata=metadata, timeout=timeout)
            except RpcError as exc:
                return error_response(exc)
            return Response(content=body, media_type=PROTOBUF_MEDIA_TYPE)

        return endpoint
