"""
HTTP/JSON gateway: each method's HTTP rule becomes a route. The JSON request is
bound to the input message, the method is invoked, and the output is rendered
back as JSON (or the error envelope with the mapped HTTP status).
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import structlog
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import Receive

from escape_contracts.core.app import Application, error_response
from escape_contracts.core.module import Module
from escape_contracts.core.openapi import operation_for
from escape_contracts.core.routing import join_path
from escape_contracts.errors import DecodeError, RpcError
from escape_contracts.gateway.invoker import Invoker
from escape_contracts.rpc.protocol import TIMEOUT_HEADER
from escape_contracts.rpc.server import parse_timeout
from escape_contracts.rpc.service import MethodDescriptor, ServiceDescriptor
from escape_contracts.status import StatusCode
from escape_contracts.wire import Kind, Message

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def forwarded_metadata(headers: Mapping[str, str]) -> dict[str, str]:
    """authorization and x-* headers travel to the service as call metadata."""
    return {
        k.lower(): v
        for k, v in headers.items()
        if (k.lower() == "authorization" or k.lower().startswith("x-")) and k.lower() != TIMEOUT_HEADER
    }


async def _wait_disconnect(receive: Receive) -> None:
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


async def call_until_disconnect(receive: Receive, call: Awaitable[T]) -> T:
    """Run call; if the HTTP client goes away first, cancel it and raise CANCELLED."""
    task = asyncio.ensure_future(call)
    watcher = asyncio.ensure_future(_wait_disconnect(receive))
    try:
        done, _ = await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        watcher.cancel()
        if not task.done():
            task.cancel()
    if task in done:
        return task.result()
    await asyncio.wait({task})
    logger.info("gateway_call_cancelled")
    raise RpcError(StatusCode.CANCELLED, "client disconnected")


class GatewayModule(Module):
    """
    JSON gateway for one service. invoker decides where calls go
    (LocalInvoker in-process, RemoteInvoker over the binary transport).

        app.register(GatewayModule(PRODUCT_SERVICE, LocalInvoker(server)))
    """

    def __init__(
        self,
        service: ServiceDescriptor,
        invoker: Invoker,
        *,
        prefix: str = "",
        default_timeout: float | None = None,
    ) -> None:
        self.service = service
        self.invoker = invoker
        self.prefix = prefix
        self.default_timeout = default_timeout

    def register_into(self, app: Application) -> None:
        for method in self.service.methods:
            app.add_route(
                join_path(self.prefix, method.http.path),
                self._make_endpoint(method),
                methods=[method.http.verb],
                openapi_operation=operation_for(self.service, method, app.components),
            )

    def _make_endpoint(self, method: MethodDescriptor) -> Callable[[Request], Awaitable[Response]]:
        async def endpoint(request: Request) -> Response:
            try:
                message = await self.bind_request(method, request)
                timeout = parse_timeout(request.headers.get(TIMEOUT_HEADER)) or self.default_timeout
                call = self.invoker.invoke(
                    method.name,
                    message,
                    metadata=forwarded_metadata(request.headers),
                    timeout=timeout,
                )
                output = await call_until_disconnect(request.receive, call)
            except RpcError as exc:
                logger.info(
                    "gateway_call_failed",
                    service=self.service.full_name,
                    method=method.name,
                    code=exc.code.name,
                )
                return error_response(exc)
            try:
                return JSONResponse(self.render(method, output))
            except ValueError:
                logger.exception("gateway_render_failed", service=self.service.full_name, method=method.name)
                return error_response(RpcError(StatusCode.INTERNAL, "internal error"))

        return endpoint

    async def bind_request(self, method: MethodDescriptor, request: Request) -> Message:
        """Path params, then body ('*') or query string, into the input message."""
        rule = method.http
        fields = {wf.name: wf for wf in method.input_type.wire_fields()}
        values: dict[str, Any] = {}
        try:
            if rule.body == "*":
                raw = await request.body()
                if raw.strip():
                    try:
                        data = json.loads(raw)
                    except (ValueError, UnicodeDecodeError) as exc:
                        raise DecodeError("request body is not valid JSON") from exc
                    if not isinstance(data, dict):
                        raise DecodeError("request body must be a JSON object")
                    values.update(data)
            else:
                scalars = {
                    wf.json_key: wf
                    for wf in fields.values()
                    if wf.spec.kind is not Kind.MESSAGE and not wf.spec.repeated
                }
                # unknown query parameters and body keys are ignored
                for key, value in request.query_params.items():
                    if key in scalars and key not in rule.path_params:
                        values[key] = value
            for name in rule.path_params:
                values.pop(fields[name].json_key, None)
                values[name] = request.path_params[name]
            return method.input_type.from_dict(values, discard_unknown=True)
        except DecodeError as exc:
            raise RpcError.from_exception(exc) from exc

    def render(self, method: MethodDescriptor, output: Message) -> Any:
        data = output.to_dict()
        if method.http.response_body is None:
            return data
        by_name = {wf.name: wf for wf in output.wire_fields()}
        return data[by_name[method.http.response_body].json_key]
