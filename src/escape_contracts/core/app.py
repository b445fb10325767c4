"""Application: composed from modules via app.register(module). Served by Starlette."""
from __future__ import annotations

from typing import Any

import structlog
from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from escape_contracts.core.module import Module
from escape_contracts.core.openapi import SWAGGER_UI_HTML, Operations, build_openapi_spec
from escape_contracts.core.routing import specificity
from escape_contracts.errors import RpcError
from escape_contracts.status import StatusCode

logger = structlog.get_logger(__name__)


def error_response(error: RpcError, headers: dict[str, str] | None = None) -> JSONResponse:
    """Standard error envelope with the HTTP status mapped from the taxonomy code."""
    return JSONResponse(error.to_envelope(), status_code=error.http_status, headers=headers)


async def _http_error(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, HTTPException)
    code = StatusCode.from_http_status(exc.status_code)
    body = RpcError(code, exc.detail or code.name.lower()).to_envelope()
    return JSONResponse(body, status_code=exc.status_code, headers=exc.headers)


class Application:
    """
    Application. Composed from modules via register(module).
    ASGI-callable: uvicorn module:app. Routes are frozen on the first request.
    """

    def __init__(self, config: Any = None) -> None:
        self.config = config
        self._modules: list[Module] = []
        self._routes: list[tuple[str, Any, list[str]]] = []
        self._operations: Operations = {}
        self._components: dict[str, Any] = {}
        self._openapi: dict[str, str] | None = None
        self._asgi: Starlette | None = None

    def register(self, module: Module) -> Application:
        """Register a module (RpcModule, GatewayModule). Returns self for chaining."""
        module.register_into(self)
        self._modules.append(module)
        return self

    def add_route(
        self,
        path: str,
        endpoint: Any,
        methods: list[str] | None = None,
        *,
        openapi_operation: dict[str, Any] | None = None,
    ) -> None:
        """Add an HTTP route; openapi_operation is published in /openapi.json."""
        if self._asgi is not None:
            raise RuntimeError("cannot add routes after the application has started")
        if methods is None:
            methods = ["GET"]
        self._routes.append((path, endpoint, methods))
        if openapi_operation is not None:
            for method in methods:
                self._operations[(path, method)] = openapi_operation

    @property
    def components(self) -> dict[str, Any]:
        """Shared OpenAPI component schemas, filled by modules as they register."""
        return self._components

    @property
    def routes(self) -> list[tuple[str, list[str]]]:
        return [(path, methods) for path, _, methods in self._routes]

    def openapi(
        self,
        *,
        title: str = "API",
        version: str = "0.1.0",
        docs_path: str = "/docs",
        openapi_path: str = "/openapi.json",
    ) -> Application:
        """Serve GET openapi_path (JSON) and GET docs_path (Swagger UI)."""
        self._openapi = {
            "title": title,
            "version": version,
            "docs_path": docs_path,
            "openapi_path": openapi_path,
        }
        return self

    def openapi_spec(self) -> dict[str, Any]:
        meta = self._openapi or {"title": "API", "version": "0.1.0"}
        return build_openapi_spec(
            self._operations,
            self._components,
            title=meta["title"],
            version=meta["version"],
        )

    def build(self) -> Starlette:
        """Starlette app with routes ordered most specific first."""
        ordered = sorted(self._routes, key=lambda r: specificity(r[0]))
        routes = [Route(path, endpoint, methods=methods) for path, endpoint, methods in ordered]
        if self._openapi is not None:
            meta = self._openapi

            async def openapi_json(request: Request) -> Response:
                return JSONResponse(self.openapi_spec())

            async def docs(request: Request) -> Response:
                return HTMLResponse(SWAGGER_UI_HTML % {"openapi_path": meta["openapi_path"]})

            routes.append(Route(meta["openapi_path"], openapi_json, methods=["GET"]))
            routes.append(Route(meta["docs_path"], docs, methods=["GET"]))
        logger.debug("application_built", routes=len(routes), modules=len(self._modules))
        return Starlette(routes=routes, exception_handlers={HTTPException: _http_error})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self._asgi is None:
            self._asgi = self.build()
        await self._asgi(scope, receive, send)

    def run(self, host: str = "127.0.0.1", port: int = 8000, **uvicorn_options: Any) -> None:
        """Run HTTP server (blocks)."""
        import uvicorn

        uvicorn.run(self, host=host, port=port, **uvicorn_options)
