"""
App composition: everything via module objects and app.register().
A service app serves one implementation on both transports; a gateway app
proxies JSON calls to remote backends over the binary transport.
"""
from __future__ import annotations

from typing import Any, Callable

import structlog

from escape_contracts.core.app import Application
from escape_contracts.core.config import ClientConfig, GatewayConfig, ServiceAddresses
from escape_contracts.gateway import GatewayModule, LocalInvoker, RemoteInvoker
from escape_contracts.rpc import HttpRpcTransport, RetryConfig, RpcModule, RpcServer, ServiceClient
from escape_contracts.rpc.service import ServiceDescriptor
from escape_contracts.schemas import SERVICE_KEYS

logger = structlog.get_logger(__name__)


def create_service_app(
    service: ServiceDescriptor,
    implementation: Any,
    *,
    rpc_prefix: str = "/rpc",
    default_timeout: float | None = None,
    title: str | None = None,
    version: str = "1.0.0",
) -> Application:
    """Binary RPC under rpc_prefix and the JSON gateway, both on one RpcServer."""
    server = RpcServer(service, implementation)
    app = Application()
    app.register(RpcModule(prefix=rpc_prefix).server(server))
    app.register(GatewayModule(service, LocalInvoker(server), default_timeout=default_timeout))
    app.openapi(title=title or f"{service.name} API", version=version)
    return app


def create_gateway_app(
    addresses: ServiceAddresses,
    config: GatewayConfig | None = None,
    *,
    client_config_factory: Callable[[str], ClientConfig] = ClientConfig.default,
    retry: RetryConfig | None = None,
) -> Application:
    """JSON gateway for every service that has an address; calls go out over the binary transport."""
    config = config or GatewayConfig()
    configured = addresses.configured()
    if not configured:
        raise ValueError("no service addresses configured")
    app = Application(config=config)
    for key, address in configured.items():
        client_config = client_config_factory(address)
        client = ServiceClient(
            SERVICE_KEYS[key],
            HttpRpcTransport(client_config, prefix=config.rpc_prefix),
            default_timeout=client_config.default_timeout,
            retry=retry,
        )
        app.register(GatewayModule(SERVICE_KEYS[key], RemoteInvoker(client), default_timeout=config.default_timeout))
        logger.info("gateway_backend", service=key, base_url=client_config.base_url)
    app.openapi(title=config.title, version=config.version)
    return app
