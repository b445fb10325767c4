"""Client sets: the four service clients together, on one connection or one per service."""
from __future__ import annotations

from typing import Any, Callable

import structlog

from escape_contracts.core.config import ClientConfig, ServiceAddresses
from escape_contracts.rpc.client import ServiceClient
from escape_contracts.rpc.protocol import RpcTransport
from escape_contracts.rpc.retry import RetryConfig
from escape_contracts.rpc.transport import HttpRpcTransport
from escape_contracts.schemas import SERVICE_KEYS

logger = structlog.get_logger(__name__)


class ClientSet:
    """
    All four clients over one shared transport (every service behind one address).

        async with ClientSet(ClientConfig.default("localhost:50051")) as clients:
            await clients.order.get_all_orders(GetAllOrdersRequest())
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: RpcTransport | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.config = config
        self._transport = transport if transport is not None else HttpRpcTransport(config)
        clients = {
            key: ServiceClient(
                service,
                self._transport,
                default_timeout=config.default_timeout,
                retry=retry,
            )
            for key, service in SERVICE_KEYS.items()
        }
        self.account = clients["account"]
        self.order = clients["order"]
        self.payment = clients["payment"]
        self.product = clients["product"]

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> ClientSet:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class DistributedClientSet:
    """
    One transport per service, for services deployed separately.
    Services without an address are left as None.
    """

    def __init__(
        self,
        addresses: ServiceAddresses,
        config_factory: Callable[[str], ClientConfig] = ClientConfig.default,
        *,
        retry: RetryConfig | None = None,
    ) -> None:
        self._transports: list[HttpRpcTransport] = []
        self.account: ServiceClient | None = None
        self.order: ServiceClient | None = None
        self.payment: ServiceClient | None = None
        self.product: ServiceClient | None = None
        for key, address in addresses.configured().items():
            config = config_factory(address)
            transport = HttpRpcTransport(config)
            self._transports.append(transport)
            client = ServiceClient(
                SERVICE_KEYS[key],
                transport,
                default_timeout=config.default_timeout,
                retry=retry,
            )
            setattr(self, key, client)
            logger.debug("service_client_created", service=key, base_url=config.base_url)

    async def aclose(self) -> None:
        for transport in self._transports:
            await transport.aclose()
        self._transports.clear()

    async def __aenter__(self) -> DistributedClientSet:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
