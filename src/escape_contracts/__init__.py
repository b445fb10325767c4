"""
escape-contracts: schema-driven RPC contracts for the escape-ship services
(Account, Order, Payment, Product), served over a binary RPC transport and an
HTTP/JSON gateway generated from the same descriptors.
"""
from escape_contracts.clients import ClientSet, DistributedClientSet
from escape_contracts.core import (
    Application,
    ClientConfig,
    Config,
    GatewayConfig,
    Module,
    ServiceAddresses,
    configure_logging,
)
from escape_contracts.errors import ContractError, DecodeError, RpcError, SchemaError, ValidationError
from escape_contracts.factory import create_gateway_app, create_service_app
from escape_contracts.gateway import GatewayModule, LocalInvoker, RemoteInvoker
from escape_contracts.rpc import (
    CallContext,
    HttpRpcTransport,
    RetryConfig,
    RpcModule,
    RpcServer,
    ServiceClient,
    authenticated,
)
from escape_contracts.schemas import SERVICES, get_service
from escape_contracts.status import StatusCode

__version__ = "0.1.0"

__all__ = [
    "Application",
    "CallContext",
    "ClientConfig",
    "ClientSet",
    "Config",
    "ContractError",
    "DecodeError",
    "DistributedClientSet",
    "GatewayConfig",
    "GatewayModule",
    "HttpRpcTransport",
    "LocalInvoker",
    "Module",
    "RemoteInvoker",
    "RetryConfig",
    "RpcError",
    "RpcModule",
    "RpcServer",
    "SERVICES",
    "SchemaError",
    "ServiceAddresses",
    "ServiceClient",
    "StatusCode",
    "ValidationError",
    "authenticated",
    "configure_logging",
    "create_gateway_app",
    "create_service_app",
    "get_service",
]
