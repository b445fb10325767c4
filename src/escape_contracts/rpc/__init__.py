from escape_contracts.rpc.client import ServiceClient, authenticated
from escape_contracts.rpc.protocol import (
    PROTOBUF_MEDIA_TYPE,
    TIMEOUT_HEADER,
    CallContext,
    RpcServerHandler,
    RpcTransport,
)
from escape_contracts.rpc.retry import RetryConfig, call_with_retry
from escape_contracts.rpc.server import RpcModule, RpcServer
from escape_contracts.rpc.service import HttpRule, MethodDescriptor, ServiceDescriptor, Unimplemented
from escape_contracts.rpc.transport import HttpRpcTransport

__all__ = [
    "PROTOBUF_MEDIA_TYPE",
    "TIMEOUT_HEADER",
    "CallContext",
    "HttpRpcTransport",
    "HttpRule",
    "MethodDescriptor",
    "RetryConfig",
    "RpcModule",
    "RpcServer",
    "RpcServerHandler",
    "RpcTransport",
    "ServiceClient",
    "ServiceDescriptor",
    "Unimplemented",
    "authenticated",
    "call_with_retry",
]
