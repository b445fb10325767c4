from escape_contracts.gateway.invoker import Invoker, LocalInvoker, RemoteInvoker
from escape_contracts.gateway.translator import GatewayModule, call_until_disconnect, forwarded_metadata

__all__ = [
    "GatewayModule",
    "Invoker",
    "LocalInvoker",
    "RemoteInvoker",
    "call_until_disconnect",
    "forwarded_metadata",
]
