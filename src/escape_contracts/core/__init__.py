from escape_contracts.core.app import Application, error_response
from escape_contracts.core.config import ClientConfig, Config, GatewayConfig, ServiceAddresses
from escape_contracts.core.module import Module
from escape_contracts.core.observability import configure_logging

__all__ = [
    "Application",
    "ClientConfig",
    "Config",
    "GatewayConfig",
    "Module",
    "ServiceAddresses",
    "configure_logging",
    "error_response",
]
