"""The four service contracts. Each is self-contained; none references another."""
from escape_contracts.rpc.service import ServiceDescriptor
from escape_contracts.schemas.account import ACCOUNT_SERVICE
from escape_contracts.schemas.order import ORDER_SERVICE
from escape_contracts.schemas.payment import PAYMENT_SERVICE
from escape_contracts.schemas.product import PRODUCT_SERVICE

SERVICES: tuple[ServiceDescriptor, ...] = (
    ACCOUNT_SERVICE,
    ORDER_SERVICE,
    PAYMENT_SERVICE,
    PRODUCT_SERVICE,
)

# short names used by config, CLI and client sets
SERVICE_KEYS: dict[str, ServiceDescriptor] = {
    "account": ACCOUNT_SERVICE,
    "order": ORDER_SERVICE,
    "payment": PAYMENT_SERVICE,
    "product": PRODUCT_SERVICE,
}


def get_service(name: str) -> ServiceDescriptor:
    """Find a service by short key (order), name (OrderService) or full name."""
    key = name.strip()
    if key.lower() in SERVICE_KEYS:
        return SERVICE_KEYS[key.lower()]
    for service in SERVICES:
        if key in (service.name, service.full_name):
            return service
    raise KeyError(f"unknown service {name!r}; known: {', '.join(SERVICE_KEYS)}")


__all__ = [
    "ACCOUNT_SERVICE",
    "ORDER_SERVICE",
    "PAYMENT_SERVICE",
    "PRODUCT_SERVICE",
    "SERVICES",
    "SERVICE_KEYS",
    "get_service",
]
