"""Module protocol: anything with register_into(app) can be attached via app.register(module)."""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from escape_contracts.core.app import Application


@runtime_checkable
class Module(Protocol):
    """Building block (RpcModule, GatewayModule): configured first, then attached to the app."""

    def register_into(self, app: Application) -> None:
        """Attach routes and OpenAPI operations to the app."""
        ...
