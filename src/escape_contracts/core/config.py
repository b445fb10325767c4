"""Configuration: env helpers plus client, address and gateway settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any


class Config:
    """Env helpers. Dataclass configs below are built from these."""

    @classmethod
    def load_from_env(cls, prefix: str = "APP_", **defaults: Any) -> dict[str, Any]:
        """Load from os.environ with prefix and defaults. Returns dict for MyConfig(**Config.load_from_env())."""
        result = dict(defaults)
        for key, value in os.environ.items():
            if key.startswith(prefix):
                name = key[len(prefix):].lower()
                result[name] = value
        return result

    @staticmethod
    def services_from_env(suffix: str = "_SERVICE_URL") -> dict[str, str]:
        """
        Build service key -> URL map from env.
        ORDER_SERVICE_URL=http://... -> {"order": "http://..."}.
        """
        out: dict[str, str] = {}
        for key, value in os.environ.items():
            if not value or not key.endswith(suffix):
                continue
            name = key[: -len(suffix)].lower()
            if name:
                out[name] = value.strip()
        return out


def _coerce(cls: type, values: dict[str, Any]) -> dict[str, Any]:
    """Keep known fields and convert env strings to the default's type."""
    defaults = {f.name: f.default for f in fields(cls)}
    out: dict[str, Any] = {}
    for name, value in values.items():
        if name not in defaults:
            continue
        default = defaults[name]
        if isinstance(value, str):
            if isinstance(default, bool):
                value = value.strip().lower() in ("1", "true", "yes", "on")
            elif isinstance(default, int):
                value = int(value)
            elif isinstance(default, float) or name.endswith(("timeout", "expiry")):
                value = float(value) if value.strip() else None
        out[name] = value
    return out


@dataclass(frozen=True)
class ClientConfig:
    """
    Connection settings for the binary RPC client.
    address: host:port or a full http(s):// URL.
    """

    address: str
    insecure: bool = True
    dial_timeout: float = 5.0
    keepalive_expiry: float = 30.0
    max_connections: int = 100
    default_timeout: float | None = None
    authority: str | None = None
    http2: bool = False

    @classmethod
    def default(cls, address: str) -> ClientConfig:
        """Local development: plaintext, short timeouts."""
        return cls(address=address, insecure=True, dial_timeout=5.0, keepalive_expiry=30.0)

    @classmethod
    def production(cls, address: str) -> ClientConfig:
        """TLS with longer dial and keepalive."""
        return cls(address=address, insecure=False, dial_timeout=10.0, keepalive_expiry=60.0)

    @classmethod
    def from_env(cls, prefix: str = "RPC_CLIENT_", **defaults: Any) -> ClientConfig:
        """RPC_CLIENT_ADDRESS=..., RPC_CLIENT_INSECURE=false, RPC_CLIENT_DEFAULT_TIMEOUT=3."""
        values = _coerce(cls, Config.load_from_env(prefix, **defaults))
        if not values.get("address"):
            raise ValueError(f"{prefix}ADDRESS is not set")
        return cls(**values)

    @property
    def base_url(self) -> str:
        if "://" in self.address:
            return self.address.rstrip("/")
        scheme = "http" if self.insecure else "https"
        return f"{scheme}://{self.address}"


@dataclass(frozen=True)
class ServiceAddresses:
    """Per-service backend addresses, for services deployed on different hosts."""

    account: str | None = None
    order: str | None = None
    payment: str | None = None
    product: str | None = None

    @classmethod
    def from_env(cls, suffix: str = "_SERVICE_URL") -> ServiceAddresses:
        """ACCOUNT_SERVICE_URL, ORDER_SERVICE_URL, PAYMENT_SERVICE_URL, PRODUCT_SERVICE_URL."""
        found = Config.services_from_env(suffix)
        return cls(**{f.name: found.get(f.name) for f in fields(cls)})

    def configured(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}


@dataclass(frozen=True)
class GatewayConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    rpc_prefix: str = "/rpc"
    default_timeout: float | None = 30.0
    title: str = "escape-ship API"
    version: str = "1.0.0"

    @classmethod
    def from_env(cls, prefix: str = "GATEWAY_", **defaults: Any) -> GatewayConfig:
        return cls(**_coerce(cls, Config.load_from_env(prefix, **defaults)))
