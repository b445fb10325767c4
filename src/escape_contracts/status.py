"""Failure taxonomy shared by both transports: status codes, HTTP mapping, retry hints."""
from __future__ import annotations

from enum import Enum


class StatusCode(Enum):
    """RPC outcome codes. Values follow the gRPC numbering."""

    OK = 0
    CANCELLED = 1
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    UNAUTHENTICATED = 16

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]

    @property
    def retryable(self) -> bool:
        """Conventionally safe to retry with backoff."""
        return self in RETRYABLE_CODES

    @classmethod
    def from_name(cls, name: str) -> StatusCode:
        """Parse a code name from an error envelope; unknown names become INTERNAL."""
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            return cls.INTERNAL

    @classmethod
    def from_http_status(cls, status: int) -> StatusCode:
        """Classify a reply that carried no usable envelope."""
        if status in _FROM_HTTP:
            return _FROM_HTTP[status]
        if status == 502:
            return cls.UNAVAILABLE
        return cls.INTERNAL


_HTTP_STATUS: dict[StatusCode, int] = {
    StatusCode.OK: 200,
    StatusCode.CANCELLED: 499,
    StatusCode.INVALID_ARGUMENT: 400,
    StatusCode.DEADLINE_EXCEEDED: 504,
    StatusCode.NOT_FOUND: 404,
    StatusCode.PERMISSION_DENIED: 403,
    StatusCode.RESOURCE_EXHAUSTED: 429,
    StatusCode.UNIMPLEMENTED: 501,
    StatusCode.INTERNAL: 500,
    StatusCode.UNAVAILABLE: 503,
    StatusCode.UNAUTHENTICATED: 401,
}

_FROM_HTTP: dict[int, StatusCode] = {v: k for k, v in _HTTP_STATUS.items()}
_FROM_HTTP[405] = StatusCode.UNIMPLEMENTED

RETRYABLE_CODES = frozenset(
    {StatusCode.UNAVAILABLE, StatusCode.RESOURCE_EXHAUSTED, StatusCode.DEADLINE_EXCEEDED}
)
