"""Exception hierarchy for escape-contracts.

- ContractError: base for everything raised by this package
- SchemaError: a message or service declaration is invalid
- DecodeError: a wire payload (protobuf or JSON) is malformed
- ValidationError: a decoded request lacks a required field
- RpcError: a call failed with one of the taxonomy codes

User-facing messages travel in error envelopes; internal details are only
logged via structlog.
"""

from __future__ import annotations

import structlog

from escape_contracts.status import StatusCode

logger = structlog.get_logger(__name__)


class ContractError(Exception):
    """Base exception for escape-contracts.

    Args:
        user_message: Safe message, returned to remote callers.
        internal_details: Optional technical details. Logged, never sent.
    """

    def __init__(self, user_message: str, *, internal_details: str | None = None) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details

        if internal_details:
            logger.error(
                "contract_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class SchemaError(ContractError):
    """Raised when a message or service declaration is inconsistent.

    Example:
        >>> raise SchemaError("Order: field number 3 used twice")
    """


class DecodeError(ContractError):
    """Raised when a protobuf or JSON payload cannot be decoded into a message.

    Attributes:
        field_path: Dot-separated path of the offending field, if known.
    """

    def __init__(
        self,
        user_message: str,
        *,
        field_path: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        if field_path:
            user_message = f"{user_message} (field '{field_path}')"
        super().__init__(user_message, internal_details=internal_details)
        self.field_path = field_path


class ValidationError(ContractError):
    """Raised when required request fields are missing.

    Attributes:
        missing: Dot-separated paths of the missing fields.
    """

    def __init__(self, message_name: str, missing: list[str]) -> None:
        super().__init__(f"{message_name}: missing required field(s): {', '.join(missing)}")
        self.missing = missing


class RpcError(ContractError):
    """RPC call failed: the server replied with an error or the transport failed.

    Attributes:
        code: Taxonomy code.
        message: Human-readable message (same as user_message).
    """

    def __init__(
        self,
        code: StatusCode,
        message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(message, internal_details=internal_details)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"

    @property
    def retryable(self) -> bool:
        return self.code.retryable

    @property
    def http_status(self) -> int:
        return self.code.http_status

    def to_envelope(self) -> dict[str, dict[str, str]]:
        """Standard error envelope: {"error": {"code": "...", "message": "..."}}."""
        return {"error": {"code": self.code.name, "message": self.message}}

    @classmethod
    def from_exception(cls, exc: BaseException) -> RpcError:
        """Map decode/validation failures to INVALID_ARGUMENT, anything else to INTERNAL."""
        if isinstance(exc, RpcError):
            return exc
        if isinstance(exc, (DecodeError, ValidationError)):
            return cls(StatusCode.INVALID_ARGUMENT, exc.user_message)
        return cls(StatusCode.INTERNAL, "internal error")
