"""Retry policy for retryable status codes, with exponential backoff via tenacity."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.stop import stop_base

from escape_contracts.errors import RpcError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """
    Attempts include the first call. Waits: backoff_base, 2x, 4x ... capped at backoff_max.
    Only UNAVAILABLE, RESOURCE_EXHAUSTED and DEADLINE_EXCEEDED are retried.
    """

    max_attempts: int = 3
    backoff_base: float = 0.1
    backoff_max: float = 5.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.backoff_base <= 0 or self.backoff_max < self.backoff_base:
            raise ValueError("backoff_max must be >= backoff_base > 0")


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, RpcError) and exc.retryable


class stop_before_deadline(stop_base):
    """Stop when the next backoff would end at or past the time.monotonic() deadline."""

    def __init__(self, deadline: float, wait: Callable[[RetryCallState], float]) -> None:
        self.deadline = deadline
        self.wait = wait

    def __call__(self, retry_state: RetryCallState) -> bool:
        return time.monotonic() + self.wait(retry_state) >= self.deadline


def _log_retry(operation: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome is not None else None
        logger.warning(
            "rpc_retry",
            operation=operation,
            attempt=state.attempt_number,
            code=exc.code.name if isinstance(exc, RpcError) else None,
            wait=state.next_action.sleep if state.next_action is not None else None,
        )

    return before_sleep


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    config: RetryConfig,
    *,
    operation: str = "rpc",
    deadline: float | None = None,
) -> T:
    """
    Await fn(), retrying retryable RpcErrors; the last error is re-raised unchanged.
    With a deadline (time.monotonic() value), no backoff runs into it.
    """
    wait = wait_exponential(multiplier=config.backoff_base, max=config.backoff_max)
    stop: stop_base = stop_after_attempt(config.max_attempts)
    if deadline is not None:
        stop = stop | stop_before_deadline(deadline, wait)
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_retryable),
        stop=stop,
        wait=wait,
        before_sleep=_log_retry(operation),
        reraise=True,
    )
    return await retrying(fn)
