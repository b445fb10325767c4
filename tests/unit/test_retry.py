"""Unit tests for the retry policy."""

from __future__ import annotations

import time

import pytest

from escape_contracts.errors import RpcError
from escape_contracts.rpc.retry import RetryConfig, call_with_retry, is_retryable
from escape_contracts.status import StatusCode

FAST = RetryConfig(max_attempts=3, backoff_base=0.001, backoff_max=0.002)


class Flaky:
    """Fails with the given codes in order, then returns 'ok'."""

    def __init__(self, *codes: StatusCode) -> None:
        self.codes = list(codes)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.codes:
            raise RpcError(self.codes.pop(0), "try again")
        return "ok"


class TestRetryConfig:
    def test_defaults(self) -> None:
        config = RetryConfig()

        assert (config.max_attempts, config.backoff_base, config.backoff_max) == (3, 0.1, 5.0)

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_attempts": 0}, {"backoff_base": 0}, {"backoff_base": 2.0, "backoff_max": 1.0}],
    )
    def test_invalid(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            RetryConfig(**kwargs)


class TestCallWithRetry:
    """Tests for call_with_retry."""

    @pytest.mark.asyncio
    async def test_retries_retryable_codes(self) -> None:
        fn = Flaky(StatusCode.UNAVAILABLE, StatusCode.RESOURCE_EXHAUSTED)

        assert await call_with_retry(fn, FAST) == "ok"
        assert fn.calls == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        fn = Flaky(*[StatusCode.DEADLINE_EXCEEDED] * 5)

        with pytest.raises(RpcError) as exc_info:
            await call_with_retry(fn, FAST)

        assert exc_info.value.code is StatusCode.DEADLINE_EXCEEDED
        assert fn.calls == 3

    @pytest.mark.asyncio
    async def test_non_retryable_fails_immediately(self) -> None:
        fn = Flaky(StatusCode.INVALID_ARGUMENT)

        with pytest.raises(RpcError) as exc_info:
            await call_with_retry(fn, FAST)

        assert exc_info.value.code is StatusCode.INVALID_ARGUMENT
        assert fn.calls == 1

    @pytest.mark.asyncio
    async def test_other_exceptions_not_retried(self) -> None:
        calls = 0

        async def broken() -> None:
            nonlocal calls
            calls += 1
            raise TypeError("bad request type")

        with pytest.raises(TypeError):
            await call_with_retry(broken, FAST)
        assert calls == 1

    @pytest.mark.asyncio
    async def test_no_attempt_after_deadline(self) -> None:
        fn = Flaky(*[StatusCode.UNAVAILABLE] * 5)
        slow = RetryConfig(max_attempts=5, backoff_base=0.05, backoff_max=0.05)

        with pytest.raises(RpcError) as exc_info:
            await call_with_retry(fn, slow, deadline=time.monotonic() + 0.07)

        assert exc_info.value.code is StatusCode.UNAVAILABLE
        assert fn.calls == 2

    @pytest.mark.asyncio
    async def test_stops_when_backoff_would_pass_deadline(self) -> None:
        fn = Flaky(StatusCode.UNAVAILABLE)
        slow = RetryConfig(max_attempts=2, backoff_base=5.0, backoff_max=5.0)
        started = time.monotonic()

        with pytest.raises(RpcError):
            await call_with_retry(fn, slow, deadline=started + 0.1)

        assert time.monotonic() - started < 1.0
        assert fn.calls == 1

    def test_is_retryable(self) -> None:
        assert is_retryable(RpcError(StatusCode.UNAVAILABLE, "x"))
        assert not is_retryable(RpcError(StatusCode.NOT_FOUND, "x"))
        assert not is_retryable(ConnectionError())
