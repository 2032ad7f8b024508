"""Tests for timeglitch.core.retry: shared backoff helper."""

from __future__ import annotations

import asyncio

import pytest

from timeglitch.core.errors import NoImageReturnedError, TransientUpstreamError, UpstreamError
from timeglitch.core.retry import RetryPolicy, call_with_retry

FAST = RetryPolicy(attempts=3, base_delay=0.0, max_delay=0.0, jitter=0.0)


class Flaky:
    """Fails with the scripted exceptions, then returns ``"ok"``."""

    def __init__(self, *failures: Exception) -> None:
        self.failures = list(failures)
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return "ok"


class TestCallWithRetry:
    def test_success_first_try(self):
        fn = Flaky()
        assert asyncio.run(call_with_retry(fn, FAST)) == "ok"
        assert fn.calls == 1

    def test_transient_failures_are_retried(self):
        fn = Flaky(Exception("503 overloaded"), Exception("429 rate limit"))
        assert asyncio.run(call_with_retry(fn, FAST)) == "ok"
        assert fn.calls == 3

    def test_exhausted_transient_raises_transient_upstream_error(self):
        fn = Flaky(*[Exception("503 overloaded")] * 5)
        with pytest.raises(TransientUpstreamError, match="503 overloaded") as excinfo:
            asyncio.run(call_with_retry(fn, FAST, label="text"))
        assert fn.calls == 3
        assert str(excinfo.value).startswith("text call failed")
        assert isinstance(excinfo.value.__cause__, Exception)

    def test_non_transient_fails_immediately(self):
        fn = Flaky(ValueError("400 invalid argument"))
        with pytest.raises(UpstreamError) as excinfo:
            asyncio.run(call_with_retry(fn, FAST))
        assert not isinstance(excinfo.value, TransientUpstreamError)
        assert fn.calls == 1

    def test_own_errors_pass_through_unwrapped(self):
        fn = Flaky(NoImageReturnedError())
        with pytest.raises(NoImageReturnedError):
            asyncio.run(call_with_retry(fn, FAST))
        assert fn.calls == 1

    def test_single_attempt_policy(self):
        fn = Flaky(Exception("503"))
        with pytest.raises(TransientUpstreamError):
            asyncio.run(call_with_retry(fn, RetryPolicy(attempts=1, base_delay=0, max_delay=0, jitter=0)))
        assert fn.calls == 1
