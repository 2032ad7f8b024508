"""Shared retry-with-backoff helper for the hosted model clients.

Both Gemini clients retry the same way: a small, bounded number of attempts,
exponential backoff capped at a maximum delay, plus a little random jitter,
and only for failures :func:`~timeglitch.core.errors.is_transient_error`
classifies as transient.  Anything else fails on the first attempt.

Usage
-----
::

    policy = RetryPolicy(attempts=3, base_delay=0.45, max_delay=2.2)
    text = await call_with_retry(lambda: client.generate(prompt), policy, label="text")
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from timeglitch.core.errors import (
    TimeglitchError,
    TransientUpstreamError,
    UpstreamError,
    is_transient_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt and delay budget for one kind of upstream call.

    Attributes:
        attempts: Total attempts, first call included.
        base_delay: Delay in seconds before the first retry; doubles each retry.
        max_delay: Cap on the exponential part of the delay.
        jitter: Upper bound of the uniform random delay added on top.
    """

    attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 2.5
    jitter: float = 0.25


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    label: str = "upstream",
) -> T:
    """Await ``fn()`` under *policy*, retrying transient failures.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt.
        policy: Attempt and delay budget.
        label: Short name used in log messages and error text.

    Returns:
        Whatever ``fn()`` returns on the first successful attempt.

    Raises:
        TransientUpstreamError: The failure was transient on every attempt.
        UpstreamError: The failure was not transient (raised after one attempt).
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.attempts),
        wait=wait_exponential(multiplier=policy.base_delay, max=policy.max_delay)
        + wait_random(0, policy.jitter),
        retry=retry_if_exception(is_transient_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    try:
        async for attempt in retrying:
            with attempt:
                result = await fn()
    except TimeglitchError:
        raise
    except Exception as exc:
        if is_transient_error(exc):
            logger.warning("%s call still failing after %d attempts: %s", label, policy.attempts, exc)
            raise TransientUpstreamError(f"{label} call failed: {exc}") from exc
        raise UpstreamError(f"{label} call failed: {exc}") from exc
    return result
