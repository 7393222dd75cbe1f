"""Bounded exponential backoff for rate-limited outbound calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import httpx
import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt
from tenacity.wait import wait_exponential

from app.core.metrics import forensics_rate_limit_retries_total

logger = structlog.get_logger(__name__)

RATE_LIMITED = 429


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == RATE_LIMITED


def _return_last_response(retry_state: RetryCallState) -> httpx.Response:
    # Retries exhausted on 429: hand the final response back unchanged.
    return retry_state.outcome.result()


class RetryExecutor:
    """Retries a call only while it answers HTTP 429.

    With ``max_attempts=3`` a call is tried up to four times, sleeping 1s, 2s
    and 4s between tries; the fourth response is returned whatever its status.
    Any other status is returned immediately and exceptions propagate.
    """

    def __init__(
        self,
        dependency: str,
        max_attempts: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.dependency = dependency
        self.max_attempts = max_attempts
        self._sleep = sleep

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        forensics_rate_limit_retries_total.labels(dependency=self.dependency).inc()
        logger.warning(
            "Rate limited; retrying with backoff",
            dependency=self.dependency,
            attempt=retry_state.attempt_number,
            backoff_seconds=retry_state.upcoming_sleep,
        )

    async def execute(
        self,
        call: Callable[[], Awaitable[httpx.Response]],
        max_attempts: int | None = None,
    ) -> httpx.Response:
        attempts = self.max_attempts if max_attempts is None else max_attempts
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts + 1),
            wait=wait_exponential(multiplier=1, exp_base=2, min=0, max=2**attempts),
            retry=retry_if_result(_is_rate_limited),
            retry_error_callback=_return_last_response,
            before_sleep=self._before_sleep,
            sleep=self._sleep,
        )
        return await retrying(call)
