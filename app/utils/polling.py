"""Timed polling with a fixed interval, an attempt cap and a cancel signal.

Used for Gemini file readiness (videos must reach ``ACTIVE`` before they can
be referenced) and for the optional bounded investigation wait.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class PollTimeout(Exception):
    """Raised when the attempt budget runs out before the check is satisfied."""

    def __init__(self, attempts: int, last_value: object) -> None:
        super().__init__(f"Condition not met after {attempts} attempts")
        self.attempts = attempts
        self.last_value = last_value


class PollCancelled(Exception):
    """Raised when the cancel event is set between attempts."""


@dataclass
class PollResult(Generic[T]):
    value: T
    attempts: int


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    *,
    interval_seconds: float,
    max_attempts: int,
    cancel: asyncio.Event | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollResult[T]:
    """Call ``fetch`` until ``is_done`` accepts its value.

    ``fetch`` runs at most ``max_attempts`` times with ``interval_seconds``
    between runs. Exceptions raised by ``fetch`` or ``is_done`` propagate.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    value: T | None = None
    for attempt in range(1, max_attempts + 1):
        if cancel is not None and cancel.is_set():
            raise PollCancelled()
        value = await fetch()
        if is_done(value):
            return PollResult(value=value, attempts=attempt)
        if attempt < max_attempts:
            await sleep(interval_seconds)
    raise PollTimeout(max_attempts, value)
