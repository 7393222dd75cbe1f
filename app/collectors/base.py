"""Base interface for evidence collectors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

from app.core.errors import ForensicsError

T = TypeVar("T")
InputT = TypeVar("InputT")


@dataclass(frozen=True)
class CollectorResult(Generic[T]):
    """Outcome of one collector run.

    ``ok`` carries the collected value. ``degraded`` carries the neutral
    default the collector falls back to together with the error that caused it.
    """

    value: T
    error: ForensicsError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> CollectorResult[T]:
        return cls(value=value)

    @classmethod
    def degraded(cls, default: T, error: ForensicsError) -> CollectorResult[T]:
        return cls(value=default, error=error)


class BaseCollector(ABC, Generic[InputT, T]):
    """Abstract base class for evidence collectors.

    Contract:
    - MUST NOT raise; failures become ``CollectorResult.degraded``
    - MUST own exactly one external dependency
    - MUST NOT call other collectors
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Collector identifier used in logs and metrics."""
        ...

    @abstractmethod
    async def collect(self, data: InputT) -> CollectorResult[T]:
        """Collect evidence for ``data``."""
        ...
