"""Bounded retry with exponential backoff for audio endpoint commands."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import RetrySettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Run an operation at most ``max_attempts`` times.

    Only exceptions listed in ``retry_on`` are retried; anything else, and
    the last retryable failure, propagates to the caller unchanged.
    """

    max_attempts: int = 2
    backoff_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must be non-negative")

    @classmethod
    def from_settings(
        cls,
        settings: RetrySettings,
        *,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
    ) -> RetryPolicy:
        return cls(
            max_attempts=settings.max_attempts,
            backoff_seconds=settings.backoff_seconds,
            backoff_multiplier=settings.backoff_multiplier,
            retry_on=retry_on,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following *attempt* (1-based)."""
        return self.backoff_seconds * (self.backoff_multiplier ** (attempt - 1))

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str,
        before_retry: Callable[[], Awaitable[None]] | None = None,
    ) -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        ``before_retry`` runs between attempts, e.g. to move the session to a
        healthier node.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except self.retry_on as exc:
                if attempt >= self.max_attempts:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    LogTemplates.RETRY_SCHEDULED,
                    description,
                    attempt,
                    self.max_attempts,
                    delay,
                    exc,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                if before_retry is not None:
                    await before_retry()

        raise AssertionError("unreachable")  # pragma: no cover
