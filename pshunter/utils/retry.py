"""
PS Hunter - Retry Policy

Retry expressed as data: how many attempts, which errors are worth waiting
for, and how long to wait. Kept apart from any fetch call so it can be tested
with a fake sleep and a scripted sequence of failures.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _never(exc: BaseException) -> bool:
    return False


async def _sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff.

    delay_for(i) = base_delay * 2**i, i.e. the wait before retry i
    (0-indexed). With the defaults: 2s before the 2nd attempt, 4s before
    the 3rd.
    """

    max_attempts: int = 3
    base_delay: float = 2.0
    is_retryable: Callable[[BaseException], bool] = _never
    sleep: Callable[[float], Awaitable[None]] = field(default=_sleep)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")

    def delay_for(self, retry_index: int) -> float:
        return self.base_delay * (2 ** retry_index)

    async def run(self, operation: Callable[[], Awaitable[T]], name: str = "operation") -> T:
        """
        Await operation() until it succeeds or the budget is spent.

        Non-retryable errors propagate immediately. When every attempt fails
        with a retryable error, the last one is re-raised.
        """
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as e:
                if not self.is_retryable(e):
                    raise
                if attempt == self.max_attempts - 1:
                    logger.error(
                        "retry_budget_exhausted",
                        operation=name,
                        attempts=self.max_attempts,
                        error=str(e),
                    )
                    raise
                wait_seconds = self.delay_for(attempt)
                logger.warning(
                    "retrying_after_transient_error",
                    operation=name,
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    wait_seconds=wait_seconds,
                    error=str(e),
                )
                await self.sleep(wait_seconds)

        raise AssertionError("unreachable: max_attempts >= 1")
