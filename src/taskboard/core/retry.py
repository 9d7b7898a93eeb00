"""Bounded fixed-delay retry for remote calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ..errors import TransientFailureError

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry ``TransientFailureError`` up to ``retries`` extra times, ``delay`` seconds apart."""

    retries: int = 1
    delay: float = 0.5

    @property
    def attempts(self) -> int:
        return max(self.retries, 0) + 1

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "remote call",
    ) -> T:
        """Await ``operation`` until it succeeds or the retry budget is spent."""

        attempt = 1
        while True:
            try:
                return await operation()
            except TransientFailureError:
                if attempt >= self.attempts:
                    logger.error(
                        "%s failed after %d attempt(s)",
                        description,
                        attempt,
                        extra={"attempts": attempt},
                    )
                    raise
                logger.warning(
                    "%s failed; retrying (%d remaining)",
                    description,
                    self.attempts - attempt,
                    extra={"attempt": attempt},
                )
                attempt += 1
                if self.delay > 0:
                    await asyncio.sleep(self.delay)


NO_RETRY = RetryPolicy(retries=0, delay=0.0)

__all__ = ["NO_RETRY", "RetryPolicy"]
