"""Bounded retry with a constant delay between attempts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from .api import RetryableError
from .const import DEFAULT_MAX_RETRY, RETRY_DELAY

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an async operation a bounded number of times.

    Attributes:
        max_attempts: Retries allowed after the first call. Zero means the
            operation runs once and its error is raised unchanged.
        delay: Seconds to wait before each retry.
        retry_on: Exception types that consume the retry budget. Anything
            else propagates immediately.
        name: Label used in log messages.

    """

    max_attempts: int = DEFAULT_MAX_RETRY
    delay: float = RETRY_DELAY
    retry_on: tuple[type[BaseException], ...] = (RetryableError,)
    name: str = "operation"

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            error_msg = f"max_attempts must not be negative, got {self.max_attempts}"
            raise ValueError(error_msg)

    async def async_run(self, operation: Callable[[], Awaitable[_T]]) -> _T:
        """Run operation, retrying on retryable errors.

        Args:
            operation: Zero-argument coroutine function, called once per attempt.

        Returns:
            The first successful result.

        Raises:
            Exception: The last error from operation, unwrapped.

        """
        remaining = self.max_attempts
        while True:
            try:
                return await operation()
            except self.retry_on as err:
                if remaining <= 0:
                    raise
                remaining -= 1
                _LOGGER.info(
                    "%s failed: %s. Retrying in %.1fs (%d retries left)",
                    self.name,
                    err,
                    self.delay,
                    remaining,
                )
                await asyncio.sleep(self.delay)
