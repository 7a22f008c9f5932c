"""Retry patterns for API clients (exponential backoff)."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pypetkit.const import RETRY_BASE_DELAY, RETRY_MAX_DELAY, RETRY_MAX_RETRIES


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


@dataclass
class ExponentialBackoffConfig:
    """Configuration for exponential backoff pattern.

    Attributes:
        base_delay: Initial delay in seconds (default 1.0).
        max_delay: Maximum delay in seconds (default 16.0).
        max_retries: Maximum number of retries after the first attempt (default 5).
        exponential_base: Multiplier for exponential growth (default 2.0).
        jitter: Add randomness to delays (default False).
    """

    base_delay: float = RETRY_BASE_DELAY
    max_delay: float = RETRY_MAX_DELAY
    max_retries: int = RETRY_MAX_RETRIES
    exponential_base: float = 2.0
    jitter: bool = False


class ExponentialBackoff:
    """Exponential backoff calculator for retry delays.

    With the defaults, consecutive retries wait 1, 2, 4, 8 and 16 seconds.

    Example:
        backoff = ExponentialBackoff()

        for attempt in range(backoff.max_retries + 1):
            try:
                return await make_request()
            except Exception:
                if attempt < backoff.max_retries:
                    await asyncio.sleep(backoff.calculate_delay(attempt))
                else:
                    raise
    """

    def __init__(
        self,
        base_delay: float = RETRY_BASE_DELAY,
        max_delay: float = RETRY_MAX_DELAY,
        max_retries: int = RETRY_MAX_RETRIES,
        exponential_base: float = 2.0,
        *,
        jitter: bool = False,
    ) -> None:
        """Initialize exponential backoff calculator.

        Args:
            base_delay: Initial delay in seconds.
            max_delay: Maximum delay in seconds.
            max_retries: Maximum number of retries after the first attempt.
            exponential_base: Multiplier for exponential growth.
            jitter: Add randomness to delays.
        """
        self.config = ExponentialBackoffConfig(
            base_delay=base_delay,
            max_delay=max_delay,
            max_retries=max_retries,
            exponential_base=exponential_base,
            jitter=jitter,
        )

    @property
    def max_retries(self) -> int:
        """Get maximum number of retries."""
        return self.config.max_retries

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for a given retry attempt.

        Args:
            attempt: Retry attempt number (0-indexed).

        Returns:
            Delay in seconds for this attempt.
        """
        delay = self.config.base_delay * (self.config.exponential_base**attempt)
        delay = min(delay, self.config.max_delay)

        if self.config.jitter:
            delay = random.uniform(0, delay)  # noqa: S311

        return delay


async def retry_with_backoff(
    func: Callable[[], Awaitable[Any]],
    *,
    backoff: ExponentialBackoff | None = None,
    is_retryable: Callable[[Exception], bool] | None = None,
    description: str = "request",
) -> Any:
    """Execute function, retrying retryable failures with exponential backoff.

    The function is attempted once plus up to ``backoff.max_retries`` retries.
    Failures rejected by ``is_retryable`` propagate immediately.

    Args:
        func: Async function to execute.
        backoff: Optional exponential backoff instance.
        is_retryable: Predicate deciding whether a failure is transient.
            Every exception is retried when omitted.
        description: Label used in log messages.

    Returns:
        Result from func() if successful.

    Raises:
        Exception: Re-raises the last exception if it is not retryable or all
            retries are exhausted.
    """
    if backoff is None:
        backoff = ExponentialBackoff()

    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            if is_retryable is not None and not is_retryable(exc):
                raise

            if attempt >= backoff.max_retries:
                _LOGGER.exception(
                    "All %d retry attempts exhausted for %s",
                    backoff.max_retries,
                    description,
                )
                raise

            delay = backoff.calculate_delay(attempt)
            attempt += 1
            _LOGGER.warning(
                "Retrying %s (%d/%d) after %.1f seconds: %s",
                description,
                attempt,
                backoff.max_retries,
                delay,
                exc,
            )
            await asyncio.sleep(delay)
