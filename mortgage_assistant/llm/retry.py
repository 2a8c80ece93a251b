"""Bounded retries with exponential backoff for provider calls."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from openai import APIConnectionError, APITimeoutError, RateLimitError

from mortgage_assistant.errors import RateLimitException

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Transient failures worth another attempt
RETRYABLE_ERRORS = (APITimeoutError, APIConnectionError)


def retry_after(error: RateLimitError, default: float, cap: float) -> float:
    """Seconds to wait according to the provider's Retry-After header."""
    value = error.response.headers.get("retry-after")
    if not value:
        return default
    try:
        return min(max(float(value), 0.0), cap)
    except ValueError:
        return default


class RetryHandler:
    """
    Run a provider call, retrying transient transport failures.

    Rate limits are not retried. They surface as a RateLimitException carrying
    the wait the provider asked for.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        default_retry_after: float = 30.0,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.default_retry_after = default_retry_after

    def backoff(self, attempt: int) -> float:
        """Delay before retrying after the given 1-based failed attempt."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args,
        **kwargs,
    ) -> T:
        """
        Raises:
            RateLimitException: When the provider rate limits the call
            APITimeoutError, APIConnectionError: When every attempt failed
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await func(*args, **kwargs)
            except RateLimitError as e:
                wait = retry_after(e, self.default_retry_after, self.max_delay)
                logger.warning(f"Provider rate limit hit, suggested wait {wait:.0f}s")
                raise RateLimitException(
                    f"Provider rate limit hit, retry in {wait:.0f}s",
                    retry_after=wait,
                ) from e
            except RETRYABLE_ERRORS as e:
                if attempt > self.max_retries:
                    logger.error(f"Provider call failed after {attempt} attempts: {e}")
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    f"Provider call failed ({e}), retrying in {delay:.1f}s "
                    f"(attempt {attempt}/{self.max_retries + 1})"
                )
                await asyncio.sleep(delay)
