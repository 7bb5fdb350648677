"""GADS Bridge — Retry with exponential backoff and jitter.

Retries transport failures, HTTP 429 and 5xx responses. A server-provided
Retry-After always wins over the computed backoff.
"""

import asyncio
import math
import random
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import BaseModel

from gadsbridge.config import settings
from gadsbridge.core.errors import ErrorType, GoogleAdsAPIError
from gadsbridge.core.logging import get_logger

logger = get_logger("retry")

T = TypeVar("T")


class RetryOptions(BaseModel):
    max_retries: int = 3
    initial_delay: float = 1.0  # seconds
    max_delay: float = 30.0
    jitter_factor: float = 0.3

    @classmethod
    def from_settings(cls) -> "RetryOptions":
        return cls(
            max_retries=settings.retry_max_retries,
            initial_delay=settings.retry_initial_delay,
            max_delay=settings.retry_max_delay,
            jitter_factor=settings.retry_jitter_factor,
        )


def calculate_delay(
    attempt: int, options: RetryOptions, retry_after: Optional[float] = None
) -> float:
    """Seconds to wait before retry number ``attempt + 1``."""
    if retry_after:
        return min(retry_after, options.max_delay)

    exponential = options.initial_delay * (2**attempt)
    jitter = exponential * options.jitter_factor * random.random()
    return min(exponential + jitter, options.max_delay)


def is_retryable(error: Exception) -> bool:
    """Whether a failure is transient."""
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, GoogleAdsAPIError):
        if error.error_type == ErrorType.RATE_LIMIT or error.status_code == 429:
            return True
        return 500 <= error.status_code < 600
    return False


async def with_retry(
    fn: Callable[[], Awaitable[T]], options: Optional[RetryOptions] = None
) -> T:
    """Await ``fn()``, retrying transient failures up to ``max_retries`` times."""
    opts = options or RetryOptions.from_settings()

    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if not is_retryable(e) or attempt >= opts.max_retries:
                raise

            wait = calculate_delay(attempt, opts, getattr(e, "retry_after_seconds", None))
            logger.warning(
                f"Retry attempt {attempt + 1}/{opts.max_retries} in {wait:.2f}s: {e}"
            )
            await asyncio.sleep(wait)
            attempt += 1


def parse_retry_after(header: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given as delta-seconds or an HTTP date."""
    if not header:
        return None

    value = header.strip()
    if value.isdigit():
        return float(value)

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    seconds = (when - datetime.now(timezone.utc)).total_seconds()
    return float(max(0, math.ceil(seconds)))
