"""Storage utility functions."""
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from .exceptions import TransientError


def with_retry(
    max_attempts: int = 1,
    wait_multiplier: int = 1,
    wait_max: int = 10
):
    """Decorator to retry operations on transient errors.

    Args:
        max_attempts: Maximum number of attempts (1 disables retrying)
        wait_multiplier: Exponential backoff multiplier
        wait_max: Maximum wait time between retries
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=wait_multiplier, max=wait_max),
        retry=retry_if_exception_type(TransientError),
        reraise=True
    )


async def call_with_retry(max_attempts: int, func, *args, **kwargs):
    """Run ``await func(*args, **kwargs)`` under :func:`with_retry`."""
    @with_retry(max_attempts=max_attempts)
    async def _call():
        return await func(*args, **kwargs)

    return await _call()
