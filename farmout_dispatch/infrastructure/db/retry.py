"""
Database retry utilities for handling transient failures.

Webhook and sweep handlers wrap a whole unit of work with these helpers so a
deadlock or serialization failure is retried from the start instead of
surfacing to the SMS provider as an error.
"""

import asyncio
import logging
from functools import wraps
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# MySQL error codes
MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"

# PostgreSQL SQLSTATE codes
PG_SERIALIZATION_FAILURE = "40001"
PG_DEADLOCK_DETECTED = "40P01"

TRANSIENT_CODES = (
    MYSQL_DEADLOCK_ERROR,
    MYSQL_LOCK_WAIT_TIMEOUT,
    PG_SERIALIZATION_FAILURE,
    PG_DEADLOCK_DETECTED,
)


def is_deadlock_error(error: Exception) -> bool:
    """
    Check if an exception is a deadlock or serialization failure.

    Args:
        error: The exception to check

    Returns:
        True if the error is transient and the unit of work should be retried
    """
    if isinstance(error, (OperationalError, DBAPIError)):
        error_str = str(error)
        return any(code in error_str for code in TRANSIENT_CODES)
    return False


async def retry_on_deadlock(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Retry a function if it fails due to a database deadlock.

    Uses exponential backoff: base_delay * (2 ** attempt)

    Args:
        func: The async function to execute
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Returns:
        The result of the function call

    Raises:
        The original exception if max attempts exceeded or non-deadlock error

    Example:
        async def expire():
            return await use_cases["expire_offers"].execute()

        report = await retry_on_deadlock(expire)
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            if not is_deadlock_error(e):
                raise

            if attempt < max_attempts - 1:
                delay = base_delay * (2 ** attempt)

                logger.warning(
                    "Database deadlock detected, retrying",
                    extra={
                        "attempt": attempt + 1,
                        "max_attempts": max_attempts,
                        "retry_delay": delay,
                        "error": str(e),
                    }
                )

                await asyncio.sleep(delay)
            else:
                logger.error(
                    "Database deadlock persists after max retries",
                    extra={
                        "attempts": max_attempts,
                        "error": str(e),
                    }
                )
                raise

    raise RuntimeError("retry_on_deadlock called with max_attempts < 1")


def with_deadlock_retry(max_attempts: int = 3, base_delay: float = 0.1):
    """
    Decorator to automatically retry async functions on database deadlocks.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Example:
        @with_deadlock_retry(max_attempts=3)
        async def run_sweep(use_case: ExpireOffersUseCase):
            return await use_case.execute()
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            async def execute():
                return await func(*args, **kwargs)

            return await retry_on_deadlock(execute, max_attempts, base_delay)

        return wrapper
    return decorator
