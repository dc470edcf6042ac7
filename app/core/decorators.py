"""
Cross-cutting decorators for service functions.

retry_on_transient:
    Retries a store operation when the database reports a transient failure
    (dropped connection, lock timeout, serialization failure). After the
    bounded number of attempts the failure is surfaced as TransientStoreError,
    which views map to 503.

Usage:
    from core.decorators import retry_on_transient

    class MessageService(BaseService):
        @classmethod
        @retry_on_transient("append_message")
        def append_message(cls, ...):
            with cls.atomic():
                ...

Note:
    The decorated function must open its own transaction (cls.atomic()).
    Inside an outer transaction that block is a savepoint, so a failed
    attempt rolls back cleanly before the next one.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable

from django.conf import settings
from django.db import InterfaceError, OperationalError

from core.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

TRANSIENT_DB_ERRORS = (OperationalError, InterfaceError)


def retry_on_transient(
    operation: str,
    attempts: int | None = None,
    backoff: float | None = None,
):
    """
    Retry a database operation on transient errors with exponential backoff.

    Args:
        operation: Name used in logs and error details
        attempts: Total attempts (defaults to settings.STORE_RETRY_ATTEMPTS)
        backoff: Initial delay in seconds, doubled after each failed attempt
            (defaults to settings.STORE_RETRY_BACKOFF)

    Returns:
        Decorator function

    Raises:
        TransientStoreError: When every attempt failed with a transient error
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            max_attempts = attempts or settings.STORE_RETRY_ATTEMPTS
            delay = settings.STORE_RETRY_BACKOFF if backoff is None else backoff

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except TRANSIENT_DB_ERRORS as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"{operation} failed after {attempt} attempts: {e}"
                        )
                        raise TransientStoreError(
                            "Message store temporarily unavailable",
                            details={"operation": operation, "attempts": attempt},
                        ) from e

                    logger.warning(
                        f"{operation} attempt {attempt}/{max_attempts} failed: {e}; "
                        f"retrying in {delay:.2f}s"
                    )
                    if delay:
                        time.sleep(delay)
                    delay *= 2

        return wrapper

    return decorator
