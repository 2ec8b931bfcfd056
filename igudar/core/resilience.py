"""
Fault-tolerance helpers for database access.

- :class:`CircuitBreaker` short-circuits calls to the database after a run of
  connection-level failures, then lets a single probe through once the
  recovery timeout has elapsed.

  CLOSED → (threshold failures) → OPEN → (timeout) → HALF_OPEN → CLOSED / OPEN

- :func:`retry_with_backoff` retries an async callable on transient errors
  with exponentially growing, jittered delays. Used for startup table
  creation where the database container may still be booting.
"""

import asyncio
import functools
import logging
import random
import time
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Type

from sqlalchemy.exc import OperationalError

from igudar.core.config import settings

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (
    ConnectionError,
    OSError,
    TimeoutError,
    OperationalError,
)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(Exception):
    """Raised when a call is rejected because the circuit is open."""

    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' is open; retry after {retry_after:.1f}s")


class CircuitBreaker:
    """
    Async circuit breaker.

    Parameters
    ----------
    name : str
        Identifier used in logs and health output.
    failure_threshold : int
        Consecutive failures that open the circuit.
    recovery_timeout : float
        Seconds spent OPEN before a probe is allowed.
    expected_exceptions : tuple
        Exception types counted as failures; anything else propagates
        without touching the circuit state.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        expected_exceptions: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exceptions = expected_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0
        self._success_count = 0

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN:
            elapsed = time.monotonic() - self._last_failure_time
            if elapsed >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                logger.info("Circuit '%s' half-open after %.1fs", self.name, elapsed)
        return self._state

    def _record_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info(
                "Circuit '%s' closed again after %d failures", self.name, self._failure_count
            )
        self._failure_count = 0
        self._success_count += 1
        self._state = CircuitState.CLOSED

    def _record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.error(
                "Circuit '%s' opened after %d consecutive failures; failing fast for %.1fs",
                self.name,
                self._failure_count,
                self.recovery_timeout,
            )
        else:
            logger.warning(
                "Circuit '%s' failure %d/%d",
                self.name,
                self._failure_count,
                self.failure_threshold,
            )

    async def call(self, func: Callable, *args: Any, **kwargs: Any) -> Any:
        """Await ``func(*args, **kwargs)`` unless the circuit is open."""
        if self.state == CircuitState.OPEN:
            retry_after = self.recovery_timeout - (time.monotonic() - self._last_failure_time)
            raise CircuitBreakerError(self.name, max(retry_after, 0.0))

        try:
            result = await func(*args, **kwargs)
        except self.expected_exceptions:
            self._record_failure()
            raise
        self._record_success()
        return result

    def reset(self) -> None:
        """Force the circuit back to CLOSED (used by tests and admin tooling)."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0

    def get_status(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "success_count": self._success_count,
            "recovery_timeout_s": self.recovery_timeout,
        }


db_circuit_breaker = CircuitBreaker(
    name="database",
    failure_threshold=settings.CB_FAILURE_THRESHOLD,
    recovery_timeout=settings.CB_RECOVERY_TIMEOUT,
)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = TRANSIENT_ERRORS,
) -> Callable:
    """
    Decorator: retry an async function with exponential backoff.

    ``max_retries`` counts retries after the first attempt. The delay starts
    at ``base_delay``, doubles each time and is capped at ``max_delay``; with
    ``jitter`` up to 50% extra is added at random.

    Example::

        @retry_with_backoff(max_retries=5, base_delay=2.0)
        async def create_tables():
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_exception: Optional[Exception] = None
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as exc:
                    last_exception = exc
                    if attempt == max_retries:
                        logger.error(
                            "%s failed after %d retries: %s",
                            func.__qualname__,
                            max_retries,
                            exc,
                        )
                        break
                    wait = min(delay, max_delay)
                    if jitter:
                        wait += random.uniform(0, wait * 0.5)
                    logger.warning(
                        "Retry %d/%d for %s in %.2fs (%s: %s)",
                        attempt + 1,
                        max_retries,
                        func.__qualname__,
                        wait,
                        type(exc).__name__,
                        exc,
                    )
                    await asyncio.sleep(wait)
                    delay *= 2

            raise last_exception  # type: ignore[misc]

        return wrapper

    return decorator
