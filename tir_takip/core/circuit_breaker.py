"""
Circuit breaker guarding calls to the blob store.
"""
import logging
import time
from enum import Enum
from typing import Callable, Any, Optional
from tir_takip.config import settings

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Calls pass through
    OPEN = "open"  # Calls fail immediately
    HALF_OPEN = "half_open"  # Probing for recovery


class CircuitBreakerOpenException(Exception):
    """Exception raised when circuit breaker is open."""

    def __init__(self, message: str = "Circuit breaker is open"):
        self.message = message
        super().__init__(self.message)


class CircuitBreaker:
    """
    Stops hammering a failing dependency.

    After ``failure_threshold`` consecutive failures the circuit opens and
    every call fails fast with CircuitBreakerOpenException. Once
    ``recovery_timeout`` seconds have passed, up to ``half_open_max_calls``
    probe calls are let through; if they all succeed the circuit closes,
    a single failure reopens it.

    Usage:
        breaker = CircuitBreaker(name="cloudinary")
        result = await breaker.call(upload, data, public_id=...)
    """

    def __init__(
        self,
        name: str = "default",
        failure_threshold: Optional[int] = None,
        recovery_timeout: Optional[int] = None,
        half_open_max_calls: Optional[int] = None,
        excluded_exceptions: tuple = ()
    ):
        self.name = name
        self.failure_threshold = failure_threshold or settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD
        self.recovery_timeout = recovery_timeout or settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT
        self.half_open_max_calls = half_open_max_calls or settings.CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS
        self.excluded_exceptions = excluded_exceptions

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[float] = None
        self._half_open_calls = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def _recovery_due(self) -> bool:
        if self._last_failure_time is None:
            return True
        return (time.monotonic() - self._last_failure_time) >= self.recovery_timeout

    def _record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._success_count += 1
            if self._success_count >= self.half_open_max_calls:
                self._transition(CircuitState.CLOSED)
                logger.info(f"Circuit breaker '{self.name}' closed after successful recovery")
        else:
            self._failure_count = 0

    def _record_failure(self, exception: Exception) -> None:
        if isinstance(exception, self.excluded_exceptions):
            return

        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN)
            logger.warning(f"Circuit breaker '{self.name}' reopened after failure in half-open state")
        elif self._failure_count >= self.failure_threshold:
            self._transition(CircuitState.OPEN)
            logger.warning(f"Circuit breaker '{self.name}' opened after {self._failure_count} failures")

    def _transition(self, state: CircuitState) -> None:
        self._state = state
        self._success_count = 0
        self._half_open_calls = 0
        if state == CircuitState.CLOSED:
            self._failure_count = 0

    async def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Await ``func(*args, **kwargs)`` through the breaker.

        Raises:
            CircuitBreakerOpenException: If the circuit is open
            Exception: Whatever ``func`` raises
        """
        if self._state == CircuitState.OPEN:
            if not self._recovery_due():
                raise CircuitBreakerOpenException(
                    f"Circuit breaker '{self.name}' is open. "
                    f"Retry after {self.recovery_timeout}s"
                )
            self._transition(CircuitState.HALF_OPEN)
            logger.info(f"Circuit breaker '{self.name}' entering half-open state")

        if self._state == CircuitState.HALF_OPEN:
            if self._half_open_calls >= self.half_open_max_calls:
                raise CircuitBreakerOpenException(
                    f"Circuit breaker '{self.name}' half-open call limit reached"
                )
            self._half_open_calls += 1

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e)
            raise
        self._record_success()
        return result

    def reset(self) -> None:
        """Manually reset the circuit breaker to closed state."""
        self._transition(CircuitState.CLOSED)
        self._last_failure_time = None
        logger.info(f"Circuit breaker '{self.name}' manually reset")

    def get_status(self) -> dict:
        """Get circuit breaker status."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "failure_threshold": self.failure_threshold,
            "recovery_timeout": self.recovery_timeout,
        }


blob_store_circuit_breaker = CircuitBreaker(name="cloudinary")
