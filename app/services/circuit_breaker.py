"""
Circuit breaker for external services.
Stops cascading failures and lets a service recover on its own.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"        # Normal, calls go through
    OPEN = "open"            # Calls are blocked
    HALF_OPEN = "half_open"  # Probing for recovery


class CircuitOpenError(Exception):
    """Raised when the circuit is open and no fallback was given."""
    pass


@dataclass
class CircuitBreaker:
    """
    Circuit breaker for one external service.

    States:
    - CLOSED: normal operation
    - OPEN: too many consecutive failures, calls are rejected
    - HALF_OPEN: reset time elapsed, next call decides
    """
    name: str
    failure_threshold: int = 5
    timeout_seconds: float = 30.0
    reset_seconds: int = 60

    state: CircuitState = field(default=CircuitState.CLOSED)
    consecutive_failures: int = field(default=0)
    last_failure: Optional[datetime] = field(default=None)
    last_success: Optional[datetime] = field(default=None)

    def _check_half_open(self):
        if self.state != CircuitState.OPEN or self.last_failure is None:
            return

        elapsed = datetime.now() - self.last_failure
        if elapsed.total_seconds() >= self.reset_seconds:
            logger.info(f"Circuit {self.name}: OPEN -> HALF_OPEN")
            self.state = CircuitState.HALF_OPEN

    def _record_success(self):
        self.consecutive_failures = 0
        self.last_success = datetime.now()

        if self.state == CircuitState.HALF_OPEN:
            logger.info(f"Circuit {self.name}: HALF_OPEN -> CLOSED (recovered)")
            self.state = CircuitState.CLOSED

    def _record_failure(self, error: Exception):
        self.consecutive_failures += 1
        self.last_failure = datetime.now()

        logger.warning(
            f"Circuit {self.name}: failure {self.consecutive_failures}/{self.failure_threshold} - {error}"
        )

        if self.state == CircuitState.HALF_OPEN:
            logger.info(f"Circuit {self.name}: HALF_OPEN -> OPEN (recovery failed)")
            self.state = CircuitState.OPEN

        elif self.consecutive_failures >= self.failure_threshold:
            logger.warning(f"Circuit {self.name}: CLOSED -> OPEN (too many failures)")
            self.state = CircuitState.OPEN

    async def call(
        self,
        func: Callable,
        *args,
        fallback: Callable = None,
        **kwargs
    ) -> Any:
        """
        Runs an async callable under the breaker.

        Args:
            func: Async function to run
            *args: Positional arguments for func
            fallback: Called instead of func while the circuit is open
            **kwargs: Keyword arguments for func

        Returns:
            Result of func, or of the fallback

        Raises:
            CircuitOpenError: Circuit is open and there is no fallback
        """
        self._check_half_open()

        if self.state == CircuitState.OPEN:
            if fallback:
                logger.debug(f"Circuit {self.name} open, using fallback")
                if asyncio.iscoroutinefunction(fallback):
                    return await fallback(*args, **kwargs)
                return fallback(*args, **kwargs)
            raise CircuitOpenError(f"Circuit {self.name} is open")

        try:
            result = await asyncio.wait_for(
                func(*args, **kwargs),
                timeout=self.timeout_seconds
            )
        except Exception as e:
            self._record_failure(e)
            raise

        self._record_success()
        return result

    def status(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "last_failure": self.last_failure.isoformat() if self.last_failure else None,
            "last_success": self.last_success.isoformat() if self.last_success else None,
        }

    def reset(self):
        """Manual reset to CLOSED."""
        self.state = CircuitState.CLOSED
        self.consecutive_failures = 0
        logger.info(f"Circuit {self.name}: manual reset to CLOSED")


circuit_email = CircuitBreaker(
    name="email",
    failure_threshold=10,
    timeout_seconds=30.0,
    reset_seconds=15,
)

circuit_llm = CircuitBreaker(
    name="llm",
    failure_threshold=3,
    timeout_seconds=30.0,
    reset_seconds=60,
)

circuit_supabase = CircuitBreaker(
    name="supabase",
    failure_threshold=5,
    timeout_seconds=10.0,
    reset_seconds=30,
)


def get_circuits_status() -> dict:
    """Status of every circuit, for the readiness endpoint."""
    return {
        "email": circuit_email.status(),
        "llm": circuit_llm.status(),
        "supabase": circuit_supabase.status(),
    }
