"""
Retry Manager for RDAP fetches.

The retry loop is an explicit state machine:

    ATTEMPTING(n) --2xx--------------------------> SUCCEEDED
    ATTEMPTING(n) --StatusError-------------------> FAILED_STATUS
    ATTEMPTING(n) --TransportError, n <= retries--> sleep, ATTEMPTING(n+1)
    ATTEMPTING(n) --TransportError, n > retries---> FAILED_TRANSPORT

A non-2xx answer means the service has spoken and asking again will not
help, so it is never retried. A transport failure may be transient and is
retried after a fixed delay, ``retry_count + 1`` attempts in total.
Attempts for one query are strictly sequential.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from .audit_logger import AuditLogger
from .config import RetryConfig
from .enums import AttemptState
from .exceptions import FetchError, StatusError, TransportError

T = TypeVar("T")


@dataclass
class RetryResult(Generic[T]):
    """Result of a retry operation."""

    state: AttemptState
    result: Optional[T]
    attempts: int
    last_error: Optional[FetchError]

    @property
    def success(self) -> bool:
        return self.state is AttemptState.SUCCEEDED

    def unwrap(self) -> T:
        """Return the result or raise the terminal error."""
        if self.state is AttemptState.SUCCEEDED:
            return self.result  # type: ignore[return-value]
        if self.last_error is None:
            raise RuntimeError(f"retry ended in {self.state.value} without an error")
        raise self.last_error


class RetryManager:
    """
    Runs an operation under the status-terminal / transport-retryable policy.
    """

    COMPONENT = "RetryManager"

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the retry manager.

        Args:
            config: Retry configuration (retry count and fixed delay)
            sleep: Coroutine used for the inter-attempt delay
            logger: Optional logger for retry diagnostics
        """
        self._config = config
        self._sleep = sleep
        self._logger = logger

    @property
    def max_attempts(self) -> int:
        """Total attempts = 1 initial + retry_count (negative counts as 0)."""
        return max(0, self._config.retry_count) + 1

    def _calculate_delay(self, attempt: int) -> float:
        """Fixed inter-attempt delay, independent of the attempt number."""
        return max(0.0, self._config.retry_delay_seconds)

    def next_state(self, error: FetchError, attempt: int) -> AttemptState:
        """
        Transition taken after a failed attempt.

        Args:
            error: The failure of attempt number ``attempt`` (1-based)
            attempt: Attempt number that just failed

        Returns:
            ATTEMPTING to retry, or a terminal FAILED_* state
        """
        if isinstance(error, TransportError):
            if attempt < self.max_attempts:
                return AttemptState.ATTEMPTING
            return AttemptState.FAILED_TRANSPORT
        return AttemptState.FAILED_STATUS

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        context: Optional[dict] = None,
    ) -> RetryResult[T]:
        """
        Execute an operation under the retry policy.

        Only StatusError and TransportError are handled; anything else
        propagates to the caller unchanged.

        Args:
            operation: The async operation (one network attempt)
            context: Optional data added to retry log entries

        Returns:
            RetryResult with final state, result, attempts and last error
        """
        state = AttemptState.ATTEMPTING
        attempts = 0
        result: Optional[T] = None
        last_error: Optional[FetchError] = None

        while state is AttemptState.ATTEMPTING:
            attempts += 1
            try:
                result = await operation()
                state = AttemptState.SUCCEEDED
            except (StatusError, TransportError) as e:
                last_error = e
                state = self.next_state(e, attempts)

                if state is AttemptState.ATTEMPTING:
                    delay = self._calculate_delay(attempts)
                    if self._logger:
                        self._logger.info(
                            self.COMPONENT,
                            "Transport failure, retrying",
                            {
                                **(context or {}),
                                "attempt": attempts,
                                "max_attempts": self.max_attempts,
                                "delay_seconds": delay,
                                "error": e.message,
                            },
                        )
                    await self._sleep(delay)

        return RetryResult(
            state=state,
            result=result,
            attempts=attempts,
            last_error=None if state is AttemptState.SUCCEEDED else last_error,
        )
