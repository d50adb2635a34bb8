"""
Execution strategies for transactional actions.

An execution strategy runs one attempt of a unit of work and decides whether a
failure is worth another attempt. The data context hands each strategy a
zero-argument coroutine function that opens, runs and commits one
transaction; the strategy may call it several times, so the work it wraps
must be restartable.

- NonRetryingExecutionStrategy: one attempt, failures propagate.
- RetryingExecutionStrategy: retries transient store failures with
  exponential backoff and jitter, then raises RetryLimitExceededError
  chained to the last failure.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from djstore_api.services.crud.errors import RetryLimitExceededError, TransientStoreError
from djstore_shared.config.logging import data_access_logger as logger
from djstore_shared.config.settings import Settings, settings
from djstore_shared.infrastructure.retry import (
    RetryConfig,
    calculate_delay_with_jitter,
    should_retry,
)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


# =============================================================================
# Failure classification
# =============================================================================


# serialization_failure, deadlock_detected, lock_not_available,
# too_many_connections, admin/crash shutdown, cannot_connect_now
TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03", "53300", "57P01", "57P02", "57P03"})

# Class 08: connection exceptions
TRANSIENT_SQLSTATE_CLASSES = ("08",)

TRANSIENT_MESSAGES = (
    "database is locked",
    "deadlock",
    "connection reset",
    "server closed the connection",
    "could not serialize access",
)


def _sqlstate(error: BaseException | None) -> str | None:
    if error is None:
        return None
    return getattr(error, "sqlstate", None) or getattr(error, "pgcode", None)


def is_transient_error(error: BaseException) -> bool:
    """True when the failure is known to be temporary."""
    if isinstance(error, TransientStoreError):
        return True
    if not isinstance(error, DBAPIError):
        return False
    if error.connection_invalidated:
        return True

    sqlstate = _sqlstate(error.orig)
    if sqlstate:
        return sqlstate in TRANSIENT_SQLSTATES or sqlstate.startswith(TRANSIENT_SQLSTATE_CLASSES)

    if isinstance(error, OperationalError):
        message = str(error.orig).lower()
        return any(fragment in message for fragment in TRANSIENT_MESSAGES)
    return False


# =============================================================================
# Strategies
# =============================================================================


class ExecutionStrategy(Protocol):
    last_attempt_count: int

    async def execute(self, operation: Operation[T]) -> T: ...


class NonRetryingExecutionStrategy:
    """Runs the operation once."""

    def __init__(self) -> None:
        self.last_attempt_count = 0

    async def execute(self, operation: Operation[T]) -> T:
        self.last_attempt_count = 1
        return await operation()


class RetryingExecutionStrategy:
    """
    Retries the operation while it fails with a transient store error.

    Cancellation is never retried. `last_attempt_count` reports how many
    times the operation ran during the last call to `execute`.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        is_transient: Callable[[BaseException], bool] = is_transient_error,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.config = config or RetryConfig()
        self._is_transient = is_transient
        self._sleep = sleep
        self.last_attempt_count = 0

    async def execute(self, operation: Operation[T]) -> T:
        attempt = 0
        while True:
            attempt += 1
            self.last_attempt_count = attempt
            try:
                return await operation()
            except Exception as exc:
                if not self._is_transient(exc):
                    raise
                if not should_retry(attempt, self.config):
                    logger.error(
                        "Retry limit exceeded",
                        attempts=attempt,
                        error=str(exc),
                    )
                    raise RetryLimitExceededError(attempt) from exc

                delay = calculate_delay_with_jitter(attempt - 1, self.config)
                logger.warning(
                    "Transient store failure, retrying",
                    attempt=attempt,
                    max_attempts=self.config.max_attempts,
                    delay=round(delay, 3),
                    error=str(exc),
                )
                await self._sleep(delay)


def create_execution_strategy(config: Settings | None = None) -> ExecutionStrategy:
    """Strategy configured from settings; no retries when the budget is 0."""
    config = config or settings
    if config.transaction_max_retries <= 0:
        return NonRetryingExecutionStrategy()
    return RetryingExecutionStrategy(
        RetryConfig(
            max_retries=config.transaction_max_retries,
            initial_delay=config.transaction_retry_initial_delay,
            max_delay=config.transaction_retry_max_delay,
        )
    )
