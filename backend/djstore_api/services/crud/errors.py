"""
Data access errors.

Store failures (IntegrityError, OperationalError, ...) are never wrapped;
these types only cover misuse of the data context, model assembly problems
and the retry policy.
"""

from __future__ import annotations


class DataAccessError(Exception):
    """Base class for errors raised by the data access layer."""


class EntityStateError(DataAccessError):
    """The entity is in the wrong state for the requested operation."""


class TransactionInProgressError(DataAccessError):
    """execute_transaction was called while one is already running."""

    def __init__(self) -> None:
        super().__init__("A transaction is already running on this data context")


class ModelConfigurationError(DataAccessError):
    """An entity binding does not match the mapped table."""


class TransientStoreError(DataAccessError):
    """
    A store failure known to be temporary.

    Raise it from a transactional action to request another attempt.
    """


class RetryLimitExceededError(DataAccessError):
    """Every attempt allowed by the retry policy failed with a transient error."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Transaction failed after {attempts} attempts")
