"""
CRUD Services - the persistence core.

Provides:
- DataContext / DataContextProtocol: unit of work and query/command surface
- EntityQuery: lazy, composable query handle
- Execution strategies for retry-safe transactions
- build_store_model: one-time model assembly (bindings, filters, trimming)
- Data access errors
"""

from .errors import (
    DataAccessError,
    EntityStateError,
    ModelConfigurationError,
    RetryLimitExceededError,
    TransactionInProgressError,
    TransientStoreError,
)
from .model_builder import StoreModel, build_store_model
from .interceptors import DataSession
from .execution_strategy import (
    NonRetryingExecutionStrategy,
    RetryingExecutionStrategy,
    create_execution_strategy,
    is_transient_error,
)
from .query import EntityQuery
from .data_context import DataContext, DataContextProtocol

__all__ = [
    # Errors
    "DataAccessError",
    "EntityStateError",
    "ModelConfigurationError",
    "RetryLimitExceededError",
    "TransactionInProgressError",
    "TransientStoreError",
    # Model assembly
    "StoreModel",
    "build_store_model",
    # Session hooks
    "DataSession",
    # Execution strategies
    "NonRetryingExecutionStrategy",
    "RetryingExecutionStrategy",
    "create_execution_strategy",
    "is_transient_error",
    # Query/command surface
    "EntityQuery",
    "DataContext",
    "DataContextProtocol",
]
