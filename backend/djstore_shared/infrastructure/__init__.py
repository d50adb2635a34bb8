"""
Infrastructure module: database engine, request correlation, retry policy.
"""

from djstore_shared.infrastructure.db import (
    engine,
    create_store_engine,
    check_database_connection,
)
from djstore_shared.infrastructure.retry import RetryConfig, calculate_delay_with_jitter

__all__ = [
    "engine",
    "create_store_engine",
    "check_database_connection",
    "RetryConfig",
    "calculate_delay_with_jitter",
]
