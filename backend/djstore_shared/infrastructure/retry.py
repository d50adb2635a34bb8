"""
Retry utilities: exponential backoff with jitter.

Used by the retrying execution strategy of the data context to space out the
attempts of a transactional action after a transient store failure.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Final


# =============================================================================
# Constants
# =============================================================================


# Default jitter range: ±25% of calculated delay
DEFAULT_JITTER_FACTOR: Final[float] = 0.25

# Default exponential backoff base
DEFAULT_BACKOFF_BASE: Final[float] = 2.0

# Default initial delay in seconds
DEFAULT_INITIAL_DELAY: Final[float] = 0.5

# Default number of retries after the first attempt
DEFAULT_MAX_RETRIES: Final[int] = 6


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_retries: Retries allowed after the first attempt (0 disables retrying).
        initial_delay: Base delay in seconds.
        max_delay: Maximum delay cap in seconds.
        backoff_base: Exponential backoff multiplier.
        jitter_factor: Random jitter range as fraction (0.25 = ±25%).
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = 30.0
    backoff_base: float = DEFAULT_BACKOFF_BASE
    jitter_factor: float = DEFAULT_JITTER_FACTOR

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        if self.backoff_base < 1:
            raise ValueError("backoff_base must be >= 1")
        if not 0 <= self.jitter_factor <= 1:
            raise ValueError("jitter_factor must be between 0 and 1")

    @property
    def max_attempts(self) -> int:
        """Total attempts, the first one included."""
        return self.max_retries + 1


# =============================================================================
# Retry Functions
# =============================================================================


def calculate_delay_with_jitter(
    attempt: int,
    config: RetryConfig | None = None,
) -> float:
    """
    Calculate retry delay with exponential backoff and jitter.

    The delay is calculated as:
        base_delay = initial_delay * (backoff_base ^ attempt)
        capped_delay = min(base_delay, max_delay)
        final_delay = capped_delay * (1 ± jitter_factor)

    Args:
        attempt: Current retry number (0-indexed).
        config: Retry configuration (uses defaults if None).

    Returns:
        Delay in seconds with jitter applied, never negative.

    Example:
        >>> config = RetryConfig(initial_delay=1.0, max_delay=30.0)
        >>> delay = calculate_delay_with_jitter(0, config)  # ~1.0s ± 25%
        >>> delay = calculate_delay_with_jitter(5, config)  # ~30.0s ± 25% (capped)
    """
    if config is None:
        config = RetryConfig()

    base_delay = config.initial_delay * (config.backoff_base ** attempt)
    capped_delay = min(base_delay, config.max_delay)

    jitter_range = capped_delay * config.jitter_factor
    jitter = random.uniform(-jitter_range, jitter_range)

    return max(0.0, capped_delay + jitter)


def should_retry(attempt: int, config: RetryConfig) -> bool:
    """
    Determine if another attempt should be made.

    Args:
        attempt: Attempts made so far (1-indexed).
        config: Retry configuration.

    Returns:
        True if should retry, False if the budget is exhausted.
    """
    return attempt < config.max_attempts
