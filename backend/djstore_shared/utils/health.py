"""
Health Check Utilities.

Provides a decorator for health checks with consistent timeout handling and
the report format exposed by the readiness check.

Usage:
    from djstore_shared.utils.health import health_check_with_timeout

    @health_check_with_timeout(timeout=3.0, component="sql")
    async def check_sql():
        await check_database_connection()

    report = await aggregate_health_checks([check_sql()])
    # {"Status": "Healthy", "Details": [{"Service": "sql", "Status": "Healthy", ...}]}
"""

from __future__ import annotations

import asyncio
import functools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Coroutine

from djstore_shared.config.logging import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status values."""
    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"


@dataclass
class HealthCheckResult:
    """
    Result of a health check operation.

    Provides consistent structure for all health check responses.
    """
    status: HealthStatus
    component: str
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def description(self) -> str | None:
        if self.error:
            return self.error
        if self.details:
            return ", ".join(f"{k}={v}" for k, v in self.details.items())
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response. Absent values are omitted."""
        result: dict[str, Any] = {
            "Service": self.component,
            "Status": self.status.value,
        }
        if self.description:
            result["Description"] = self.description
        if self.latency_ms is not None:
            result["LatencyMs"] = round(self.latency_ms, 2)
        return result


def health_check_with_timeout(
    timeout: float = 5.0,
    component: str | None = None,
):
    """
    Decorator for health check functions with timeout protection.

    The decorated coroutine either returns (healthy, optionally with a dict of
    details) or raises (unhealthy). Timeouts count as unhealthy.

    Args:
        timeout: Maximum time to wait for health check (seconds).
        component: Component name (defaults to the function name without "check_").

    Returns:
        Decorated function that returns HealthCheckResult.
    """
    def decorator(
        func: Callable[..., Coroutine[Any, Any, dict[str, Any] | None]]
    ) -> Callable[..., Coroutine[Any, Any, HealthCheckResult]]:
        comp_name = component or func.__name__.replace("check_", "").replace("_health", "")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> HealthCheckResult:
            start_time = time.perf_counter()
            try:
                result = await asyncio.wait_for(
                    func(*args, **kwargs),
                    timeout=timeout,
                )
                latency_ms = (time.perf_counter() - start_time) * 1000
                details = result if isinstance(result, dict) else {}

                return HealthCheckResult(
                    status=HealthStatus.HEALTHY,
                    component=comp_name,
                    latency_ms=latency_ms,
                    details=details,
                )
            except asyncio.TimeoutError:
                latency_ms = (time.perf_counter() - start_time) * 1000
                logger.warning(
                    "Health check timeout",
                    component=comp_name,
                    timeout=timeout,
                    latency_ms=latency_ms,
                )
                return HealthCheckResult(
                    status=HealthStatus.UNHEALTHY,
                    component=comp_name,
                    latency_ms=latency_ms,
                    error=f"timeout after {timeout}s",
                )
            except Exception as e:
                latency_ms = (time.perf_counter() - start_time) * 1000
                logger.warning(
                    "Health check failed",
                    component=comp_name,
                    error=str(e),
                    latency_ms=latency_ms,
                )
                return HealthCheckResult(
                    status=HealthStatus.UNHEALTHY,
                    component=comp_name,
                    latency_ms=latency_ms,
                    error=str(e),
                )

        return wrapper
    return decorator


async def aggregate_health_checks(
    checks: list[Coroutine[Any, Any, HealthCheckResult]],
) -> dict[str, Any]:
    """
    Run multiple health checks concurrently and aggregate results.

    The overall status is Unhealthy as soon as one component is not healthy.
    """
    results = await asyncio.gather(*checks, return_exceptions=True)

    details: list[dict[str, Any]] = []
    all_healthy = True

    for result in results:
        if isinstance(result, HealthCheckResult):
            details.append(result.to_dict())
            if result.status != HealthStatus.HEALTHY:
                all_healthy = False
        elif isinstance(result, Exception):
            details.append({
                "Service": "unknown",
                "Status": HealthStatus.UNHEALTHY.value,
                "Description": str(result),
            })
            all_healthy = False

    return {
        "Status": HealthStatus.HEALTHY.value if all_healthy else HealthStatus.UNHEALTHY.value,
        "Details": details,
    }
