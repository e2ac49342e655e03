"""
Health endpoints.

Key behaviors:
- /health: overall status from all registered checks
- /health/ready: readiness probe (store reachable)
- /health/live: liveness probe (process alive)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from redirector.core.ports.store import StoreError

# --- Types ---


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)


class HealthCheck(Protocol):
    """Protocol for health checks."""

    name: str

    def check(self) -> CheckResult:
        """Run the health check and return result."""
        ...


# --- Startup Tracker ---


class StartupTracker:
    """Tracks application startup time for uptime calculation."""

    _start_time: float | None = None

    @classmethod
    def mark_started(cls) -> None:
        cls._start_time = time.time()

    @classmethod
    def get_uptime_seconds(cls) -> float:
        if cls._start_time is None:
            return 0.0
        return time.time() - cls._start_time


# --- Registry ---


class HealthCheckRegistry:
    """Registry of health checks to run."""

    def __init__(self) -> None:
        self._checks: list[HealthCheck] = []

    def register(self, check: HealthCheck) -> None:
        self._checks.append(check)

    def run_all(self) -> list[CheckResult]:
        return [check.check() for check in self._checks]


# --- Store Check ---


class StoreCheck:
    """Rule store reachability check. probe() should raise StoreError on failure."""

    name = "store"

    def __init__(self, probe: Callable[[], Any]) -> None:
        self._probe = probe

    def check(self) -> CheckResult:
        start = time.time()
        try:
            self._probe()
        except StoreError as e:
            return CheckResult(
                name=self.name,
                status=HealthStatus.UNHEALTHY,
                message=f"Store error: {e!s}",
                latency_ms=(time.time() - start) * 1000,
            )
        return CheckResult(
            name=self.name,
            status=HealthStatus.HEALTHY,
            message="Store reachable",
            latency_ms=(time.time() - start) * 1000,
        )


# --- FastAPI Router ---


def _serialize(results: list[CheckResult]) -> list[dict[str, Any]]:
    return [
        {
            "name": r.name,
            "status": r.status.value,
            "message": r.message,
            "latency_ms": r.latency_ms,
        }
        for r in results
    ]


def create_health_router(registry: HealthCheckRegistry, version: str = "0.0.0") -> APIRouter:
    """Create FastAPI router for health endpoints."""
    router = APIRouter(tags=["health"])

    @router.get("/health", response_model=None)
    def health_check() -> JSONResponse:
        results = registry.run_all()
        healthy = all(r.status == HealthStatus.HEALTHY for r in results)
        overall = HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY

        return JSONResponse(
            content={
                "status": overall.value,
                "version": version,
                "uptime_seconds": StartupTracker.get_uptime_seconds(),
                "checks": _serialize(results),
            },
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @router.get("/health/ready", response_model=None)
    def readiness_check() -> JSONResponse:
        results = registry.run_all()
        is_ready = all(r.status == HealthStatus.HEALTHY for r in results)

        return JSONResponse(
            content={"ready": is_ready, "checks": _serialize(results)},
            status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @router.get("/health/live", response_model=None)
    def liveness_check() -> JSONResponse:
        return JSONResponse(
            content={"alive": True, "uptime_seconds": StartupTracker.get_uptime_seconds()},
            status_code=status.HTTP_200_OK,
        )

    return router
