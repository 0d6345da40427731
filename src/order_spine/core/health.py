"""Health endpoints backed by the resilience pipeline's live state.

Provides:

- **Response models** — ``HealthResponse``, ``CheckResult``, ``LivenessResponse``.
- **``breaker_checks()``** — turns a pipeline snapshot into one check per
  operation kind: a closed breaker is ``healthy``, half-open or open is
  ``degraded``.
- **``create_health_router()``** — ``/health``, ``/health/ready``, ``/health/live``.

Quick start::

    router = create_health_router(
        service_name="order-spine",
        version="1.0.0",
        snapshot=service.pipeline.snapshot,
    )
    app.include_router(router)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# Set when the service first imports this module.
_START_TIME = time.monotonic()

Status = Literal["healthy", "degraded", "unhealthy"]


class CheckResult(BaseModel):
    """Result of a single health check."""

    status: Status
    error: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health response envelope returned from ``GET /health``.

    Fields
    ──────
    status    : ``healthy`` | ``degraded`` | ``unhealthy``
    service   : Human-readable service name
    version   : Semver string
    uptime_s  : Seconds since startup
    timestamp : ISO-8601 UTC
    checks    : Per-operation-kind breakdown (op kind → CheckResult)
    """

    status: Status = "healthy"
    service: str = ""
    version: str = ""
    uptime_s: float = Field(default_factory=lambda: round(time.monotonic() - _START_TIME, 1))
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    checks: dict[str, CheckResult] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Response for liveness probes — always ``{"status": "alive"}``."""

    status: str = "alive"


def breaker_checks(snapshot: dict[str, dict[str, Any]]) -> dict[str, CheckResult]:
    """One ``CheckResult`` per operation kind from a pipeline snapshot."""
    results: dict[str, CheckResult] = {}
    for op_kind, state in snapshot.items():
        circuit = state["circuit"]["state"]
        results[op_kind] = CheckResult(
            status="healthy" if circuit == "closed" else "degraded",
            error=None if circuit == "closed" else f"circuit {circuit}",
            details=state,
        )
    return results


def _compute_status(results: dict[str, CheckResult]) -> Status:
    if any(r.status == "unhealthy" for r in results.values()):
        return "unhealthy"
    if any(r.status != "healthy" for r in results.values()):
        return "degraded"
    return "healthy"


def create_health_router(
    service_name: str,
    version: str,
    snapshot: Callable[[], dict[str, dict[str, Any]]],
    prefix: str = "/health",
):
    """Create a FastAPI ``APIRouter`` with health endpoints.

    Endpoints created
    -----------------
    ``GET {prefix}``         Breaker and bulkhead state per operation kind.
    ``GET {prefix}/ready``   Readiness probe — 503 unless every breaker is closed.
    ``GET {prefix}/live``    Liveness probe — always 200.
    """
    from fastapi import APIRouter  # noqa: PLC0415
    from fastapi.responses import JSONResponse  # noqa: PLC0415

    router = APIRouter(tags=["health"])

    def _make_response() -> HealthResponse:
        results = breaker_checks(snapshot())
        return HealthResponse(
            status=_compute_status(results),
            service=service_name,
            version=version,
            uptime_s=round(time.monotonic() - _START_TIME, 1),
            timestamp=datetime.now(UTC).isoformat(),
            checks=results,
        )

    @router.get(prefix, response_model=HealthResponse)
    def health() -> JSONResponse:
        """Primary health — degraded while any breaker is not closed."""
        body = _make_response()
        code = 503 if body.status == "unhealthy" else 200
        return JSONResponse(content=body.model_dump(), status_code=code)

    @router.get(f"{prefix}/ready", response_model=HealthResponse)
    def readiness() -> JSONResponse:
        """Readiness probe."""
        body = _make_response()
        code = 503 if body.status != "healthy" else 200
        return JSONResponse(content=body.model_dump(), status_code=code)

    @router.get(f"{prefix}/live", response_model=LivenessResponse)
    def liveness() -> LivenessResponse:
        """Liveness probe — always 200 if the process is running."""
        return LivenessResponse()

    return router
