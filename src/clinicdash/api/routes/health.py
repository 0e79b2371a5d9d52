"""Health, readiness, and metrics endpoints."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request, Response
from starlette.responses import JSONResponse

from clinicdash.healthchecks import check_postgres

router = APIRouter()

__all__ = ["router"]

# ──────────── In-process metrics counters ────────────
_metrics: dict[str, Any] = {
    "requests_total": 0,
    "requests_by_status": {},
    "charts_by_granularity": {},
    "store_errors": 0,
    "start_time": time.time(),
}


def record_request(status: int) -> None:
    """Call from middleware to track request counts."""
    _metrics["requests_total"] += 1
    key = str(status)
    _metrics["requests_by_status"][key] = _metrics["requests_by_status"].get(key, 0) + 1


def record_chart(granularity: str) -> None:
    by_granularity = _metrics["charts_by_granularity"]
    by_granularity[granularity] = by_granularity.get(granularity, 0) + 1


def record_store_error() -> None:
    _metrics["store_errors"] += 1


# ──────────── Endpoints ────────────


@router.get("/health", summary="Liveness probe", operation_id="health")
async def health() -> dict[str, str]:
    """Liveness: app process is running."""
    return {"status": "ok"}


@router.get("/ready", summary="Readiness probe", operation_id="ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness: the appointment store is reachable.

    The in-memory store is always ready; PostgreSQL is probed with SELECT 1.
    Returns 200 when ready, 503 otherwise.
    """
    settings = request.app.state.settings
    if settings.pg_dsn:
        backend = "postgres"
        ok = await check_postgres(settings.pg_dsn)
    else:
        backend = "memory"
        ok = True

    return JSONResponse(
        status_code=200 if ok else 503,
        content={"ready": ok, "checks": {"store": ok}, "backend": backend},
    )


@router.get("/metrics", summary="Prometheus metrics", operation_id="metrics")
async def metrics() -> Response:
    """Prometheus text exposition format."""
    uptime = time.time() - _metrics["start_time"]

    lines = [
        "# HELP clinicdash_up Dashboard API is up",
        "# TYPE clinicdash_up gauge",
        "clinicdash_up 1",
        "",
        "# HELP clinicdash_uptime_seconds Seconds since process start",
        "# TYPE clinicdash_uptime_seconds gauge",
        f"clinicdash_uptime_seconds {uptime:.1f}",
        "",
        "# HELP clinicdash_requests_total Total HTTP requests",
        "# TYPE clinicdash_requests_total counter",
        f"clinicdash_requests_total {_metrics['requests_total']}",
        "",
    ]

    for status, count in sorted(_metrics["requests_by_status"].items()):
        lines.append(f'clinicdash_requests_total{{status="{status}"}} {count}')

    lines += [
        "",
        "# HELP clinicdash_charts_total Charts built, by granularity",
        "# TYPE clinicdash_charts_total counter",
    ]
    for granularity, count in sorted(_metrics["charts_by_granularity"].items()):
        lines.append(f'clinicdash_charts_total{{granularity="{granularity}"}} {count}')

    lines += [
        "",
        "# HELP clinicdash_store_errors_total Store failures surfaced to clients",
        "# TYPE clinicdash_store_errors_total counter",
        f"clinicdash_store_errors_total {_metrics['store_errors']}",
        "",
    ]

    return Response(content="\n".join(lines), media_type="text/plain; charset=utf-8")
