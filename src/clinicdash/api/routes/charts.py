"""Per-doctor chart and detail endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from clinicdash import reports
from clinicdash.api.routes import health
from clinicdash.bucketing import Granularity

router = APIRouter()

__all__ = ["parse_granularity", "router"]


def parse_granularity(value: str) -> Granularity:
    """Query-string granularity → enum; unknown values are a 422."""
    try:
        return Granularity.parse(value)
    except ValueError as e:
        allowed = ", ".join(g.value for g in Granularity)
        raise HTTPException(status_code=422, detail=f"Unknown granularity '{value}' (expected one of: {allowed})") from e


@router.get(
    "/doctors/{doctor_id}/chart",
    summary="Chart series for one doctor",
    operation_id="doctor_chart",
)
async def doctor_chart(
    doctor_id: str,
    request: Request,
    granularity: str = Query("weekly", description="daily, weekly, monthly, quarterly, ..."),
    reference_date: date | None = Query(None, description="Window anchor; defaults to today"),
) -> dict[str, Any]:
    parsed = parse_granularity(granularity)
    settings = request.app.state.settings
    chart = reports.doctor_chart(
        request.app.state.store,
        doctor_id,
        parsed,
        reference_date or date.today(),
        all_time_start=settings.all_time_start,
    )
    health.record_chart(parsed.value)
    return chart


@router.get(
    "/doctors/{doctor_id}/detail",
    summary="YTD detail page for one doctor",
    operation_id="doctor_detail",
)
async def doctor_detail(
    doctor_id: str,
    request: Request,
    reference_date: date | None = Query(None, description="Defaults to today"),
) -> dict[str, Any]:
    settings = request.app.state.settings
    return reports.doctor_detail(
        request.app.state.store,
        doctor_id,
        reference_date or date.today(),
        performance_target=settings.performance_target,
    )
