"""Clinic dashboard and doctor showcase endpoints.

``GET /dashboard`` — ranked YTD stats, summary cards and clinic trends
``GET /carousel`` — every slide of the showcase at once
``GET /carousel/stream`` — the showcase as it rotates, one NDJSON line per slide
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from datetime import date
from typing import Any

from fastapi import APIRouter, Query, Request
from starlette.responses import StreamingResponse

from clinicdash import reports
from clinicdash.api.routes.charts import parse_granularity
from clinicdash.carousel import CarouselRotation, ChartLoader
from clinicdash.themes import theme_for

router = APIRouter()

__all__ = ["router"]


@router.get("/dashboard", summary="Clinic overview", operation_id="dashboard")
async def dashboard(
    request: Request,
    year: int | None = Query(None, ge=1, le=9999, description="Defaults to the current year"),
) -> dict[str, Any]:
    settings = request.app.state.settings
    payload = reports.dashboard(request.app.state.store, year or date.today().year)
    payload["refresh_seconds"] = settings.dashboard_refresh_seconds
    return payload


@router.get("/carousel", summary="Doctor showcase slides", operation_id="carousel")
async def carousel(
    request: Request,
    granularity: str = Query("weekly"),
    reference_date: date | None = Query(None),
) -> dict[str, Any]:
    parsed = parse_granularity(granularity)
    settings = request.app.state.settings
    slides = reports.carousel_slides(
        request.app.state.store,
        parsed,
        reference_date or date.today(),
        all_time_start=settings.all_time_start,
    )
    return {
        "granularity": parsed.value,
        "interval_seconds": settings.carousel_interval_seconds,
        "slides": slides,
    }


@router.get(
    "/carousel/stream",
    summary="Rotate through the showcase",
    operation_id="carousel_stream",
)
async def carousel_stream(
    request: Request,
    granularity: str = Query("weekly"),
    reference_date: date | None = Query(None),
    ticks: int = Query(8, ge=1, le=500, description="Slides to emit before closing"),
    interval_seconds: float | None = Query(None, ge=0, description="Overrides the configured interval"),
) -> StreamingResponse:
    """Emit the current slide, wait, advance; repeat ``ticks`` times."""
    parsed = parse_granularity(granularity)
    settings = request.app.state.settings
    store = request.app.state.store
    ref = reference_date or date.today()
    interval = settings.carousel_interval_seconds if interval_seconds is None else interval_seconds

    ranked = reports.ranked_stats(store, ref.year)
    rotation = CarouselRotation(len(ranked))
    loader = ChartLoader(store, today=lambda: ref, all_time_start=settings.all_time_start)

    async def _slides() -> AsyncIterator[str]:
        for tick in range(ticks):
            if not ranked:
                return
            stats = ranked[rotation.current]
            await loader.load(stats.doctor_id, parsed)
            line = {
                "tick": tick,
                "index": rotation.current,
                "total": rotation.size,
                "stats": stats.to_dict(),
                "theme": theme_for(stats.first_name, stats.last_name).to_dict(),
                "points": [p.to_dict() for p in loader.points],
                "summary": loader.summary.to_dict(),
            }
            yield json.dumps(line) + "\n"
            rotation.tick()
            if interval and tick < ticks - 1:
                await asyncio.sleep(interval)

    return StreamingResponse(_slides(), media_type="application/x-ndjson")
