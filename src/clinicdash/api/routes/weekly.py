"""Weekly data-entry endpoints.

``GET /weekly?week_of=YYYY-MM-DD`` — form state for the week containing the date
``PUT /weekly`` — save every doctor's count for one week
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from clinicdash import reports

router = APIRouter()

__all__ = ["router"]


class WeeklyEntry(BaseModel):
    doctor_id: str = Field(min_length=1)
    appointment_count: int = Field(default=0, ge=0)
    notes: str | None = None


class WeeklyBatch(BaseModel):
    """One submitted data-entry form."""

    week_of: date
    entries: list[WeeklyEntry] = Field(min_length=1)


class WeeklySaved(BaseModel):
    year: int
    week_number: int
    week_start_date: str
    saved: int
    message: str


@router.get("/weekly", summary="Data-entry form state", operation_id="get_weekly_form")
async def get_weekly_form(
    request: Request,
    week_of: date | None = Query(None, description="Any day of the week; defaults to today"),
) -> dict[str, Any]:
    return reports.week_form(request.app.state.store, week_of or date.today())


@router.put(
    "/weekly",
    response_model=WeeklySaved,
    summary="Save one week of appointment counts",
    operation_id="save_weekly",
)
async def save_weekly(batch: WeeklyBatch, request: Request) -> WeeklySaved:
    result = reports.save_week(
        request.app.state.store,
        batch.week_of,
        [entry.model_dump() for entry in batch.entries],
    )
    return WeeklySaved(**result)
