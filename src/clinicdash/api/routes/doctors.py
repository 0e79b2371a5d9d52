"""Doctor administration endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query, Request, Response, status
from pydantic import BaseModel, Field

from clinicdash.themes import theme_for

router = APIRouter()

__all__ = ["router"]

logger = logging.getLogger(__name__)


class DoctorIn(BaseModel):
    """New doctor from the admin form."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    title: str = "Dr."
    specialty: str | None = None
    weekly_target: int | None = Field(default=None, ge=0)
    active: bool = True


class DoctorPatch(BaseModel):
    """Partial update; omitted fields stay as they are."""

    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    title: str | None = None
    specialty: str | None = None
    weekly_target: int | None = Field(default=None, ge=0)
    active: bool | None = None


def _with_theme(doctor: Any) -> dict[str, Any]:
    return {**doctor.to_dict(), "theme": theme_for(doctor.first_name, doctor.last_name).to_dict()}


@router.get("/doctors", summary="List doctors", operation_id="list_doctors")
async def list_doctors(
    request: Request,
    active_only: bool = Query(False, description="Only doctors shown on dashboards"),
) -> list[dict[str, Any]]:
    store = request.app.state.store
    return [_with_theme(d) for d in store.list_doctors(active_only=active_only)]


@router.post(
    "/doctors",
    status_code=status.HTTP_201_CREATED,
    summary="Add a doctor",
    operation_id="create_doctor",
)
async def create_doctor(payload: DoctorIn, request: Request) -> dict[str, Any]:
    store = request.app.state.store
    doctor = store.add_doctor(**payload.model_dump())
    logger.info("Added doctor %s (%s)", doctor.display_name, doctor.id)
    return _with_theme(doctor)


@router.get("/doctors/{doctor_id}", summary="Get one doctor", operation_id="get_doctor")
async def get_doctor(doctor_id: str, request: Request) -> dict[str, Any]:
    return _with_theme(request.app.state.store.get_doctor(doctor_id))


@router.patch("/doctors/{doctor_id}", summary="Edit a doctor", operation_id="update_doctor")
async def update_doctor(doctor_id: str, payload: DoctorPatch, request: Request) -> dict[str, Any]:
    store = request.app.state.store
    changes = payload.model_dump(exclude_unset=True)
    # first/last name cannot be blanked out through an explicit null
    changes = {k: v for k, v in changes.items() if v is not None or k in ("specialty", "weekly_target")}
    doctor = store.update_doctor(doctor_id, **changes)
    return _with_theme(doctor)


@router.delete(
    "/doctors/{doctor_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a doctor and their weekly data",
    operation_id="delete_doctor",
)
async def delete_doctor(doctor_id: str, request: Request) -> Response:
    request.app.state.store.delete_doctor(doctor_id)
    logger.info("Deleted doctor %s", doctor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/doctors/{doctor_id}/toggle-active",
    summary="Show or hide a doctor on dashboards",
    operation_id="toggle_doctor_active",
)
async def toggle_active(doctor_id: str, request: Request) -> dict[str, Any]:
    store = request.app.state.store
    doctor = store.get_doctor(doctor_id)
    updated = store.set_active(doctor_id, not doctor.active)
    return _with_theme(updated)
