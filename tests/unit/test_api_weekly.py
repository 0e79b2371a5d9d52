"""Tests for the weekly data-entry endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from clinicdash.records import Doctor
from clinicdash.storage.appointment_store import InMemoryAppointmentStore


@pytest.mark.anyio()
async def test_form_for_empty_week(client: AsyncClient, liam: Doctor, emma: Doctor) -> None:
    resp = await client.get("/weekly", params={"week_of": "2024-06-12"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["year"] == 2024
    assert body["week_number"] == 24
    assert body["week_start_date"] == "2024-06-10"
    assert body["week_end_date"] == "2024-06-16"
    assert body["has_existing"] is False
    assert [e["appointment_count"] for e in body["entries"]] == [0, 0]


@pytest.mark.anyio()
async def test_form_shows_existing_counts(client: AsyncClient, liam: Doctor, emma: Doctor) -> None:
    resp = await client.get("/weekly", params={"week_of": "2024-01-03"})
    body = resp.json()
    assert body["week_number"] == 1
    assert body["has_existing"] is True
    counts = {e["doctor_id"]: e["appointment_count"] for e in body["entries"]}
    assert counts == {liam.id: 10, emma.id: 30}


@pytest.mark.anyio()
async def test_save_week_then_read_back(
    client: AsyncClient, store: InMemoryAppointmentStore, liam: Doctor, emma: Doctor
) -> None:
    resp = await client.put(
        "/weekly",
        json={
            "week_of": "2024-06-12",
            "entries": [
                {"doctor_id": liam.id, "appointment_count": 33, "notes": "locum on Friday"},
                {"doctor_id": emma.id, "appointment_count": "28"},
            ],
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["saved"] == 2
    assert body["message"] == "Saved appointment data for Week 24, 2024"

    rows = store.list_weekly(year=2024, week_number=24)
    assert {r.doctor_id: r.appointment_count for r in rows} == {liam.id: 33, emma.id: 28}
    assert all(r.week_start_date is not None and r.week_start_date.isoformat() == "2024-06-10" for r in rows)


@pytest.mark.anyio()
async def test_resubmitting_a_week_replaces_counts(
    client: AsyncClient, store: InMemoryAppointmentStore, liam: Doctor
) -> None:
    payload = {"week_of": "2024-01-02", "entries": [{"doctor_id": liam.id, "appointment_count": 11}]}
    resp = await client.put("/weekly", json=payload)
    assert resp.status_code == 200
    rows = store.list_weekly(doctor_id=liam.id, week_number=1)
    assert [r.appointment_count for r in rows] == [11]


@pytest.mark.anyio()
async def test_negative_count_rejected(client: AsyncClient, liam: Doctor) -> None:
    resp = await client.put(
        "/weekly",
        json={"week_of": "2024-06-12", "entries": [{"doctor_id": liam.id, "appointment_count": -4}]},
    )
    assert resp.status_code == 422


@pytest.mark.anyio()
async def test_unknown_doctor_rejected(client: AsyncClient, store: InMemoryAppointmentStore, liam: Doctor) -> None:
    resp = await client.put(
        "/weekly",
        json={
            "week_of": "2024-06-12",
            "entries": [
                {"doctor_id": liam.id, "appointment_count": 4},
                {"doctor_id": "ghost", "appointment_count": 4},
            ],
        },
    )
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "NOT_FOUND"
    assert store.list_weekly(week_number=24) == []
