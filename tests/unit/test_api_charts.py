"""Tests for per-doctor chart and detail endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from clinicdash.records import Doctor, WeeklyRecord
from clinicdash.storage.appointment_store import InMemoryAppointmentStore


@pytest.mark.anyio()
async def test_weekly_chart(client: AsyncClient, liam: Doctor) -> None:
    resp = await client.get(
        f"/doctors/{liam.id}/chart",
        params={"granularity": "weekly", "reference_date": "2024-06-15"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["granularity"] == "weekly"
    assert body["reference_date"] == "2024-06-15"
    assert body["points"] == [
        {"label": "Jan 1", "value": 10},
        {"label": "Jan 8", "value": 20},
        {"label": "Jan 15", "value": 5},
    ]
    summary = body["summary"]
    assert summary["best"] == {"label": "Jan 8", "value": 20}
    assert summary["average"] == 12
    assert summary["trend"] == -15
    assert summary["trend_display"] == "-15"


@pytest.mark.anyio()
async def test_legacy_granularity_spelling(client: AsyncClient, liam: Doctor) -> None:
    resp = await client.get(
        f"/doctors/{liam.id}/chart",
        params={"granularity": "3-monthly", "reference_date": "2024-03-01"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["granularity"] == "quarterly"
    assert body["points"] == [{"label": "Jan", "value": 35}]


@pytest.mark.anyio()
async def test_chart_without_data(client: AsyncClient, store: InMemoryAppointmentStore) -> None:
    doctor = store.add_doctor("Olivia", "Brown")
    resp = await client.get(f"/doctors/{doctor.id}/chart", params={"granularity": "all_time"})
    body = resp.json()
    assert body["points"] == []
    assert body["summary"]["best"] is None
    assert body["summary"]["average"] == 0
    assert body["summary"]["trend_display"] == "—"


@pytest.mark.anyio()
async def test_detail_page(client: AsyncClient, store: InMemoryAppointmentStore, liam: Doctor) -> None:
    store.upsert_weekly(
        [
            WeeklyRecord(doctor_id=liam.id, year=2024, week_number=w, appointment_count=30 + w)
            for w in range(4, 25)
        ]
    )
    resp = await client.get(f"/doctors/{liam.id}/detail", params={"reference_date": "2024-06-15"})
    assert resp.status_code == 200
    body = resp.json()

    assert body["doctor"]["display_name"] == "Dr. Liam Anderson"
    assert body["theme"]["name"] == "Forest"
    assert body["stats"]["weeks_worked"] == 24
    assert len(body["weekly"]) == 24

    months = body["months"]
    assert [m["month"] for m in months] == ["Jan", "Feb", "Mar", "Apr", "May", "Jun"]
    assert sum(m["appointments"] for m in months) == body["stats"]["total_appointments"]

    recent = body["recent_weeks"]
    assert len(recent) == 10
    assert recent[0]["week_number"] == 24
    assert recent[0]["is_current"] is True
    assert recent[0]["status"] == "on_target"
    assert recent[0]["performance"] == 180
    assert recent[-1]["week_number"] == 15
    assert body["performance_target"] == 30


@pytest.mark.anyio()
async def test_detail_month_summary_zero_fills(client: AsyncClient, emma: Doctor) -> None:
    resp = await client.get(f"/doctors/{emma.id}/detail", params={"reference_date": "2024-04-02"})
    months = resp.json()["months"]
    assert months[0] == {"month": "Jan", "appointments": 55, "weeks": 2, "avg_per_week": 28}
    assert months[1:] == [
        {"month": m, "appointments": 0, "weeks": 0, "avg_per_week": 0} for m in ("Feb", "Mar", "Apr")
    ]


@pytest.mark.anyio()
async def test_all_time_chart_in_year_one(client: AsyncClient, liam: Doctor) -> None:
    resp = await client.get(
        f"/doctors/{liam.id}/chart",
        params={"granularity": "all_time", "reference_date": "0001-03-01"},
    )
    assert resp.status_code == 200
    assert resp.json()["points"] == []
