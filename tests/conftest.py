"""Shared fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import date

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from clinicdash.api.app import create_app
from clinicdash.records import Doctor, WeeklyRecord
from clinicdash.settings import Settings
from clinicdash.storage.appointment_store import InMemoryAppointmentStore

# Saturday of ISO week 24; all fixture data lives in 2024
REFERENCE_DATE = date(2024, 6, 15)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        environment="dev",
        pg_dsn="",
        log_json=False,
        seed_demo=False,
    )


@pytest.fixture()
def store() -> InMemoryAppointmentStore:
    return InMemoryAppointmentStore()


@pytest.fixture()
def liam(store: InMemoryAppointmentStore) -> Doctor:
    """Three weeks in 2024: 10, 20, 5."""
    doctor = store.add_doctor("Liam", "Anderson", specialty="Periodontics", weekly_target=40)
    store.upsert_weekly(
        [
            WeeklyRecord(doctor_id=doctor.id, year=2024, week_number=1, appointment_count=10),
            WeeklyRecord(doctor_id=doctor.id, year=2024, week_number=2, appointment_count=20),
            WeeklyRecord(doctor_id=doctor.id, year=2024, week_number=3, appointment_count=5),
        ]
    )
    return doctor


@pytest.fixture()
def emma(store: InMemoryAppointmentStore) -> Doctor:
    """Two weeks in 2024: 30, 25; no weekly target."""
    doctor = store.add_doctor("Emma", "Wilson", specialty="Endodontics")
    store.upsert_weekly(
        [
            WeeklyRecord(doctor_id=doctor.id, year=2024, week_number=1, appointment_count=30),
            WeeklyRecord(doctor_id=doctor.id, year=2024, week_number=2, appointment_count=25),
        ]
    )
    return doctor


@pytest.fixture()
def app(test_settings: Settings, store: InMemoryAppointmentStore) -> FastAPI:
    a = create_app()
    a.state.settings = test_settings
    a.state.store = store
    return a


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
