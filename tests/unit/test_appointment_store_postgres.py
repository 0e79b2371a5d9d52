"""Tests for the PostgreSQL store against a mocked psycopg connection."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import psycopg
import pytest

from clinicdash.records import WeeklyRecord
from clinicdash.storage.appointment_store import DoctorNotFound, PostgresAppointmentStore, StoreError
from clinicdash.storage.postgres import SCHEMA_SQL, ensure_schema


def _conn(rows: list[dict[str, Any]] | None = None, error: Exception | None = None) -> MagicMock:
    conn = MagicMock()
    cur = conn.cursor.return_value.__enter__.return_value
    cur.description = [("id",)] if rows is not None else None
    cur.fetchall.return_value = rows or []
    if error is not None:
        cur.execute.side_effect = error
        cur.executemany.side_effect = error
    return conn


def _cursor(conn: MagicMock) -> MagicMock:
    return conn.cursor.return_value.__enter__.return_value  # type: ignore[no-any-return]


class TestPostgresAppointmentStore:
    def test_list_doctors_maps_rows(self) -> None:
        conn = _conn([{"id": "d1", "first_name": "Emma", "last_name": "Wilson", "active": True}])
        doctors = PostgresAppointmentStore(conn).list_doctors(active_only=True)

        assert [d.display_name for d in doctors] == ["Dr. Emma Wilson"]
        sql = _cursor(conn).execute.call_args.args[0]
        assert "WHERE active" in sql
        conn.commit.assert_called_once()

    def test_missing_doctor(self) -> None:
        with pytest.raises(DoctorNotFound):
            PostgresAppointmentStore(_conn([])).get_doctor("ghost")

    def test_driver_error_becomes_store_error(self) -> None:
        conn = _conn(error=psycopg.OperationalError("server closed the connection"))
        with pytest.raises(StoreError):
            PostgresAppointmentStore(conn).list_weekly(doctor_id="d1")
        conn.rollback.assert_called_once()

    def test_list_weekly_builds_filters(self) -> None:
        conn = _conn(
            [{"doctor_id": "d1", "year": 2024, "week_number": 3, "appointment_count": 7, "week_start_date": None}]
        )
        rows = PostgresAppointmentStore(conn).list_weekly(doctor_id="d1", year=2024)

        assert rows == [WeeklyRecord(doctor_id="d1", year=2024, week_number=3, appointment_count=7)]
        sql, params = _cursor(conn).execute.call_args.args
        assert "doctor_id = %s AND year = %s" in sql
        assert params == ["d1", 2024]

    def test_update_ignores_unknown_fields(self) -> None:
        conn = _conn([{"id": "d1", "first_name": "Emma", "last_name": "Wilson", "specialty": "Surgery"}])
        PostgresAppointmentStore(conn).update_doctor("d1", specialty="Surgery", id="hijack")

        sql, params = _cursor(conn).execute.call_args.args
        assert "specialty = %s" in sql
        assert "id = %s," not in sql
        assert params == ["Surgery", "d1"]

    def test_upsert_unknown_doctor(self) -> None:
        conn = _conn(error=psycopg.errors.ForeignKeyViolation("violates foreign key constraint"))
        rows = [WeeklyRecord(doctor_id="ghost", year=2024, week_number=1, appointment_count=3)]
        with pytest.raises(DoctorNotFound):
            PostgresAppointmentStore(conn).upsert_weekly(rows)
        conn.rollback.assert_called_once()

    def test_upsert_sends_derived_monday(self) -> None:
        conn = _conn()
        rows = [WeeklyRecord(doctor_id="d1", year=2025, week_number=1, appointment_count=3)]
        assert PostgresAppointmentStore(conn).upsert_weekly(rows) == 1

        params = _cursor(conn).executemany.call_args.args[1]
        assert params[0][3].isoformat() == "2025-01-06"


def test_ensure_schema_runs_ddl() -> None:
    conn = _conn()
    ensure_schema(conn)
    _cursor(conn).execute.assert_called_once_with(SCHEMA_SQL)
    conn.commit.assert_called_once()
