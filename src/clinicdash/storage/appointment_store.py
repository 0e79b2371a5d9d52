"""Doctor / weekly-appointment store: protocol + implementations."""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any, Protocol

from clinicdash.records import AppointmentTarget, Doctor, WeeklyRecord

if TYPE_CHECKING:
    import psycopg

__all__ = [
    "AppointmentStoreProtocol",
    "DoctorNotFound",
    "InMemoryAppointmentStore",
    "PostgresAppointmentStore",
    "StoreError",
]

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({"title", "first_name", "last_name", "specialty", "active", "weekly_target"})


class StoreError(Exception):
    """Raised when the backing store is unreachable or rejects a query."""


class DoctorNotFound(StoreError):
    """Raised when a doctor id does not exist."""

    def __init__(self, doctor_id: str) -> None:
        super().__init__(f"Doctor {doctor_id} not found")
        self.doctor_id = doctor_id


class AppointmentStoreProtocol(Protocol):
    """Minimal contract for the doctors / weekly_appointments tables."""

    def list_doctors(self, active_only: bool = False) -> list[Doctor]:
        """Doctors ordered by last name."""
        ...

    def get_doctor(self, doctor_id: str) -> Doctor:
        """Raises DoctorNotFound."""
        ...

    def add_doctor(
        self,
        first_name: str,
        last_name: str,
        title: str = "Dr.",
        specialty: str | None = None,
        weekly_target: int | None = None,
        active: bool = True,
    ) -> Doctor:
        ...

    def update_doctor(self, doctor_id: str, **fields: Any) -> Doctor:
        """Update editable fields; unknown keys are ignored."""
        ...

    def set_active(self, doctor_id: str, active: bool) -> Doctor:
        ...

    def delete_doctor(self, doctor_id: str) -> None:
        """Delete a doctor and all of their weekly rows."""
        ...

    def list_weekly(
        self,
        doctor_id: str | None = None,
        year: int | None = None,
        week_number: int | None = None,
        since: date | None = None,
    ) -> list[WeeklyRecord]:
        """Weekly rows ordered by (year, week_number)."""
        ...

    def upsert_weekly(self, rows: list[WeeklyRecord]) -> int:
        """Insert or replace on (doctor_id, year, week_number). Returns row count."""
        ...

    def get_target(self, doctor_id: str, year: int) -> AppointmentTarget | None:
        """Doctor target for ``year``, falling back to the clinic-wide one."""
        ...

    def set_target(self, target: AppointmentTarget) -> None:
        ...


def _now() -> str:
    return datetime.now(UTC).isoformat()


# ── In-memory implementation (dev / tests) ──────────────


class InMemoryAppointmentStore:
    """Dict-backed store for dev and tests."""

    def __init__(self) -> None:
        self._doctors: dict[str, Doctor] = {}
        self._weekly: dict[tuple[str, int, int], WeeklyRecord] = {}
        self._targets: dict[tuple[str | None, int], AppointmentTarget] = {}

    def list_doctors(self, active_only: bool = False) -> list[Doctor]:
        doctors = [d for d in self._doctors.values() if d.active or not active_only]
        return sorted(doctors, key=lambda d: (d.last_name.lower(), d.first_name.lower()))

    def get_doctor(self, doctor_id: str) -> Doctor:
        try:
            return self._doctors[doctor_id]
        except KeyError:
            raise DoctorNotFound(doctor_id) from None

    def add_doctor(
        self,
        first_name: str,
        last_name: str,
        title: str = "Dr.",
        specialty: str | None = None,
        weekly_target: int | None = None,
        active: bool = True,
    ) -> Doctor:
        doctor = Doctor(
            id=str(uuid.uuid4()),
            first_name=first_name,
            last_name=last_name,
            title=title,
            specialty=specialty,
            weekly_target=weekly_target,
            active=active,
        )
        self._doctors[doctor.id] = doctor
        return doctor

    def update_doctor(self, doctor_id: str, **fields: Any) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        changes = {k: v for k, v in fields.items() if k in _EDITABLE_FIELDS}
        updated = replace(doctor, **changes, updated_at=_now())
        self._doctors[doctor_id] = updated
        return updated

    def set_active(self, doctor_id: str, active: bool) -> Doctor:
        return self.update_doctor(doctor_id, active=active)

    def delete_doctor(self, doctor_id: str) -> None:
        self.get_doctor(doctor_id)
        del self._doctors[doctor_id]
        for key in [k for k in self._weekly if k[0] == doctor_id]:
            del self._weekly[key]
        for key in [k for k in self._targets if k[0] == doctor_id]:
            del self._targets[key]

    def list_weekly(
        self,
        doctor_id: str | None = None,
        year: int | None = None,
        week_number: int | None = None,
        since: date | None = None,
    ) -> list[WeeklyRecord]:
        out = list(self._weekly.values())
        if doctor_id:
            out = [r for r in out if r.doctor_id == doctor_id]
        if year is not None:
            out = [r for r in out if r.year == year]
        if week_number is not None:
            out = [r for r in out if r.week_number == week_number]
        if since is not None:
            out = [r for r in out if r.monday >= since]
        return sorted(out, key=lambda r: (*r.sort_key, r.doctor_id))

    def upsert_weekly(self, rows: list[WeeklyRecord]) -> int:
        for row in rows:
            self.get_doctor(row.doctor_id)
        for row in rows:
            self._weekly[(row.doctor_id, row.year, row.week_number)] = row
        return len(rows)

    def get_target(self, doctor_id: str, year: int) -> AppointmentTarget | None:
        return self._targets.get((doctor_id, year)) or self._targets.get((None, year))

    def set_target(self, target: AppointmentTarget) -> None:
        self._targets[(target.doctor_id, target.year)] = target


# ── PostgreSQL implementation ────────────────────────────


class PostgresAppointmentStore:
    """Doctors and weekly counts in PostgreSQL (schema in ``storage.postgres``)."""

    def __init__(self, conn: psycopg.Connection[Any]) -> None:
        self._conn = conn

    def _fetch(self, sql: str, params: list[Any] | tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        import psycopg as _pg

        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall() if cur.description else []
            self._conn.commit()
        except _pg.Error as e:
            self._conn.rollback()
            raise StoreError(f"Query failed: {e}") from e
        return [dict(r) for r in rows]

    def list_doctors(self, active_only: bool = False) -> list[Doctor]:
        where = "WHERE active" if active_only else ""
        rows = self._fetch(f"SELECT * FROM doctors {where} ORDER BY last_name, first_name")  # noqa: S608
        return [Doctor.from_row(r) for r in rows]

    def get_doctor(self, doctor_id: str) -> Doctor:
        rows = self._fetch("SELECT * FROM doctors WHERE id = %s", (doctor_id,))
        if not rows:
            raise DoctorNotFound(doctor_id)
        return Doctor.from_row(rows[0])

    def add_doctor(
        self,
        first_name: str,
        last_name: str,
        title: str = "Dr.",
        specialty: str | None = None,
        weekly_target: int | None = None,
        active: bool = True,
    ) -> Doctor:
        rows = self._fetch(
            """
            INSERT INTO doctors
                (id, title, first_name, last_name, specialty, weekly_target, active)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING *
            """,
            (str(uuid.uuid4()), title, first_name, last_name, specialty, weekly_target, active),
        )
        return Doctor.from_row(rows[0])

    def update_doctor(self, doctor_id: str, **fields: Any) -> Doctor:
        changes = {k: v for k, v in fields.items() if k in _EDITABLE_FIELDS}
        if not changes:
            return self.get_doctor(doctor_id)

        assignments = ", ".join(f"{k} = %s" for k in changes)
        rows = self._fetch(
            f"UPDATE doctors SET {assignments}, updated_at = now() "  # noqa: S608
            f"WHERE id = %s RETURNING *",
            [*changes.values(), doctor_id],
        )
        if not rows:
            raise DoctorNotFound(doctor_id)
        return Doctor.from_row(rows[0])

    def set_active(self, doctor_id: str, active: bool) -> Doctor:
        return self.update_doctor(doctor_id, active=active)

    def delete_doctor(self, doctor_id: str) -> None:
        rows = self._fetch("DELETE FROM doctors WHERE id = %s RETURNING id", (doctor_id,))
        if not rows:
            raise DoctorNotFound(doctor_id)

    def list_weekly(
        self,
        doctor_id: str | None = None,
        year: int | None = None,
        week_number: int | None = None,
        since: date | None = None,
    ) -> list[WeeklyRecord]:
        clauses: list[str] = []
        params: list[Any] = []

        if doctor_id:
            clauses.append("doctor_id = %s")
            params.append(doctor_id)
        if year is not None:
            clauses.append("year = %s")
            params.append(year)
        if week_number is not None:
            clauses.append("week_number = %s")
            params.append(week_number)
        if since is not None:
            clauses.append("week_start_date >= %s")
            params.append(since)

        where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
        rows = self._fetch(
            f"SELECT doctor_id, year, week_number, week_start_date, appointment_count, notes "  # noqa: S608
            f"FROM weekly_appointments {where} ORDER BY year, week_number, doctor_id",
            params,
        )
        return [WeeklyRecord.from_row(r) for r in rows]

    def upsert_weekly(self, rows: list[WeeklyRecord]) -> int:
        import psycopg as _pg

        try:
            with self._conn.cursor() as cur:
                cur.executemany(
                    """
                    INSERT INTO weekly_appointments
                        (doctor_id, year, week_number, week_start_date,
                         appointment_count, notes)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON CONFLICT (doctor_id, year, week_number) DO UPDATE SET
                        week_start_date = EXCLUDED.week_start_date,
                        appointment_count = EXCLUDED.appointment_count,
                        notes = EXCLUDED.notes,
                        updated_at = now()
                    """,
                    [
                        (r.doctor_id, r.year, r.week_number, r.monday, r.appointment_count, r.notes)
                        for r in rows
                    ],
                )
            self._conn.commit()
        except _pg.errors.ForeignKeyViolation as e:
            self._conn.rollback()
            missing = next((r.doctor_id for r in rows), "")
            raise DoctorNotFound(missing) from e
        except _pg.Error as e:
            self._conn.rollback()
            raise StoreError(f"Upsert failed: {e}") from e
        logger.info("Upserted %d weekly rows", len(rows))
        return len(rows)

    def get_target(self, doctor_id: str, year: int) -> AppointmentTarget | None:
        rows = self._fetch(
            """
            SELECT doctor_id, year, weekly_target, monthly_target, yearly_target
            FROM appointment_targets
            WHERE year = %s AND (doctor_id = %s OR doctor_id IS NULL)
            ORDER BY doctor_id NULLS LAST
            LIMIT 1
            """,
            (year, doctor_id),
        )
        if not rows:
            return None
        return AppointmentTarget(**rows[0])

    def set_target(self, target: AppointmentTarget) -> None:
        self._fetch(
            """
            INSERT INTO appointment_targets
                (doctor_id, year, weekly_target, monthly_target, yearly_target)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (doctor_id, year) DO UPDATE SET
                weekly_target = EXCLUDED.weekly_target,
                monthly_target = EXCLUDED.monthly_target,
                yearly_target = EXCLUDED.yearly_target
            """,
            (
                target.doctor_id,
                target.year,
                target.weekly_target,
                target.monthly_target,
                target.yearly_target,
            ),
        )
