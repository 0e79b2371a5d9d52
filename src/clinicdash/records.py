"""Domain records for doctors and their weekly appointment counts.

Rows arrive from the store as mappings; the ``from_row`` constructors are
tolerant of missing or loosely typed numeric fields (treated as 0) because
charts must never show a missing value as NaN.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any

__all__ = [
    "AppointmentTarget",
    "Doctor",
    "WeeklyRecord",
    "coerce_count",
    "monday_of_week",
    "parse_date",
    "round_half_up",
    "week_of",
]


def coerce_count(value: Any) -> int:
    """Turn a loosely typed count into a non-negative int (bad input → 0)."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0
    return int(number)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 → 3), unlike ``round``."""
    return math.floor(value + 0.5)


def monday_of_week(year: int, week_number: int) -> date:
    """Monday of ``week_number``: first Monday on/after Jan 1, then whole weeks."""
    jan1 = date(year, 1, 1)
    first_monday = jan1 + timedelta(days=(7 - jan1.weekday()) % 7)
    return first_monday + timedelta(weeks=week_number - 1)


def week_of(day: date) -> tuple[int, int, date]:
    """Return (year, week_number, monday) of the Monday-start week holding ``day``."""
    iso_year, iso_week, _ = day.isocalendar()
    return iso_year, iso_week, day - timedelta(days=day.weekday())


def parse_date(value: Any) -> date | None:
    """Accept a date, datetime or 'YYYY-MM-DD' string; anything else → None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class WeeklyRecord:
    """Appointment count for one doctor-week."""

    year: int
    week_number: int
    appointment_count: int = 0
    week_start_date: date | None = None
    doctor_id: str = ""
    notes: str | None = None

    @property
    def monday(self) -> date:
        """Stored week start, or the derived Monday when the row lacks one."""
        if self.week_start_date is not None:
            return self.week_start_date
        return monday_of_week(self.year, self.week_number)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, self.week_number)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> WeeklyRecord:
        return cls(
            year=coerce_count(row.get("year")),
            week_number=coerce_count(row.get("week_number")),
            appointment_count=coerce_count(row.get("appointment_count")),
            week_start_date=parse_date(row.get("week_start_date")),
            doctor_id=str(row.get("doctor_id") or ""),
            notes=row.get("notes") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "doctor_id": self.doctor_id,
            "year": self.year,
            "week_number": self.week_number,
            "week_start_date": self.monday.isoformat(),
            "appointment_count": self.appointment_count,
            "notes": self.notes,
        }


@dataclass
class Doctor:
    """A clinician whose weekly appointments are tracked."""

    id: str
    first_name: str
    last_name: str
    title: str = "Dr."
    specialty: str | None = None
    active: bool = True
    weekly_target: int | None = None
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)

    @property
    def display_name(self) -> str:
        return f"{self.title or 'Dr.'} {self.first_name} {self.last_name}"

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Doctor:
        target = row.get("weekly_target")
        return cls(
            id=str(row["id"]),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            title=row.get("title") or "Dr.",
            specialty=row.get("specialty") or None,
            active=bool(row.get("active", True)),
            weekly_target=coerce_count(target) if target is not None else None,
            created_at=str(row.get("created_at") or _now_iso()),
            updated_at=str(row.get("updated_at") or _now_iso()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
            "specialty": self.specialty,
            "active": self.active,
            "weekly_target": self.weekly_target,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class AppointmentTarget:
    """Per-year targets; ``doctor_id=None`` is the clinic-wide default."""

    year: int
    doctor_id: str | None = None
    weekly_target: int | None = None
    monthly_target: int | None = None
    yearly_target: int | None = None
