"""Read models for the dashboard pages, assembled from the store.

Each function pulls what one page needs from an ``AppointmentStoreProtocol``
and returns JSON-ready dicts. All date windows hang off an explicit
``reference_date`` so results are reproducible in tests.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from clinicdash.bucketing import MONTH_ABBR, Granularity, approximate_month, bucket, summarize
from clinicdash.records import WeeklyRecord, round_half_up, week_of
from clinicdash.stats import (
    DoctorStatsYTD,
    dashboard_summary,
    doctor_stats_ytd,
    monthly_trends,
    performance_percent,
    rank_doctors,
    week_status,
    weekly_trends,
)
from clinicdash.themes import theme_for

if TYPE_CHECKING:
    from clinicdash.storage.appointment_store import AppointmentStoreProtocol

__all__ = [
    "carousel_slides",
    "dashboard",
    "doctor_chart",
    "doctor_detail",
    "ranked_stats",
    "save_week",
    "week_form",
]

logger = logging.getLogger(__name__)

RECENT_WEEKS = 10


def ranked_stats(store: AppointmentStoreProtocol, year: int) -> list[DoctorStatsYTD]:
    """YTD stats for every active doctor, highest total first."""
    doctors = store.list_doctors(active_only=True)
    by_doctor: dict[str, list[WeeklyRecord]] = defaultdict(list)
    for rec in store.list_weekly(year=year):
        by_doctor[rec.doctor_id].append(rec)

    stats = [
        doctor_stats_ytd(doctor, by_doctor[doctor.id], year, target=store.get_target(doctor.id, year))
        for doctor in doctors
    ]
    return rank_doctors(stats)


def _stats_with_theme(stats: DoctorStatsYTD) -> dict[str, Any]:
    return {**stats.to_dict(), "theme": theme_for(stats.first_name, stats.last_name).to_dict()}


def doctor_chart(
    store: AppointmentStoreProtocol,
    doctor_id: str,
    granularity: Granularity,
    reference_date: date,
    *,
    all_time_start: date | None = None,
) -> dict[str, Any]:
    store.get_doctor(doctor_id)
    rows = store.list_weekly(doctor_id=doctor_id)
    points = bucket(rows, granularity, reference_date, all_time_start=all_time_start)
    return {
        "doctor_id": doctor_id,
        "granularity": granularity.value,
        "reference_date": reference_date.isoformat(),
        "points": [p.to_dict() for p in points],
        "summary": summarize(points).to_dict(),
    }


def _month_summary(rows: list[WeeklyRecord], reference_date: date) -> list[dict[str, Any]]:
    """Jan through the reference month of its year, zero-filled."""
    totals: dict[int, int] = defaultdict(int)
    weeks: dict[int, int] = defaultdict(int)
    for rec in rows:
        if rec.year != reference_date.year:
            continue
        month = approximate_month(rec.week_number)
        totals[month] += rec.appointment_count
        weeks[month] += 1

    return [
        {
            "month": MONTH_ABBR[month - 1],
            "appointments": totals[month],
            "weeks": weeks[month],
            "avg_per_week": round_half_up(totals[month] / weeks[month]) if weeks[month] else 0,
        }
        for month in range(1, reference_date.month + 1)
    ]


def doctor_detail(
    store: AppointmentStoreProtocol,
    doctor_id: str,
    reference_date: date,
    *,
    performance_target: int,
) -> dict[str, Any]:
    """Everything the per-doctor page shows."""
    doctor = store.get_doctor(doctor_id)
    year = reference_date.year
    rows = store.list_weekly(doctor_id=doctor_id, year=year)
    stats = doctor_stats_ytd(doctor, rows, year, target=store.get_target(doctor_id, year))

    _, current_week, _ = week_of(reference_date)
    recent = []
    for rec in reversed(rows[-RECENT_WEEKS:]):
        recent.append(
            {
                **rec.to_dict(),
                "status": week_status(rec.appointment_count, performance_target),
                "performance": performance_percent(rec.appointment_count, performance_target),
                "is_current": rec.week_number == current_week,
            }
        )

    return {
        "doctor": doctor.to_dict(),
        "theme": theme_for(doctor.first_name, doctor.last_name).to_dict(),
        "stats": stats.to_dict(),
        "weekly": [
            {"week_number": r.week_number, "appointment_count": r.appointment_count, "notes": r.notes}
            for r in rows
        ],
        "months": _month_summary(rows, reference_date),
        "recent_weeks": recent,
        "performance_target": performance_target,
    }


def dashboard(store: AppointmentStoreProtocol, year: int) -> dict[str, Any]:
    stats = ranked_stats(store, year)
    active_ids = {s.doctor_id for s in stats}
    weekly = weekly_trends(store.list_weekly(year=year), year, active_ids)
    summary = dashboard_summary(stats)
    return {
        "year": year,
        "has_data": summary.total_appointments > 0,
        "summary": summary.to_dict(),
        "doctors": [_stats_with_theme(s) for s in stats],
        "weekly_trends": [t.to_dict() for t in weekly],
        "monthly_trends": [m.to_dict() for m in monthly_trends(weekly)],
    }


def carousel_slides(
    store: AppointmentStoreProtocol,
    granularity: Granularity,
    reference_date: date,
    *,
    all_time_start: date | None = None,
) -> list[dict[str, Any]]:
    """One slide per active doctor, ranked by YTD total."""
    slides = []
    for rank, stats in enumerate(ranked_stats(store, reference_date.year), start=1):
        chart = doctor_chart(
            store,
            stats.doctor_id,
            granularity,
            reference_date,
            all_time_start=all_time_start,
        )
        slides.append(
            {
                "rank": rank,
                "stats": stats.to_dict(),
                "theme": theme_for(stats.first_name, stats.last_name).to_dict(),
                "points": chart["points"],
                "summary": chart["summary"],
            }
        )
    return slides


def week_form(store: AppointmentStoreProtocol, day: date) -> dict[str, Any]:
    """Data-entry state for the week containing ``day``.

    Every active doctor appears; missing rows show a zero count.
    """
    year, week_number, monday = week_of(day)
    existing = {r.doctor_id: r for r in store.list_weekly(year=year, week_number=week_number)}
    entries = []
    for doctor in store.list_doctors(active_only=True):
        rec = existing.get(doctor.id)
        entries.append(
            {
                "doctor_id": doctor.id,
                "display_name": doctor.display_name,
                "specialty": doctor.specialty,
                "appointment_count": rec.appointment_count if rec else 0,
                "notes": rec.notes if rec else None,
            }
        )
    return {
        "year": year,
        "week_number": week_number,
        "week_start_date": monday.isoformat(),
        "week_end_date": (monday + timedelta(days=6)).isoformat(),
        "has_existing": bool(existing),
        "entries": entries,
    }


def save_week(store: AppointmentStoreProtocol, day: date, entries: list[dict[str, Any]]) -> dict[str, Any]:
    """Upsert one week of counts; returns a confirmation payload."""
    year, week_number, monday = week_of(day)
    rows = [
        WeeklyRecord(
            doctor_id=entry["doctor_id"],
            year=year,
            week_number=week_number,
            week_start_date=monday,
            appointment_count=entry.get("appointment_count") or 0,
            notes=entry.get("notes") or None,
        )
        for entry in entries
    ]
    saved = store.upsert_weekly(rows)
    logger.info("Saved %d rows for week %d of %d", saved, week_number, year)
    return {
        "year": year,
        "week_number": week_number,
        "week_start_date": monday.isoformat(),
        "saved": saved,
        "message": f"Saved appointment data for Week {week_number}, {year}",
    }
