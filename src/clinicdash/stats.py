"""Year-to-date aggregates and clinic-wide trends from weekly rows."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Collection, Iterable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from clinicdash.bucketing import MONTH_ABBR, approximate_month
from clinicdash.records import round_half_up

if TYPE_CHECKING:
    from clinicdash.records import AppointmentTarget, Doctor, WeeklyRecord

__all__ = [
    "DashboardSummary",
    "DoctorStatsYTD",
    "MonthlyTrend",
    "WeeklyTrend",
    "dashboard_summary",
    "doctor_stats_ytd",
    "monthly_trends",
    "performance_percent",
    "rank_doctors",
    "week_status",
    "weekly_trends",
]

WEEKS_PER_YEAR = 52


@dataclass(frozen=True)
class DoctorStatsYTD:
    doctor_id: str
    title: str
    first_name: str
    last_name: str
    specialty: str | None
    year: int
    weeks_worked: int
    total_appointments: int
    avg_appointments_per_week: float
    max_weekly_appointments: int
    min_weekly_appointments: int
    weekly_target: int | None = None
    yearly_target: int | None = None
    target_completion_percentage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class WeeklyTrend:
    year: int
    week_number: int
    total_appointments: int
    active_doctors: int
    avg_appointments: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MonthlyTrend:
    month: str
    appointments: int
    active_doctors: int
    avg_appointments: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DashboardSummary:
    total_appointments: int
    total_doctors: int
    avg_appointments_per_doctor: int
    top_performer: DoctorStatsYTD | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_appointments": self.total_appointments,
            "total_doctors": self.total_doctors,
            "avg_appointments_per_doctor": self.avg_appointments_per_doctor,
            "top_performer": self.top_performer.to_dict() if self.top_performer else None,
        }


def doctor_stats_ytd(
    doctor: Doctor,
    records: Iterable[WeeklyRecord],
    year: int,
    *,
    target: AppointmentTarget | None = None,
) -> DoctorStatsYTD:
    """Aggregate one doctor's weeks in ``year``.

    The yearly target is the explicit target when set, otherwise the weekly
    target times 52. Completion is ``None`` when no target is known.
    """
    counts = [r.appointment_count for r in records if r.year == year]
    total = sum(counts)
    weeks = len(counts)

    weekly_target = (target.weekly_target if target else None) or doctor.weekly_target
    yearly_target = target.yearly_target if target else None
    if yearly_target is None and weekly_target:
        yearly_target = weekly_target * WEEKS_PER_YEAR

    completion = round(total / yearly_target * 100, 1) if yearly_target else None

    return DoctorStatsYTD(
        doctor_id=doctor.id,
        title=doctor.title,
        first_name=doctor.first_name,
        last_name=doctor.last_name,
        specialty=doctor.specialty,
        year=year,
        weeks_worked=weeks,
        total_appointments=total,
        avg_appointments_per_week=round(total / weeks, 2) if weeks else 0.0,
        max_weekly_appointments=max(counts, default=0),
        min_weekly_appointments=min(counts, default=0),
        weekly_target=weekly_target,
        yearly_target=yearly_target,
        target_completion_percentage=completion,
    )


def rank_doctors(stats: Iterable[DoctorStatsYTD]) -> list[DoctorStatsYTD]:
    """Highest YTD total first; ties keep their input order."""
    return sorted(stats, key=lambda s: s.total_appointments, reverse=True)


def weekly_trends(
    records: Iterable[WeeklyRecord],
    year: int,
    active_doctor_ids: Collection[str] | None = None,
) -> list[WeeklyTrend]:
    """Clinic-wide totals per week of ``year``, ordered by week.

    When ``active_doctor_ids`` is given, rows of other doctors are ignored.
    """
    totals: dict[int, int] = defaultdict(int)
    doctors: dict[int, set[str]] = defaultdict(set)
    for rec in records:
        if rec.year != year:
            continue
        if active_doctor_ids is not None and rec.doctor_id not in active_doctor_ids:
            continue
        totals[rec.week_number] += rec.appointment_count
        doctors[rec.week_number].add(rec.doctor_id)

    out = []
    for week in sorted(totals):
        active = len(doctors[week])
        out.append(
            WeeklyTrend(
                year=year,
                week_number=week,
                total_appointments=totals[week],
                active_doctors=active,
                avg_appointments=round(totals[week] / active, 2) if active else 0.0,
            )
        )
    return out


def monthly_trends(trends: Iterable[WeeklyTrend]) -> list[MonthlyTrend]:
    """Roll weekly trends into nominal months (same week→month map as charts)."""
    appointments: dict[int, int] = defaultdict(int)
    week_count: dict[int, int] = defaultdict(int)
    peak_doctors: dict[int, int] = defaultdict(int)
    for trend in trends:
        month = approximate_month(trend.week_number)
        appointments[month] += trend.total_appointments
        week_count[month] += 1
        peak_doctors[month] = max(peak_doctors[month], trend.active_doctors)

    return [
        MonthlyTrend(
            month=MONTH_ABBR[month - 1],
            appointments=appointments[month],
            active_doctors=peak_doctors[month],
            avg_appointments=round_half_up(appointments[month] / week_count[month]),
        )
        for month in sorted(appointments)
    ]


def dashboard_summary(stats: list[DoctorStatsYTD]) -> DashboardSummary:
    total = sum(s.total_appointments for s in stats)
    top: DoctorStatsYTD | None = None
    for s in stats:
        if top is None or s.total_appointments > top.total_appointments:
            top = s
    return DashboardSummary(
        total_appointments=total,
        total_doctors=len(stats),
        avg_appointments_per_doctor=round_half_up(total / len(stats)) if stats else 0,
        top_performer=top,
    )


def performance_percent(count: int, target: int) -> int:
    """Week count as a percentage of ``target`` (0 when target is unset)."""
    if target <= 0:
        return 0
    return round_half_up(count / target * 100)


def week_status(count: int, target: int) -> str:
    """Classify a week: on_target (≥ target), below_target (≥ ⅔), else low."""
    if count >= target:
        return "on_target"
    if count * 3 >= target * 2:
        return "below_target"
    return "low"
