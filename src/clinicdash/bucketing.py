"""Time-series bucketer: weekly appointment rows → chart-ready points.

Every chart in the dashboard, the carousel and the doctor detail page is
built here. The functions are pure: the caller injects ``reference_date``
instead of reading the clock, and nothing touches the store.

Month-based granularities do not use calendar months. A week maps to the
nominal month ``ceil(week_number / 4.33)`` (clamped to 1..12), and all call
sites share that mapping so historical totals stay reproducible.

Granularities:
    daily             last 8 weeks, count / 5 as a per-working-day estimate
    weekly            current year, last 12 weeks, labelled by Monday date
    monthly           last 4 weeks verbatim
    calendar_monthly  true calendar months from ``week_start_date``
    quarterly         3 nominal months ending at the reference month
    semiannual        6 nominal months ending at the reference month
    ytd               January → reference month of the current year
    all_time          epoch → reference month, labelled ``Mon'YY``
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

from clinicdash.records import WeeklyRecord, monday_of_week, round_half_up

__all__ = [
    "MONTH_ABBR",
    "ChartPoint",
    "ChartSummary",
    "Granularity",
    "approximate_month",
    "bucket",
    "format_trend",
    "summarize",
]

logger = logging.getLogger(__name__)

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

WEEKS_PER_MONTH = 4.33
WEEKLY_WINDOW = 12
MONTHLY_WINDOW = 4
DAILY_WINDOW = 8
WORKING_DAYS_PER_WEEK = 5
TREND_PLACEHOLDER = "—"


class Granularity(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CALENDAR_MONTHLY = "calendar_monthly"
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    YTD = "ytd"
    ALL_TIME = "all_time"

    @classmethod
    def parse(cls, value: str) -> Granularity:
        """Parse a granularity, accepting the dashboard's legacy spellings.

        Raises ValueError for unknown values.
        """
        key = value.strip().lower()
        return cls(_ALIASES.get(key, key))


_ALIASES: dict[str, str] = {
    "3-monthly": "quarterly",
    "6-monthly": "semiannual",
    "all-time": "all_time",
    "year-to-date": "ytd",
    "calendar-monthly": "calendar_monthly",
}


@dataclass(frozen=True)
class ChartPoint:
    label: str
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class ChartSummary:
    """Headline numbers for a chart; ``None`` means "no data", not zero."""

    best: ChartPoint | None
    latest: ChartPoint | None
    average: int
    total: int
    trend: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "best": self.best.to_dict() if self.best else None,
            "latest": self.latest.to_dict() if self.latest else None,
            "average": self.average,
            "total": self.total,
            "trend": self.trend,
            "trend_display": format_trend(self.trend),
        }


# ── helpers ──────────────────────────────────────────────────────────


def approximate_month(week_number: int) -> int:
    """Nominal month (1–12) of a week: ``ceil(week / 4.33)``, clamped."""
    return min(12, max(1, math.ceil(week_number / WEEKS_PER_MONTH)))


def _month_index(year: int, month: int) -> int:
    return year * 12 + (month - 1)


def _split_index(index: int) -> tuple[int, int]:
    year, month0 = divmod(index, 12)
    return year, month0 + 1


def _monday_label(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.day}"


def _normalise(records: Iterable[WeeklyRecord | Mapping[str, Any]]) -> list[WeeklyRecord]:
    """Coerce rows to records, drop unusable ones, sort by (year, week).

    A row is unusable when it is not a mapping, when its week is outside
    1..53, or when its derived Monday falls outside the ``date`` range.
    """
    out: list[WeeklyRecord] = []
    for raw in records:
        if isinstance(raw, WeeklyRecord):
            rec = raw
        elif isinstance(raw, Mapping):
            rec = WeeklyRecord.from_row(dict(raw))
        else:
            logger.debug("Skipping non-mapping weekly row: %r", raw)
            continue
        if rec.year < 1 or not 1 <= rec.week_number <= 53:
            logger.debug("Skipping malformed weekly row: %r", raw)
            continue
        try:
            monday_of_week(rec.year, rec.week_number)
        except (ValueError, OverflowError):
            logger.debug("Skipping out-of-range weekly row: %r", raw)
            continue
        out.append(rec)
    out.sort(key=lambda r: r.sort_key)
    return out


def _sum_months(rows: list[WeeklyRecord], lo: int, hi: int) -> list[tuple[int, int]]:
    """Sum counts per nominal month index within [lo, hi], chronologically."""
    totals: dict[int, int] = defaultdict(int)
    for rec in rows:
        idx = _month_index(rec.year, approximate_month(rec.week_number))
        if lo <= idx <= hi:
            totals[idx] += rec.appointment_count
    return sorted(totals.items())


def _month_points(buckets: list[tuple[int, int]], *, with_year: bool = False) -> list[ChartPoint]:
    points = []
    for idx, total in buckets:
        year, month = _split_index(idx)
        label = MONTH_ABBR[month - 1]
        if with_year:
            label = f"{label}'{year % 100:02d}"
        points.append(ChartPoint(label=label, value=total))
    return points


# ── per-granularity bucketers ────────────────────────────────────────


def _daily(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    return [
        ChartPoint(
            label=f"Week {rec.week_number}",
            value=round_half_up(rec.appointment_count / WORKING_DAYS_PER_WEEK),
        )
        for rec in rows[-DAILY_WINDOW:]
    ]


def _weekly(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    """Labels come from ``monday_of_week``, not the stored ``week_start_date``.

    In years whose Jan 1 falls Tuesday to Thursday an ISO-keyed week is
    labelled one week after its stored Monday (2026 week 43 reads "Oct 26").
    """
    points = [
        ChartPoint(
            label=_monday_label(monday_of_week(ref.year, rec.week_number)),
            value=rec.appointment_count,
        )
        for rec in rows
        if rec.year == ref.year
    ]
    return points[-WEEKLY_WINDOW:]


def _monthly(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    return [
        ChartPoint(
            label=_monday_label(monday_of_week(rec.year, rec.week_number)),
            value=rec.appointment_count,
        )
        for rec in rows[-MONTHLY_WINDOW:]
    ]


def _calendar_monthly(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    totals: dict[int, int] = defaultdict(int)
    for rec in rows:
        monday = rec.monday
        totals[_month_index(monday.year, monday.month)] += rec.appointment_count
    return _month_points(sorted(totals.items()))


def _quarterly(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    lo = _month_index(ref.year, max(1, ref.month - 2))
    return _month_points(_sum_months(rows, lo, _month_index(ref.year, ref.month)))


def _semiannual(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    hi = _month_index(ref.year, ref.month)
    return _month_points(_sum_months(rows, hi - 5, hi)[-6:])


def _ytd(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    lo = _month_index(ref.year, 1)
    return _month_points(_sum_months(rows, lo, _month_index(ref.year, ref.month)))


def _all_time(rows: list[WeeklyRecord], ref: date, epoch: date | None) -> list[ChartPoint]:
    start = epoch or (date(ref.year - 1, 9, 1) if ref.year > 1 else date.min)
    lo = _month_index(start.year, start.month)
    hi = _month_index(ref.year, ref.month)
    return _month_points(_sum_months(rows, lo, hi), with_year=True)


_BUCKETERS = {
    Granularity.DAILY: _daily,
    Granularity.WEEKLY: _weekly,
    Granularity.MONTHLY: _monthly,
    Granularity.CALENDAR_MONTHLY: _calendar_monthly,
    Granularity.QUARTERLY: _quarterly,
    Granularity.SEMIANNUAL: _semiannual,
    Granularity.YTD: _ytd,
    Granularity.ALL_TIME: _all_time,
}


def bucket(
    records: Iterable[WeeklyRecord | Mapping[str, Any]],
    granularity: Granularity | str,
    reference_date: date,
    *,
    all_time_start: date | None = None,
) -> list[ChartPoint]:
    """Reshape weekly rows into ordered chart points.

    Parameters
    ----------
    records:
        Weekly rows for one doctor, in any order. Mappings are accepted and
        coerced; rows with an impossible year or week are skipped.
    granularity:
        A ``Granularity`` or one of its string spellings.
    reference_date:
        "Today" for windowing purposes.
    all_time_start:
        First month of the ``all_time`` view. Defaults to September of the
        year before ``reference_date``.

    Returns an empty list for empty input; never raises on bad rows.
    """
    if not isinstance(granularity, Granularity):
        granularity = Granularity.parse(granularity)
    rows = _normalise(records)
    if not rows:
        return []
    return _BUCKETERS[granularity](rows, reference_date, all_time_start)


# ── summary statistics ───────────────────────────────────────────────


def summarize(points: list[ChartPoint]) -> ChartSummary:
    """Best (first maximum), latest, rounded average, total and trend."""
    if not points:
        return ChartSummary(best=None, latest=None, average=0, total=0, trend=None)

    best = points[0]
    for point in points[1:]:
        if point.value > best.value:
            best = point

    total = sum(p.value for p in points)
    trend = points[-1].value - points[-2].value if len(points) >= 2 else None
    return ChartSummary(
        best=best,
        latest=points[-1],
        average=round_half_up(total / len(points)),
        total=total,
        trend=trend,
    )


def format_trend(trend: int | None) -> str:
    """Signed trend for display; the em-dash placeholder when undefined."""
    if trend is None:
        return TREND_PLACEHOLDER
    return f"{trend:+d}" if trend else "0"
