"""Sample clinic data: reproducible weekly counts for demos.

Seeds a handful of doctors with plausible appointment volumes from the
September before ``today`` through the current week, so every chart view
(including all-time) has something to show on a fresh install.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from clinicdash.records import WeeklyRecord, monday_of_week, week_of

if TYPE_CHECKING:
    from clinicdash.records import Doctor
    from clinicdash.storage.appointment_store import AppointmentStoreProtocol

__all__ = ["DEMO_DOCTORS", "DemoDoctor", "generate_sample_weeks", "seed_store"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemoDoctor:
    first_name: str
    last_name: str
    specialty: str
    base_weekly: int  # typical appointments per week


DEMO_DOCTORS: tuple[DemoDoctor, ...] = (
    DemoDoctor("Hamid", "Hajian", "General Dentistry", 32),
    DemoDoctor("Joseph", "Grace", "Orthodontics", 28),
    DemoDoctor("Liam", "Anderson", "Periodontics", 24),
    DemoDoctor("Emma", "Wilson", "Endodontics", 22),
    DemoDoctor("Sophia", "Martinez", "Pediatric Dentistry", 26),
    DemoDoctor("Noah", "Johnson", "Oral Surgery", 18),
    DemoDoctor("Olivia", "Brown", "Prosthodontics", 20),
    DemoDoctor("William", "Davis", "Hygiene", 35),
)

_DAYS_OFF_RATE = 0.05  # chance a doctor has no row for a week (leave)
_FIRST_DEMO_WEEK = 36  # early September


def generate_sample_weeks(
    doctor_id: str,
    *,
    base_weekly: int,
    year: int,
    first_week: int,
    last_week: int,
    rng: random.Random,
) -> list[WeeklyRecord]:
    """One row per week in [first_week, last_week] of ``year``, minus leave weeks."""
    rows = []
    for week in range(first_week, last_week + 1):
        if rng.random() < _DAYS_OFF_RATE:
            continue
        count = max(0, round(base_weekly * rng.uniform(0.7, 1.3)))
        rows.append(
            WeeklyRecord(
                doctor_id=doctor_id,
                year=year,
                week_number=week,
                appointment_count=count,
                week_start_date=monday_of_week(year, week),
            )
        )
    return rows


def seed_store(
    store: AppointmentStoreProtocol,
    *,
    today: date,
    seed: int | None = 42,
    weekly_target: int = 40,
) -> list[Doctor]:
    """Add the demo doctors and their weeks to ``store``."""
    rng = random.Random(seed)  # noqa: S311
    iso_year, current_week, _ = week_of(today)
    # Early-January / late-December days belong to a neighbouring ISO year
    if iso_year < today.year:
        current_week = 0
    elif iso_year > today.year:
        current_week = 52

    doctors = []
    for demo in DEMO_DOCTORS:
        doctor = store.add_doctor(
            first_name=demo.first_name,
            last_name=demo.last_name,
            specialty=demo.specialty,
            weekly_target=weekly_target,
        )
        rows = generate_sample_weeks(
            doctor.id,
            base_weekly=demo.base_weekly,
            year=today.year - 1,
            first_week=_FIRST_DEMO_WEEK,
            last_week=52,
            rng=rng,
        ) + generate_sample_weeks(
            doctor.id,
            base_weekly=demo.base_weekly,
            year=today.year,
            first_week=1,
            last_week=min(current_week, 52),
            rng=rng,
        )
        store.upsert_weekly(rows)
        doctors.append(doctor)

    logger.info("Seeded %d demo doctors", len(doctors))
    return doctors
