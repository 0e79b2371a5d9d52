"""Tests for demo data seeding."""

from __future__ import annotations

import random
from datetime import date

from clinicdash.demo.sample_data import DEMO_DOCTORS, generate_sample_weeks, seed_store
from clinicdash.storage.appointment_store import InMemoryAppointmentStore
from clinicdash.themes import theme_for


def _snapshot(store: InMemoryAppointmentStore) -> list[tuple[str, int, int, int]]:
    names = {d.id: d.last_name for d in store.list_doctors()}
    return sorted((names[r.doctor_id], r.year, r.week_number, r.appointment_count) for r in store.list_weekly())


class TestGenerateSampleWeeks:
    def test_weeks_in_range_and_ordered(self) -> None:
        rows = generate_sample_weeks(
            "d1", base_weekly=20, year=2024, first_week=1, last_week=10, rng=random.Random(1)
        )
        weeks = [r.week_number for r in rows]
        assert weeks == sorted(weeks)
        assert len(rows) <= 10
        assert all(1 <= w <= 10 for w in weeks)

    def test_counts_within_band(self) -> None:
        rows = generate_sample_weeks(
            "d1", base_weekly=30, year=2024, first_week=1, last_week=52, rng=random.Random(3)
        )
        assert all(21 <= r.appointment_count <= 39 for r in rows)
        assert all(r.week_start_date is not None for r in rows)


class TestSeedStore:
    def test_eight_doctors_with_distinct_themes(self) -> None:
        store = InMemoryAppointmentStore()
        doctors = seed_store(store, today=date(2024, 6, 15))
        assert len(doctors) == len(DEMO_DOCTORS) == 8
        assert len({theme_for(d.first_name, d.last_name).name for d in doctors}) == 8

    def test_covers_previous_september_through_today(self) -> None:
        store = InMemoryAppointmentStore()
        seed_store(store, today=date(2024, 6, 15))
        rows = store.list_weekly()
        assert {r.year for r in rows} == {2023, 2024}
        assert min(r.week_number for r in rows if r.year == 2023) >= 36
        assert max(r.week_number for r in rows if r.year == 2024) <= 24

    def test_reproducible_with_seed(self) -> None:
        a, b = InMemoryAppointmentStore(), InMemoryAppointmentStore()
        seed_store(a, today=date(2024, 6, 15), seed=7)
        seed_store(b, today=date(2024, 6, 15), seed=7)
        assert _snapshot(a) == _snapshot(b)

    def test_new_year_day_in_previous_iso_year(self) -> None:
        # 2027-01-01 is in ISO week 53 of 2026
        store = InMemoryAppointmentStore()
        seed_store(store, today=date(2027, 1, 1))
        assert {r.year for r in store.list_weekly()} == {2026}

    def test_weekly_target_applied(self) -> None:
        store = InMemoryAppointmentStore()
        doctors = seed_store(store, today=date(2024, 6, 15), weekly_target=25)
        assert all(d.weekly_target == 25 for d in doctors)
