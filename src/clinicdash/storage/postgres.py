"""PostgreSQL connection management and schema."""

from __future__ import annotations

from typing import Any

import psycopg
from psycopg.rows import dict_row

__all__ = ["SCHEMA_SQL", "ensure_schema", "get_connection"]

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS doctors (
    id              TEXT PRIMARY KEY,
    title           TEXT NOT NULL DEFAULT 'Dr.',
    first_name      TEXT NOT NULL,
    last_name       TEXT NOT NULL,
    specialty       TEXT,
    active          BOOLEAN NOT NULL DEFAULT TRUE,
    weekly_target   INTEGER,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS weekly_appointments (
    doctor_id         TEXT NOT NULL REFERENCES doctors(id) ON DELETE CASCADE,
    year              INTEGER NOT NULL,
    week_number       INTEGER NOT NULL CHECK (week_number BETWEEN 1 AND 53),
    week_start_date   DATE,
    appointment_count INTEGER NOT NULL DEFAULT 0 CHECK (appointment_count >= 0),
    notes             TEXT,
    created_at        TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (doctor_id, year, week_number)
);

CREATE TABLE IF NOT EXISTS appointment_targets (
    doctor_id       TEXT REFERENCES doctors(id) ON DELETE CASCADE,
    year            INTEGER NOT NULL,
    weekly_target   INTEGER,
    monthly_target  INTEGER,
    yearly_target   INTEGER,
    UNIQUE NULLS NOT DISTINCT (doctor_id, year)
);
"""


def get_connection(dsn: str) -> psycopg.Connection[dict[str, Any]]:
    """Create a new PostgreSQL connection returning rows as dicts."""
    return psycopg.connect(dsn, autocommit=False, row_factory=dict_row)


def ensure_schema(conn: psycopg.Connection[Any]) -> None:
    """Create tables if missing (idempotent)."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    conn.commit()
