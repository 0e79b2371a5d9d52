"""Health-check probes for downstream dependencies."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import psycopg

__all__ = ["check_postgres"]

logger = logging.getLogger(__name__)

_TIMEOUT = 2  # seconds


def _sync_check_postgres(dsn: str) -> bool:
    """Blocking SELECT 1 against PostgreSQL."""
    import psycopg as _pg  # noqa: F811

    conn: psycopg.Connection[Any] = _pg.connect(dsn, connect_timeout=_TIMEOUT)
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1")
    finally:
        conn.close()
    return True


async def check_postgres(dsn: str) -> bool:
    """SELECT 1 against PostgreSQL (non-blocking). Returns False on any failure."""
    if not dsn:
        return False
    try:
        return await asyncio.to_thread(partial(_sync_check_postgres, dsn))
    except Exception:
        logger.warning("Postgres health-check failed", exc_info=True)
        return False
