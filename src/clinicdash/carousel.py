"""Carousel rotation and stale-safe chart loading.

The showcase advances to the next doctor on a timer and fetches that
doctor's chart each time. When the selection changes faster than the store
answers, an older response can arrive after a newer one; ``LatestRequestGate``
drops such results so only the most recent request is applied.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TYPE_CHECKING, TypeVar

from clinicdash.bucketing import ChartPoint, ChartSummary, Granularity, bucket, summarize
from clinicdash.storage.appointment_store import StoreError

if TYPE_CHECKING:
    from clinicdash.storage.appointment_store import AppointmentStoreProtocol

__all__ = ["CarouselRotation", "ChartLoader", "LatestRequestGate"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CarouselRotation:
    """Index of the current slide, wrapping in both directions."""

    def __init__(self, size: int, *, playing: bool = True) -> None:
        self._size = max(size, 0)
        self._index = 0
        self.playing = playing

    @property
    def current(self) -> int:
        return self._index

    @property
    def size(self) -> int:
        return self._size

    def tick(self) -> int:
        """Timer step: advance only while playing."""
        if self.playing:
            return self.advance()
        return self._index

    def advance(self) -> int:
        if self._size:
            self._index = (self._index + 1) % self._size
        return self._index

    def previous(self) -> int:
        if self._size:
            self._index = (self._index - 1 + self._size) % self._size
        return self._index

    def select(self, index: int) -> int:
        if self._size:
            self._index = index % self._size
        return self._index

    def toggle(self) -> bool:
        self.playing = not self.playing
        return self.playing

    def resize(self, size: int) -> None:
        """Doctor list changed; keep the index in range."""
        self._size = max(size, 0)
        self._index = self._index % self._size if self._size else 0


class LatestRequestGate:
    """Generation counter: only the newest in-flight request may apply."""

    def __init__(self) -> None:
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T | None:
        """Await ``factory()``; return its result, or None if superseded."""
        token = self.begin()
        result = await factory()
        if not self.is_current(token):
            logger.debug("Discarding stale result (generation %d, current %d)", token, self._generation)
            return None
        return result


class ChartLoader:
    """Holds the chart currently on screen and refreshes it safely."""

    def __init__(
        self,
        store: AppointmentStoreProtocol,
        *,
        today: Callable[[], date] = date.today,
        gate: LatestRequestGate | None = None,
        all_time_start: date | None = None,
    ) -> None:
        self._store = store
        self._today = today
        self._all_time_start = all_time_start
        self._gate = gate or LatestRequestGate()
        self.doctor_id: str | None = None
        self.granularity: Granularity | None = None
        self.points: list[ChartPoint] = []
        self.summary: ChartSummary = summarize([])

    async def _fetch(self, doctor_id: str, granularity: Granularity) -> list[ChartPoint]:
        try:
            rows = await asyncio.to_thread(self._store.list_weekly, doctor_id=doctor_id)
        except StoreError:
            logger.warning("Chart fetch failed for doctor %s", doctor_id, exc_info=True)
            rows = []
        return bucket(rows, granularity, self._today(), all_time_start=self._all_time_start)

    async def load(self, doctor_id: str, granularity: Granularity) -> bool:
        """Fetch and apply a chart. Returns False when a newer load won."""
        points = await self._gate.run(lambda: self._fetch(doctor_id, granularity))
        if points is None:
            return False
        self.doctor_id = doctor_id
        self.granularity = granularity
        self.points = points
        self.summary = summarize(points)
        return True
