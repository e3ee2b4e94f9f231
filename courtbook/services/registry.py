"""
Engine registry – holds the repositories and services of the running app.

Provides a single place for routers to reach the engine. Initialized
once at application startup; tests build their own instance with an
in-memory backend and a fixed clock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from courtbook import config, db
from courtbook.errors import ValidationError
from courtbook.repositories.base import BookingRepo, ClubRepo, CourtRepo
from courtbook.repositories.memory import (
    InMemoryBookingRepo,
    InMemoryClubRepo,
    InMemoryCourtRepo,
)
from courtbook.repositories.sqlite import (
    SqliteBookingRepo,
    SqliteClubRepo,
    SqliteCourtRepo,
)
from courtbook.seed import seed_demo_data
from courtbook.services import time_grid
from courtbook.services.availability import AvailabilityCalculator
from courtbook.services.booking import BookingEngine
from courtbook.services.cancellation import CancellationPolicy
from courtbook.services.catalog import CatalogService
from courtbook.services.forum import ForumMatchEngine
from courtbook.services.inbox import NotificationInbox
from courtbook.services.notifier import NotificationScanner

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "sqlite")


class EngineRegistry:
    """
    Wires one storage backend to every engine service.

    ``backend`` is "memory" or "sqlite"; the sqlite connection is only
    opened in :meth:`start`.
    """

    def __init__(
        self,
        backend: str = config.STORAGE_BACKEND,
        *,
        clock: Callable[[], datetime] = time_grid.utcnow,
        seed: bool = config.SEED_DEMO_DATA,
        db_path: str | None = None,
    ) -> None:
        if backend not in BACKENDS:
            raise ValidationError(f"Unknown storage backend {backend!r}")
        self.backend = backend
        self.clock = clock
        self._seed = seed
        self._db_path = db_path

        self.clubs: ClubRepo
        self.courts: CourtRepo
        self.bookings: BookingRepo
        if backend == "sqlite":
            self.clubs, self.courts, self.bookings = (
                SqliteClubRepo(), SqliteCourtRepo(), SqliteBookingRepo()
            )
        else:
            self.clubs, self.courts, self.bookings = (
                InMemoryClubRepo(), InMemoryCourtRepo(), InMemoryBookingRepo()
            )

        repos = (self.clubs, self.courts, self.bookings)
        self.availability = AvailabilityCalculator(*repos, clock=clock)
        self.booking_engine = BookingEngine(*repos, clock=clock)
        self.cancellations = CancellationPolicy(self.bookings, clock=clock)
        self.forum = ForumMatchEngine(*repos, clock=clock)
        self.catalog = CatalogService(*repos, clock=clock)
        self.inbox = NotificationInbox()
        self.scanner = NotificationScanner(*repos, self.inbox, clock=clock)

    async def start(self) -> None:
        """Open storage, load demo data if asked, start the scanner."""
        if self.backend == "sqlite":
            await db.init_db(self._db_path)
        if self._seed:
            await seed_demo_data(self.clubs, self.courts)
        await self.scanner.start()
        logger.info("Engine started with %s storage", self.backend)

    async def stop(self) -> None:
        await self.scanner.stop()
        if self.backend == "sqlite":
            await db.close_db()
        logger.info("Engine stopped")


# ── Singleton instance ────────────────────────────────────────────────────
registry = EngineRegistry()
