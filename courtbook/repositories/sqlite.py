"""
SQLite-backed repositories (see ``courtbook.db`` for the connection).

Overlap checks, status compare-and-set and forum mutations each run
inside one ``BEGIN IMMEDIATE`` transaction, so the read they depend on
and the write that follows are atomic. Storage failures surface as
RepositoryError.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Collection
from datetime import date
from zoneinfo import ZoneInfo

import aiosqlite

from courtbook import db
from courtbook.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    RepositoryError,
)
from courtbook.models import Booking, BookingStatus, Club, Court, SlotPrice
from courtbook.repositories.base import ForumMutation, day_bounds

logger = logging.getLogger(__name__)


def _storage_errors(func):
    """Translate driver errors into RepositoryError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except aiosqlite.Error as exc:
            logger.warning("SQLite call %s failed: %s", func.__qualname__, exc)
            raise RepositoryError(f"Storage failure in {func.__name__}: {exc}") from exc

    return wrapper


# ── Row mapping ───────────────────────────────────────────────────────────


def _row_to_club(row: aiosqlite.Row) -> Club:
    return Club(
        id=row["id"],
        name=row["name"],
        sports=db.from_json(row["sports"]),
        timezone=row["timezone"],
    )


def _row_to_court(row: aiosqlite.Row) -> Court:
    return Court(
        id=row["id"],
        club_id=row["club_id"],
        name=row["name"],
        sport=row["sport"],
        features=db.from_json(row["features"]),
        opening_time=row["opening_time"],
        closing_time=row["closing_time"],
        default_price=row["default_price"],
        slot_prices=[SlotPrice(**p) for p in db.from_json(row["slot_prices"])],
    )


def _row_to_booking(row: aiosqlite.Row) -> Booking:
    return Booking(
        id=row["id"],
        user_id=row["user_id"],
        court_id=row["court_id"],
        club_id=row["club_id"],
        start_time=db.from_iso(row["start_time"]),
        end_time=db.from_iso(row["end_time"]),
        total_price=row["total_price"],
        status=BookingStatus(row["status"]),
        created_at=db.from_iso(row["created_at"]),
        players_needed=row["players_needed"],
        skill_level=row["skill_level"],
        joined_player_ids=db.from_json(row["joined_player_ids"]),
        pending_player_ids=db.from_json(row["pending_player_ids"]),
    )


async def _fetch_all(conn: aiosqlite.Connection, sql: str, params: tuple = ()) -> list[aiosqlite.Row]:
    async with conn.execute(sql, params) as cur:
        return list(await cur.fetchall())


async def _fetch_one(conn: aiosqlite.Connection, sql: str, params: tuple = ()) -> aiosqlite.Row | None:
    async with conn.execute(sql, params) as cur:
        return await cur.fetchone()


# ══════════════════════════════════════════════════════════════════════════
#                    CLUB REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


class SqliteClubRepo:
    @_storage_errors
    async def get(self, club_id: str) -> Club | None:
        row = await _fetch_one(db.get_db(), "SELECT * FROM clubs WHERE id = ?", (club_id,))
        return _row_to_club(row) if row else None

    @_storage_errors
    async def list_by_ids(self, club_ids: Collection[str]) -> list[Club]:
        ids = list(club_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = await _fetch_all(
            db.get_db(), f"SELECT * FROM clubs WHERE id IN ({placeholders}) ORDER BY name", tuple(ids)
        )
        return [_row_to_club(r) for r in rows]

    @_storage_errors
    async def list_all(self) -> list[Club]:
        rows = await _fetch_all(db.get_db(), "SELECT * FROM clubs ORDER BY name")
        return [_row_to_club(r) for r in rows]

    @_storage_errors
    async def upsert(self, club: Club) -> Club:
        async with db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO clubs (id, name, sports, timezone) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name, sports = excluded.sports, timezone = excluded.timezone
                """,
                (club.id, club.name, db.to_json(club.sports), club.timezone),
            )
        return club.model_copy(deep=True)

    @_storage_errors
    async def add_sport(self, club_id: str, sport: str) -> Club:
        async with db.transaction() as conn:
            row = await _fetch_one(conn, "SELECT * FROM clubs WHERE id = ?", (club_id,))
            if row is None:
                raise NotFoundError(f"Club {club_id} not found")
            club = _row_to_club(row)
            if sport not in club.sports:
                club.sports.append(sport)
                await conn.execute(
                    "UPDATE clubs SET sports = ? WHERE id = ?", (db.to_json(club.sports), club_id)
                )
        return club

    @_storage_errors
    async def delete(self, club_id: str) -> bool:
        async with db.transaction() as conn:
            cur = await conn.execute("DELETE FROM clubs WHERE id = ?", (club_id,))
            return cur.rowcount > 0


# ══════════════════════════════════════════════════════════════════════════
#                    COURT REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


class SqliteCourtRepo:
    @_storage_errors
    async def list_by_club(self, club_id: str) -> list[Court]:
        rows = await _fetch_all(
            db.get_db(), "SELECT * FROM courts WHERE club_id = ? ORDER BY name", (club_id,)
        )
        return [_row_to_court(r) for r in rows]

    @_storage_errors
    async def get(self, court_id: str) -> Court | None:
        row = await _fetch_one(db.get_db(), "SELECT * FROM courts WHERE id = ?", (court_id,))
        return _row_to_court(row) if row else None

    @_storage_errors
    async def upsert(self, court: Court) -> Court:
        async with db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO courts (
                    id, club_id, name, sport, features,
                    opening_time, closing_time, default_price, slot_prices
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    club_id = excluded.club_id, name = excluded.name,
                    sport = excluded.sport, features = excluded.features,
                    opening_time = excluded.opening_time, closing_time = excluded.closing_time,
                    default_price = excluded.default_price, slot_prices = excluded.slot_prices
                """,
                (
                    court.id, court.club_id, court.name, court.sport,
                    db.to_json(court.features),
                    court.opening_time, court.closing_time,
                    court.default_price,
                    db.to_json([p.model_dump() for p in court.slot_prices]),
                ),
            )
        return court.model_copy(deep=True)

    @_storage_errors
    async def delete(self, court_id: str) -> bool:
        async with db.transaction() as conn:
            cur = await conn.execute("DELETE FROM courts WHERE id = ?", (court_id,))
            return cur.rowcount > 0


# ══════════════════════════════════════════════════════════════════════════
#                    BOOKING REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


class SqliteBookingRepo:
    @_storage_errors
    async def list_by_court_and_date(
        self, court_id: str, day: date, zone: ZoneInfo
    ) -> list[Booking]:
        start, end = day_bounds(day, zone)
        rows = await _fetch_all(
            db.get_db(),
            """
            SELECT * FROM bookings
            WHERE court_id = ? AND start_time >= ? AND start_time < ?
            ORDER BY start_time
            """,
            (court_id, db.iso(start), db.iso(end)),
        )
        return [_row_to_booking(r) for r in rows]

    @_storage_errors
    async def list_by_court(self, court_id: str) -> list[Booking]:
        rows = await _fetch_all(
            db.get_db(), "SELECT * FROM bookings WHERE court_id = ? ORDER BY start_time", (court_id,)
        )
        return [_row_to_booking(r) for r in rows]

    @_storage_errors
    async def list_by_club(self, club_id: str) -> list[Booking]:
        rows = await _fetch_all(
            db.get_db(), "SELECT * FROM bookings WHERE club_id = ? ORDER BY start_time", (club_id,)
        )
        return [_row_to_booking(r) for r in rows]

    @_storage_errors
    async def list_by_user(self, user_id: str) -> list[Booking]:
        rows = await _fetch_all(
            db.get_db(), "SELECT * FROM bookings WHERE user_id = ? ORDER BY start_time", (user_id,)
        )
        return [_row_to_booking(r) for r in rows]

    @_storage_errors
    async def get(self, booking_id: str) -> Booking | None:
        row = await _fetch_one(db.get_db(), "SELECT * FROM bookings WHERE id = ?", (booking_id,))
        return _row_to_booking(row) if row else None

    @_storage_errors
    async def insert_if_no_overlap(self, booking: Booking) -> Booking:
        async with db.transaction() as conn:
            clash = await _fetch_one(
                conn,
                """
                SELECT id FROM bookings
                WHERE court_id = ? AND status != ?
                  AND start_time < ? AND end_time > ?
                LIMIT 1
                """,
                (
                    booking.court_id,
                    BookingStatus.CANCELLED.value,
                    db.iso(booking.end_time),
                    db.iso(booking.start_time),
                ),
            )
            if clash is not None:
                raise ConflictError(
                    "Court is already booked for part of the selected time",
                    details={"conflicting_booking_id": clash["id"]},
                )
            await conn.execute(
                """
                INSERT INTO bookings (
                    id, user_id, court_id, club_id, start_time, end_time,
                    total_price, status, created_at,
                    players_needed, skill_level, joined_player_ids, pending_player_ids
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    booking.id, booking.user_id, booking.court_id, booking.club_id,
                    db.iso(booking.start_time), db.iso(booking.end_time),
                    booking.total_price, booking.status.value, db.iso(booking.created_at),
                    booking.players_needed, booking.skill_level,
                    db.to_json(booking.joined_player_ids),
                    db.to_json(booking.pending_player_ids),
                ),
            )
        return booking.model_copy(deep=True)

    @_storage_errors
    async def update_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        *,
        expected: Collection[BookingStatus] | None = None,
    ) -> Booking:
        async with db.transaction() as conn:
            row = await _fetch_one(conn, "SELECT * FROM bookings WHERE id = ?", (booking_id,))
            if row is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            booking = _row_to_booking(row)
            if expected is not None and booking.status not in expected:
                raise InvalidStateError(
                    f"Booking {booking_id} is {booking.status.value}",
                    details={"status": booking.status.value},
                )
            await conn.execute(
                "UPDATE bookings SET status = ? WHERE id = ?",
                (new_status.value, booking_id),
            )
        return booking.model_copy(update={"status": new_status})

    @_storage_errors
    async def update_forum_fields(self, booking_id: str, mutation: ForumMutation) -> Booking:
        async with db.transaction() as conn:
            row = await _fetch_one(conn, "SELECT * FROM bookings WHERE id = ?", (booking_id,))
            if row is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            result = mutation(_row_to_booking(row))
            await conn.execute(
                """
                UPDATE bookings SET
                    players_needed = ?, skill_level = ?,
                    joined_player_ids = ?, pending_player_ids = ?
                WHERE id = ?
                """,
                (
                    result.players_needed, result.skill_level,
                    db.to_json(result.joined_player_ids),
                    db.to_json(result.pending_player_ids),
                    booking_id,
                ),
            )
            stored = _row_to_booking(row)
        return stored.model_copy(
            update={
                "players_needed": result.players_needed,
                "skill_level": result.skill_level,
                "joined_player_ids": list(result.joined_player_ids),
                "pending_player_ids": list(result.pending_player_ids),
            }
        )
