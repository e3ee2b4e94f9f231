"""Pydantic models for the court booking engine and its API."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

# "HH:MM", 24-hour clock, always two-digit hours.
TIME_OF_DAY_PATTERN = r"^([01][0-9]|2[0-3]):[0-5][0-9]$"


class UserRole(str, Enum):
    PLAYER = "PLAYER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    PENDING_CANCELLATION = "PENDING_CANCELLATION"
    CANCELLED = "CANCELLED"


# Statuses that still hold their court time.
ACTIVE_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.PENDING_CANCELLATION})


class UserInfo(BaseModel):
    """The acting user, as resolved from the session token."""
    id: str = Field(..., description="Unique user identifier")
    role: UserRole = Field(default=UserRole.PLAYER, description="User role")
    club_ids: list[str] = Field(default_factory=list, description="Clubs managed by an admin")

    def manages_club(self, club_id: str) -> bool:
        if self.role == UserRole.SUPER_ADMIN:
            return True
        return self.role == UserRole.ADMIN and club_id in self.club_ids


class Club(BaseModel):
    """Sports club information."""
    id: str = Field(..., description="Unique club identifier")
    name: str = Field(..., description="Club name")
    sports: list[str] = Field(default_factory=list, description="Sports offered by the club's courts")
    timezone: str | None = Field(None, description="IANA timezone of the club's calendar day")


class SlotPrice(BaseModel):
    """Price override for a single slot start time."""
    time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="Slot start time (HH:MM)")
    price: float = Field(..., ge=0, description="Price for this slot")


class Court(BaseModel):
    """Bookable court with operating hours and per-slot pricing."""
    id: str = Field(..., description="Unique court identifier")
    club_id: str = Field(..., description="Owning club identifier")
    name: str = Field(..., description="Court name")
    sport: str = Field(..., description="Sport played on the court")
    features: list[str] = Field(default_factory=list, description="Feature tags (surface, lighting...)")
    opening_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="Opening time (HH:MM)")
    closing_time: str = Field(..., pattern=TIME_OF_DAY_PATTERN, description="Closing time (HH:MM)")
    default_price: float = Field(..., ge=0, description="Price per slot when no override applies")
    slot_prices: list[SlotPrice] = Field(default_factory=list, description="Per-slot price overrides")


class Booking(BaseModel):
    """A reservation of one court over a run of contiguous slots."""
    id: str = Field(..., description="Unique booking identifier")
    user_id: str = Field(..., description="Owner of the booking")
    court_id: str = Field(..., description="Booked court")
    club_id: str = Field(..., description="Club of the booked court")
    start_time: datetime = Field(..., description="Start instant (UTC)")
    end_time: datetime = Field(..., description="End instant (UTC, exclusive)")
    total_price: float = Field(..., description="Sum of slot prices at booking time")
    status: BookingStatus = Field(default=BookingStatus.CONFIRMED, description="Booking status")
    created_at: datetime | None = Field(None, description="Creation timestamp")

    # Forum fields
    players_needed: int | None = Field(None, ge=1, description="Extra players wanted")
    skill_level: int | None = Field(None, ge=1, le=5, description="Expected skill level (1-5)")
    joined_player_ids: list[str] = Field(default_factory=list, description="Accepted players")
    pending_player_ids: list[str] = Field(default_factory=list, description="Players awaiting approval")

    @property
    def is_published(self) -> bool:
        return self.players_needed is not None

    @property
    def open_slots(self) -> int:
        if self.players_needed is None:
            return 0
        return max(0, self.players_needed - len(self.joined_player_ids))

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Strict overlap: touching endpoints do not count."""
        return self.start_time < end and start < self.end_time


class TimeSlot(BaseModel):
    """One bookable half-hour of a court on a given day."""
    time: str = Field(..., description="Slot start time (HH:MM)")
    available: bool = Field(..., description="Whether the slot can be booked")
    price: float = Field(..., description="Price for the slot")


class CourtAvailability(BaseModel):
    """Availability grid of one court for one day."""
    court: Court = Field(..., description="Court")
    slots: list[TimeSlot] = Field(..., description="Ordered time slots")


class ClubAvailability(BaseModel):
    """Availability of every matching court of one club."""
    club: Club = Field(..., description="Club")
    courts: list[CourtAvailability] = Field(..., description="Per-court availability")


class BookingView(Booking):
    """Booking joined with the names a UI needs to display it."""
    court_name: str = Field(..., description="Court name")
    sport: str = Field(..., description="Court sport")
    club_name: str = Field(..., description="Club name")


class ForumGame(BookingView):
    """A published booking as listed on the forum."""
    open_slots_count: int = Field(..., description="Players still needed")


class CancellationResult(BaseModel):
    status: BookingStatus = Field(..., description="Status after the request")
    message: str = Field(..., description="Message for the user")


class NotificationKind(str, Enum):
    UPCOMING_REMINDER = "upcoming_reminder"
    JOIN_REQUEST = "join_request"
    PENDING_CANCELLATION = "pending_cancellation"


class Notification(BaseModel):
    """Advisory notification produced by the scanner."""
    id: str = Field(..., description="Unique notification identifier")
    kind: NotificationKind = Field(..., description="What happened")
    recipient: str = Field(..., description="Recipient key (user:<id> or club:<id>)")
    booking_id: str = Field(..., description="Booking the notification is about")
    requester_id: str | None = Field(None, description="Player asking to join, for join requests")
    message: str = Field(..., description="Human-readable text")
    created_at: datetime = Field(..., description="When the notification was produced")


# ── Request bodies ────────────────────────────────────────────────────────


class BookingCreate(BaseModel):
    """Request to book contiguous slots of one court."""
    court_id: str = Field(..., description="Court to book")
    day: date = Field(..., description="Calendar day in the club's timezone")
    slots: list[str] = Field(..., min_length=1, description="Selected slot start times (HH:MM)")


class ForumPublishRequest(BaseModel):
    players_needed: int = Field(..., ge=1, le=10, description="Extra players wanted")
    skill_level: int = Field(..., ge=1, le=5, description="Expected skill level (1-5)")


# ── Generic responses ─────────────────────────────────────────────────────


class Error(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict[str, Any] | None = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Health status")
    version: str = Field(..., description="Application version")
    storage: str = Field(..., description="Active repository backend")
    timestamp: datetime = Field(..., description="Current timestamp")
