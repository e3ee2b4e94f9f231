"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Paths ─────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# ── Storage ───────────────────────────────────────────────────────────────

# "memory" keeps everything in process; "sqlite" persists to DB_PATH.
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory").lower()

# SQLite database file
DB_PATH: str = os.getenv("DB_PATH", str(DATA_DIR / "court_booking.db"))

# Load the demo clubs and courts on startup when the store is empty.
SEED_DEMO_DATA: bool = os.getenv("SEED_DEMO_DATA", "true").lower() == "true"

# Seconds before a single repository call is abandoned.
REPOSITORY_TIMEOUT: float = float(os.getenv("REPOSITORY_TIMEOUT", "5"))

# Extra attempts for read calls that time out or fail transiently.
REPOSITORY_READ_RETRIES: int = int(os.getenv("REPOSITORY_READ_RETRIES", "2"))

# ── Booking rules ─────────────────────────────────────────────────────────

# Calendar days are evaluated in the club's timezone; this one is used
# for clubs that don't declare their own.
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "Europe/Madrid")

SLOT_STEP_MINUTES: int = int(os.getenv("SLOT_STEP_MINUTES", "30"))

# Cancellations further ahead than this are applied immediately,
# anything closer needs an admin decision.
CANCELLATION_NOTICE_HOURS: float = float(os.getenv("CANCELLATION_NOTICE_HOURS", "24"))

# ── JWT ───────────────────────────────────────────────────────────────────

JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me-in-production")
JWT_ALGORITHM: str = "HS256"
JWT_EXPIRY_DAYS: int = int(os.getenv("JWT_EXPIRY_DAYS", "7"))

# ── Notifier ──────────────────────────────────────────────────────────────

# How often the scanner looks for reminder / join / cancellation events (seconds).
NOTIFIER_INTERVAL: float = float(os.getenv("NOTIFIER_INTERVAL", "60"))

# Upcoming-booking reminders fire for bookings starting in [start, end) hours.
REMINDER_WINDOW_START_HOURS: float = float(os.getenv("REMINDER_WINDOW_START_HOURS", "23"))
REMINDER_WINDOW_END_HOURS: float = float(os.getenv("REMINDER_WINDOW_END_HOURS", "25"))

# Upper bound on remembered "already notified" keys, per notification kind.
NOTIFIER_DEDUP_CAPACITY: int = int(os.getenv("NOTIFIER_DEDUP_CAPACITY", "10000"))

# Undelivered notifications kept per recipient; oldest are dropped first.
NOTIFICATION_INBOX_SIZE: int = int(os.getenv("NOTIFICATION_INBOX_SIZE", "100"))
