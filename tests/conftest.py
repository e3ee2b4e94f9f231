"""
Shared test fixtures.

Provides:
  • `clock` – a fixed clock every service of a test registry reads
  • `engine` – an in-memory EngineRegistry loaded with the mock catalog
  • `client` – a FastAPI TestClient wired to a fresh registry, acting as
    MOCK_PLAYER unless `act_as` switches user

The `client` fixture runs the full lifespan (registry start / stop) so
the scanner task is started and cancelled the way it is in production.
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from courtbook.dependencies import get_current_user
from courtbook.main import app
from courtbook.models import UserInfo
from courtbook.services.registry import EngineRegistry
from tests.mocks.models import MOCK_CLUBS, MOCK_COURTS, MOCK_PLAYER, FixedClock


# ── Helpers ────────────────────────────────────────────────────────────────


async def load_catalog(registry: EngineRegistry) -> EngineRegistry:
    for club in MOCK_CLUBS:
        await registry.clubs.upsert(club)
    for court in MOCK_COURTS:
        await registry.courts.upsert(court)
    return registry


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
async def engine(clock) -> EngineRegistry:
    """In-memory registry with the mock clubs and courts, scanner not started."""
    return await load_catalog(EngineRegistry("memory", clock=clock, seed=False))


@pytest.fixture()
def _test_env(monkeypatch, clock):
    """
    Internal fixture that swaps the registry singleton for a fresh
    in-memory one so that the app lifespan runs against mock data.
    """
    test_registry = EngineRegistry("memory", clock=clock, seed=False)
    asyncio.run(load_catalog(test_registry))

    # Patch everywhere `registry` was imported
    for mod_path in (
        "courtbook.services.registry",
        "courtbook.main",
        "courtbook.routers.health",
        "courtbook.routers.clubs",
        "courtbook.routers.bookings",
        "courtbook.routers.admin",
        "courtbook.routers.forum",
        "courtbook.routers.notifications",
    ):
        monkeypatch.setattr(f"{mod_path}.registry", test_registry)

    # ── Disable rate limiting in tests ────────────────────────────────
    from courtbook.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)

    return test_registry


@pytest.fixture()
def mock_registry(_test_env) -> EngineRegistry:
    """Public alias for API tests that inspect the registry behind the app."""
    return _test_env


@pytest.fixture()
def act_as():
    """Switch the user the `client` acts as: ``act_as(MOCK_ADMIN)``."""

    def _act_as(user: UserInfo) -> None:
        async def _current_user():
            return user

        app.dependency_overrides[get_current_user] = _current_user

    return _act_as


@pytest.fixture()
def client(_test_env: EngineRegistry, act_as) -> TestClient:
    """
    FastAPI TestClient with a fresh registry and auth bypassed.

    Uses a context manager so the lifespan runs (registry start/stop).
    """
    act_as(MOCK_PLAYER)

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()


@pytest.fixture()
def unauthed_client(_test_env: EngineRegistry) -> TestClient:
    """
    TestClient without auth overrides: requests are rejected unless
    a session cookie is provided.
    """
    app.dependency_overrides.clear()

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()
