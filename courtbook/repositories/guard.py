"""
Bounded repository calls.

No engine operation may wait on storage forever: every call is wrapped
in ``asyncio.wait_for``. Reads are retried a few times because they are
side-effect free; writes fail straight away so the caller decides.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from courtbook import config
from courtbook.errors import RepositoryError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def read(call: Callable[[], Awaitable[T]], *, what: str) -> T:
    """Run a read with a timeout, retrying on timeout or storage failure."""
    attempts = 1 + max(0, config.REPOSITORY_READ_RETRIES)
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(call(), timeout=config.REPOSITORY_TIMEOUT)
        except asyncio.TimeoutError:
            error = RepositoryError(f"{what} timed out after {config.REPOSITORY_TIMEOUT}s")
        except RepositoryError as exc:
            error = exc
        if attempt < attempts:
            logger.warning("%s failed (attempt %d/%d): %s", what, attempt, attempts, error.message)
    raise error


async def write(call: Callable[[], Awaitable[T]], *, what: str) -> T:
    """Run a write with a timeout. Never retried."""
    try:
        return await asyncio.wait_for(call(), timeout=config.REPOSITORY_TIMEOUT)
    except asyncio.TimeoutError:
        raise RepositoryError(
            f"{what} timed out after {config.REPOSITORY_TIMEOUT}s"
        ) from None
