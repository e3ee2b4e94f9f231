"""Notification deduplication to prevent duplicate alerts."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable
from datetime import datetime
from typing import Any

from courtbook.services.time_grid import utcnow


class SentKeys:
    """
    Remembers which notification keys were already emitted.

    Lives as long as the scanner that owns it, so the memory resets on
    restart. Bounded by *capacity*: once full, the oldest keys are
    forgotten first.
    """

    def __init__(self, capacity: int) -> None:
        self._capacity = max(1, capacity)
        self._keys: OrderedDict[Hashable, datetime] = OrderedDict()
        self._evicted = 0

    def __contains__(self, key: Hashable) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def add(self, key: Hashable) -> bool:
        """Record *key*. Returns False if it was already recorded."""
        if key in self._keys:
            return False
        self._keys[key] = utcnow()
        while len(self._keys) > self._capacity:
            self._keys.popitem(last=False)
            self._evicted += 1
        return True

    def clear(self) -> None:
        self._keys.clear()

    def get_stats(self) -> dict[str, Any]:
        return {
            "unique_keys": len(self._keys),
            "capacity": self._capacity,
            "evicted": self._evicted,
            "oldest": next(iter(self._keys.values()), None),
            "newest": next(reversed(self._keys.values()), None),
        }
