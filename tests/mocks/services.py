"""
Repository doubles for failure-path tests.

Wrap a real repository and misbehave on demand, without touching the
services that call them.
"""

from __future__ import annotations

import asyncio

from courtbook.errors import RepositoryError


class FlakyRepo:
    """
    Delegates to *inner* but fails the first *failures* calls of the
    named methods, either by raising RepositoryError or by hanging.
    """

    def __init__(self, inner, *, methods: set[str], failures: int = 1, hang: bool = False) -> None:
        self._inner = inner
        self._methods = methods
        self._remaining = failures
        self._hang = hang
        self.calls = 0

    def __getattr__(self, name):
        target = getattr(self._inner, name)
        if name not in self._methods:
            return target

        async def wrapper(*args, **kwargs):
            self.calls += 1
            if self._remaining > 0:
                self._remaining -= 1
                if self._hang:
                    await asyncio.sleep(3600)
                raise RepositoryError(f"{name} unavailable")
            return await target(*args, **kwargs)

        return wrapper
