"""
Error taxonomy shared by every engine component.

Each error carries a machine-checkable ``kind``, a human-readable message
and whether the caller may retry after re-reading state. The HTTP layer
maps them onto status codes in one place (see ``courtbook.main``).
"""

from __future__ import annotations

from typing import Any


class BookingEngineError(Exception):
    """Base class for all engine failures."""

    kind: str = "error"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind!r}, message={self.message!r})"


class ValidationError(BookingEngineError):
    """Malformed input, rejected before the repository is touched."""

    kind = "validation"
    status_code = 400


class ConflictError(BookingEngineError):
    """Overlap or capacity clash found at write time. Re-query and retry."""

    kind = "conflict"
    status_code = 409
    retryable = True


class NotFoundError(BookingEngineError):
    kind = "not_found"
    status_code = 404


class InvalidStateError(BookingEngineError):
    """The entity exists but is not in a state that allows the operation."""

    kind = "invalid_state"
    status_code = 409


class PermissionDeniedError(BookingEngineError):
    """The acting user may not perform this operation on the entity."""

    kind = "forbidden"
    status_code = 403


class RepositoryError(BookingEngineError):
    """Storage timed out or failed transiently."""

    kind = "repository"
    status_code = 503
    retryable = True
