"""Error taxonomy surfaced to the request-handling layer.

The core never produces HTTP responses itself; callers map ``status_code``
to a 4xx response. Store driver errors are not wrapped and propagate as-is.
"""
from __future__ import annotations


class KonnectError(Exception):
    """Base class for failures the caller is expected to translate."""

    kind: str = "error"
    status_code: int = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_payload(self) -> dict:
        return {"success": False, "message": self.message}


class NotFound(KonnectError):
    """Referenced entry (or referral id) does not exist."""

    kind = "not_found"
    status_code = 404


class InvalidArgument(KonnectError):
    """Malformed token or empty identifier."""

    kind = "invalid_argument"
    status_code = 400


class Conflict(KonnectError):
    """Record already exists (e.g. a referral counted twice)."""

    kind = "conflict"
    status_code = 409


__all__ = ["KonnectError", "NotFound", "InvalidArgument", "Conflict"]
