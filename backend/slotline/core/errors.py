"""
Centralized error handling for slot, claim and lineup operations.

Services raise the exceptions below; routes stay thin and map them to HTTP with
slotline_error_to_http. New error types are added here, not scattered in routes.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Exception taxonomy
# ---------------------------------------------------------------------------


class SlotlineError(Exception):
    """Base class for every error the slot core raises on purpose."""

    def __init__(self, message: str = "", **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(SlotlineError):
    """Malformed input; rejected before any mutation."""


class NotFound(SlotlineError):
    """Referenced event, timeslot or claim does not exist."""


class PermissionDenied(SlotlineError):
    """Caller lacks the occupant or host/admin capability for this action."""


class SlotUnavailable(SlotlineError):
    """Direct claim on an occupied timeslot; caller may join the waitlist instead."""


class InvalidTransition(SlotlineError):
    """Claim status does not permit the requested change (includes accepting an expired offer)."""


# ---------------------------------------------------------------------------
# HTTP mapping: (exception class, status_code). First match wins.
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_INTERNAL_ERROR = 500

SLOTLINE_ERROR_RULES: list[tuple[type[SlotlineError], int]] = [
    (ValidationError, STATUS_BAD_REQUEST),
    (PermissionDenied, STATUS_FORBIDDEN),
    (NotFound, STATUS_NOT_FOUND),
    (SlotUnavailable, STATUS_CONFLICT),
    (InvalidTransition, STATUS_CONFLICT),
]


def slotline_error_to_http(exc: SlotlineError) -> HTTPException:
    """
    Map a SlotlineError into an HTTPException.
    Detail carries the error kind so clients can tell "slot taken" (join the waitlist)
    from "offer expired".
    """
    for error_cls, status_code in SLOTLINE_ERROR_RULES:
        if isinstance(exc, error_cls):
            return HTTPException(
                status_code=status_code,
                detail={"error": type(exc).__name__, "message": exc.message, **exc.details},
            )
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
