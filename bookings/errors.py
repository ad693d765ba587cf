"""Error taxonomy for the booking lifecycle engine."""

from __future__ import annotations
from tracking import t

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from bookings.models import Booking


class BookingError(RuntimeError):
    """Base error for booking lifecycle failures."""


class ValidationError(BookingError):
    """Raised for malformed caller input (bad time format, missing field)."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        t('bookings.errors.ValidationError.__init__')
        super().__init__(message)
        self.field = field


class SlotUnavailable(BookingError):
    """Raised when the requested slot cannot be claimed."""

    def __init__(self, slot_id: str, reason: str = "slot is not available") -> None:
        t('bookings.errors.SlotUnavailable.__init__')
        super().__init__(f"Slot {slot_id}: {reason}")
        self.slot_id = slot_id
        self.reason = reason


class NotFound(BookingError):
    """Raised when a referenced booking does not exist."""

    def __init__(self, booking_id: str) -> None:
        t('bookings.errors.NotFound.__init__')
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class AlreadyTerminal(BookingError):
    """Raised internally when a transition targets a completed/cancelled booking.

    Callers treat it as success: the desired end state is already reached.
    """

    def __init__(self, booking: "Booking") -> None:
        t('bookings.errors.AlreadyTerminal.__init__')
        super().__init__(
            f"Booking {booking.id} is already {booking.status.value}"
        )
        self.booking = booking


class TransitionRejected(BookingError):
    """Raised when a transition guard no longer holds for the current state."""


class PersistenceConflict(BookingError):
    """Raised when a compare-and-set write keeps losing to concurrent writers."""

    def __init__(self, booking_id: str, attempts: int) -> None:
        t('bookings.errors.PersistenceConflict.__init__')
        super().__init__(
            f"Concurrent update on booking {booking_id} after {attempts} attempts; retry later"
        )
        self.booking_id = booking_id
        self.attempts = attempts


class PersistenceUnavailable(BookingError):
    """Raised when the underlying storage cannot be reached."""


class DataIntegrityError(BookingError):
    """Raised when a persisted booking is malformed (e.g. no billing start)."""

    def __init__(self, booking_id: str, problem: str) -> None:
        t('bookings.errors.DataIntegrityError.__init__')
        super().__init__(f"Booking {booking_id}: {problem}")
        self.booking_id = booking_id
        self.problem = problem


__all__ = [
    "BookingError",
    "ValidationError",
    "SlotUnavailable",
    "NotFound",
    "AlreadyTerminal",
    "TransitionRejected",
    "PersistenceConflict",
    "PersistenceUnavailable",
    "DataIntegrityError",
]
