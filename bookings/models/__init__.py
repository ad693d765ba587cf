"""Domain model definitions for the booking engine."""

from .booking import (
    LIVE_STATUSES,
    TERMINAL_STATUSES,
    BillingSnapshot,
    BillingStatus,
    Booking,
    BookingStatus,
    CancellationReason,
    HardwareSignal,
    parse_instant,
)
from .slot import ParkingSlot, SlotState, SlotStatus

__all__ = [
    "LIVE_STATUSES",
    "TERMINAL_STATUSES",
    "BillingSnapshot",
    "BillingStatus",
    "Booking",
    "BookingStatus",
    "CancellationReason",
    "HardwareSignal",
    "ParkingSlot",
    "SlotState",
    "SlotStatus",
    "parse_instant",
]
