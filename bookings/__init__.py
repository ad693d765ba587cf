"""Booking lifecycle and billing engine."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .inventory import InMemorySlotInventory
    from .persistence import BookingStore
    from .scheduler import ReclamationScheduler
    from .services import BookingLifecycleService, BookingReportService

__all__ = [
    "BookingLifecycleService",
    "BookingReportService",
    "BookingStore",
    "InMemorySlotInventory",
    "ReclamationScheduler",
]

_LAZY_EXPORTS = {
    "BookingLifecycleService": "bookings.services",
    "BookingReportService": "bookings.services",
    "BookingStore": "bookings.persistence",
    "InMemorySlotInventory": "bookings.inventory",
    "ReclamationScheduler": "bookings.scheduler",
}


def __getattr__(name: str):
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(name)
    return getattr(import_module(module_name), name)
