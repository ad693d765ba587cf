"""Booking persistence backed by JSON files."""

from .repository import RecordRepository
from .store import BookingStore

__all__ = ["BookingStore", "RecordRepository"]
