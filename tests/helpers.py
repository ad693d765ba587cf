"""Shared fakes and utilities for unit tests."""

from __future__ import annotations
from tracking import t

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Tuple

import pytz

from bookings.models import Booking, BookingStatus, ParkingSlot, SlotState

# 10:00 in Asia/Kolkata
T0 = datetime(2026, 3, 1, 4, 30, tzinfo=pytz.UTC)

_UNSET = object()


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        t('tests.helpers.DummyLogger.__init__')
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    def exception(self, *args: Any, **kwargs: Any) -> None:
        self._record("exception", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""
        t('tests.helpers.DummyLogger.messages')

        formatted: List[Tuple[str, Any]] = []
        for level, args, _kwargs in self.records:
            message: Any = None
            if args:
                template = args[0]
                if isinstance(template, str) and len(args) > 1:
                    try:
                        message = template % args[1:]
                    except (TypeError, ValueError):
                        message = template
                else:
                    message = template
            formatted.append((level, message))
        return formatted

    def levels(self) -> List[str]:
        return [level for level, _args, _kwargs in self.records]


class FakeClock:
    """Controllable replacement for ``now_utc``."""

    def __init__(self, start: datetime = T0) -> None:
        t('tests.helpers.FakeClock.__init__')
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float = 0, seconds: float = 0) -> datetime:
        t('tests.helpers.FakeClock.advance')
        self.now = self.now + timedelta(minutes=minutes, seconds=seconds)
        return self.now

    def set(self, instant: datetime) -> datetime:
        self.now = instant
        return self.now


def make_slot(
    slot_id: str = "S1",
    *,
    park_id: str = "P1",
    rate: str = "120",
    status: SlotState = SlotState.AVAILABLE,
) -> ParkingSlot:
    t('tests.helpers.make_slot')
    return ParkingSlot(
        slot_id=slot_id,
        park_id=park_id,
        slot_number=slot_id,
        rate_per_hour=Decimal(rate),
        status=status,
    )


def make_booking(
    booking_id: str = "b1",
    *,
    created_at: datetime = T0,
    billing_started_at: Any = _UNSET,
    **overrides: Any,
) -> Booking:
    """Return a reserved booking created at ``created_at`` for slot S1 at 120/h."""

    t('tests.helpers.make_booking')
    fields: Dict[str, Any] = {
        "id": booking_id,
        "slot_id": "S1",
        "park_id": "P1",
        "vehicle_number": "KA01AB1234",
        "status": BookingStatus.RESERVED,
        "created_at": created_at,
        "billing_started_at": created_at if billing_started_at is _UNSET else billing_started_at,
        "start_time": created_at,
        "end_time": created_at + timedelta(hours=24),
        "rate_per_hour": Decimal("120"),
    }
    fields.update(overrides)
    return Booking(**fields)
