"""Domain dataclasses for bookings and billing snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import pytz


class BookingStatus(Enum):
    """Lifecycle states of a booking."""

    RESERVED = "reserved"      # Confirmed, meter running, vehicle not yet detected
    ACTIVE = "active"          # Entry detected, vehicle parked
    COMPLETED = "completed"    # Exit detected
    CANCELLED = "cancelled"    # Driver cancel or auto-expiry

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
LIVE_STATUSES = frozenset({BookingStatus.RESERVED, BookingStatus.ACTIVE})


class CancellationReason(Enum):
    """Why a booking ended in the cancelled state."""

    DRIVER_CANCEL = "driver_cancel"
    AUTO_EXPIRED = "auto_expired"
    HARDWARE_EXIT = "hardware_exit"


class HardwareSignal(Enum):
    """External detection events reported by the parking hardware."""

    ENTRY = "entry"
    EXIT = "exit"


class BillingStatus(Enum):
    """Expiry-relative classification of a live booking."""

    ACTIVE = "active"
    WARNING = "warning"
    EXPIRED = "expired"


@dataclass(frozen=True)
class BillingSnapshot:
    """Cost of a booking evaluated at one instant. Never persisted as-is."""

    billable_minutes: int
    rate_per_minute: Decimal
    cost: int
    evaluated_at: Optional[datetime] = None
    is_final: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "billable_minutes": self.billable_minutes,
            "rate_per_minute": str(self.rate_per_minute),
            "cost": self.cost,
            "evaluated_at": _format_instant(self.evaluated_at),
            "is_final": self.is_final,
        }


@dataclass(frozen=True)
class Booking:
    """A driver's reservation of one parking slot."""

    id: str
    slot_id: str
    vehicle_number: str
    status: BookingStatus
    created_at: datetime
    billing_started_at: Optional[datetime]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    rate_per_hour: Optional[Decimal]
    park_id: Optional[str] = None
    hardware_entry_detected: bool = False
    hardware_exit_detected: bool = False
    entry_detected_at: Optional[datetime] = None
    exit_detected_at: Optional[datetime] = None
    cancellation_reason: Optional[CancellationReason] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    final_billable_minutes: Optional[int] = None
    final_cost: Optional[int] = None
    version: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def finalized_at(self) -> Optional[datetime]:
        """Instant the booking reached its terminal state, if any."""

        return self.cancelled_at or self.completed_at

    def to_record(self) -> Dict[str, Any]:
        """Serialize into the JSON-friendly record kept by persistence."""

        return {
            "id": self.id,
            "slot_id": self.slot_id,
            "park_id": self.park_id,
            "vehicle_number": self.vehicle_number,
            "status": self.status.value,
            "created_at": _format_instant(self.created_at),
            "billing_started_at": _format_instant(self.billing_started_at),
            "start_time": _format_instant(self.start_time),
            "end_time": _format_instant(self.end_time),
            "rate_per_hour": None if self.rate_per_hour is None else str(self.rate_per_hour),
            "hardware_entry_detected": self.hardware_entry_detected,
            "hardware_exit_detected": self.hardware_exit_detected,
            "entry_detected_at": _format_instant(self.entry_detected_at),
            "exit_detected_at": _format_instant(self.exit_detected_at),
            "cancellation_reason": (
                self.cancellation_reason.value if self.cancellation_reason else None
            ),
            "cancelled_at": _format_instant(self.cancelled_at),
            "completed_at": _format_instant(self.completed_at),
            "final_billable_minutes": self.final_billable_minutes,
            "final_cost": self.final_cost,
            "version": self.version,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Booking":
        """Hydrate a booking from a persisted record.

        Parsing is lenient for timestamps so one malformed row cannot break a
        scan; integrity is enforced by the state machine when the value is used.
        Identity and status must be present.
        """

        booking_id = record.get("id")
        if not booking_id:
            raise ValueError("Booking record is missing an id")

        try:
            status = BookingStatus(record.get("status"))
        except ValueError as exc:
            raise ValueError(
                f"Booking record {booking_id} has unknown status {record.get('status')!r}"
            ) from exc

        created_at = parse_instant(record.get("created_at"))
        if created_at is None:
            raise ValueError(f"Booking record {booking_id} is missing created_at")

        reason_raw = record.get("cancellation_reason")
        reason = CancellationReason(reason_raw) if reason_raw else None

        return cls(
            id=str(booking_id),
            slot_id=str(record.get("slot_id") or ""),
            park_id=record.get("park_id"),
            vehicle_number=str(record.get("vehicle_number") or ""),
            status=status,
            created_at=created_at,
            billing_started_at=parse_instant(record.get("billing_started_at")),
            start_time=parse_instant(record.get("start_time")),
            end_time=parse_instant(record.get("end_time")),
            rate_per_hour=_parse_decimal(record.get("rate_per_hour")),
            hardware_entry_detected=_parse_bool(record.get("hardware_entry_detected")),
            hardware_exit_detected=_parse_bool(record.get("hardware_exit_detected")),
            entry_detected_at=parse_instant(record.get("entry_detected_at")),
            exit_detected_at=parse_instant(record.get("exit_detected_at")),
            cancellation_reason=reason,
            cancelled_at=parse_instant(record.get("cancelled_at")),
            completed_at=parse_instant(record.get("completed_at")),
            final_billable_minutes=_parse_int(record.get("final_billable_minutes")),
            final_cost=_parse_int(record.get("final_cost")),
            version=_parse_int(record.get("version")) or 1,
            metadata=dict(record.get("metadata") or {}),
        )


def parse_instant(value: Any) -> Optional[datetime]:
    """Return an aware UTC datetime for ``value`` or ``None`` if unusable."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)


def _format_instant(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _parse_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
