"""Slot records exchanged with the slot inventory."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping

from infrastructure.constants import SLOT_AVAILABLE, SLOT_OCCUPIED


class SlotState(Enum):
    """Availability states reported by the slot inventory."""

    AVAILABLE = SLOT_AVAILABLE
    OCCUPIED = SLOT_OCCUPIED


@dataclass(frozen=True)
class SlotStatus:
    """Snapshot row returned by ``list_slot_statuses``."""

    slot_id: str
    status: SlotState


@dataclass(frozen=True)
class ParkingSlot:
    """A bookable slot inside a park, priced by the park's hourly rate."""

    slot_id: str
    park_id: str
    slot_number: str
    rate_per_hour: Decimal
    status: SlotState = SlotState.AVAILABLE
    basement_number: int = 0

    def with_status(self, status: SlotState) -> "ParkingSlot":
        return replace(self, status=status)

    def as_status(self) -> SlotStatus:
        return SlotStatus(slot_id=self.slot_id, status=self.status)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.slot_id,
            "park_id": self.park_id,
            "slot_number": self.slot_number,
            "price_per_hour": str(self.rate_per_hour),
            "status": self.status.value,
            "basement_number": self.basement_number,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ParkingSlot":
        slot_id = record.get("id") or record.get("slot_id")
        park_id = record.get("park_id")
        if not slot_id or not park_id:
            raise ValueError("Slot record requires 'id' and 'park_id'")
        rate = record.get("price_per_hour", record.get("rate_per_hour"))
        if rate is None:
            raise ValueError(f"Slot record {slot_id} is missing price_per_hour")
        return cls(
            slot_id=str(slot_id),
            park_id=str(park_id),
            slot_number=str(record.get("slot_number") or slot_id),
            rate_per_hour=Decimal(str(rate)),
            status=SlotState(record.get("status", SlotState.AVAILABLE.value)),
            basement_number=int(record.get("basement_number") or 0),
        )
