"""State transition plans and the helper that applies them to stored records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from bookings.models import BillingSnapshot, BookingStatus
from tracking import t


@dataclass(frozen=True)
class Transition:
    """A planned change of one booking, expressed as record-level updates."""

    booking_id: str
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: str
    updates: Dict[str, Any] = field(default_factory=dict)
    snapshot: Optional[BillingSnapshot] = None
    releases_slot: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.to_status.is_terminal


def apply_status_update(
    record: Dict[str, Any],
    new_status: Optional[str],
    **updates: Any,
) -> Dict[str, Any]:
    """Mutate a booking record with a new status, extra fields and a version bump."""

    t('bookings.lifecycle.transitions.apply_status_update')
    if new_status is not None:
        record['status'] = new_status
    for key, value in updates.items():
        record[key] = value
    record['version'] = int(record.get('version') or 1) + 1
    return record
