"""In-process slot inventory used by the booking engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from bookings.models import ParkingSlot, SlotState, SlotStatus
from bookings.persistence.repository import RecordRepository
from tracking import t


class InMemorySlotInventory:
    """Slot availability with an atomic Available -> Occupied flip.

    When built with a repository the slot table is loaded from, and written
    back to, a JSON file after every flip.
    """

    def __init__(
        self,
        slots: Optional[Iterable[ParkingSlot]] = None,
        *,
        repository: Optional[RecordRepository] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('bookings.inventory.slot_inventory.InMemorySlotInventory.__init__')
        self.logger = logger or logging.getLogger('SlotInventory')
        self.repository = repository
        self._lock = asyncio.Lock()
        self._slots: Dict[str, ParkingSlot] = {}

        if repository is not None:
            for record in repository.load():
                try:
                    self.register(ParkingSlot.from_record(record))
                except ValueError as exc:
                    self.logger.warning("Skipping invalid slot record: %s", exc)
        for slot in slots or ():
            self.register(slot)

    @classmethod
    def from_file(cls, file_path: str, *, logger: Optional[logging.Logger] = None) -> "InMemorySlotInventory":
        t('bookings.inventory.slot_inventory.InMemorySlotInventory.from_file')
        log = logger or logging.getLogger('SlotInventory')
        return cls(repository=RecordRepository(file_path, logger=log, label="slots"), logger=log)

    def register(self, slot: ParkingSlot) -> None:
        t('bookings.inventory.slot_inventory.InMemorySlotInventory.register')
        self._slots[slot.slot_id] = slot

    def _persist_locked(self) -> None:
        if self.repository is None:
            return
        self.repository.save(slot.to_record() for slot in self._slots.values())

    async def get_slot(self, slot_id: str) -> Optional[ParkingSlot]:
        t('bookings.inventory.slot_inventory.InMemorySlotInventory.get_slot')
        async with self._lock:
            return self._slots.get(slot_id)

    async def list_slots(self, park_id: str) -> List[ParkingSlot]:
        t('bookings.inventory.slot_inventory.InMemorySlotInventory.list_slots')
        async with self._lock:
            return [slot for slot in self._slots.values() if slot.park_id == park_id]

    async def list_slot_statuses(self, park_id: str) -> List[SlotStatus]:
        t('bookings.inventory.slot_inventory.InMemorySlotInventory.list_slot_statuses')
        return [slot.as_status() for slot in await self.list_slots(park_id)]

    async def _flip(self, slot_id: str, expected: SlotState, target: SlotState) -> bool:
        async with self._lock:
            slot = self._slots.get(slot_id)
            if slot is None or slot.status is not expected:
                return False
            self._slots[slot_id] = slot.with_status(target)
            try:
                self._persist_locked()
            except Exception:
                self._slots[slot_id] = slot
                raise
        self.logger.info("Slot %s: %s -> %s", slot_id, expected.value, target.value)
        return True

    async def mark_occupied(self, slot_id: str) -> bool:
        """Claim a slot. ``False`` if it is unknown or already occupied."""

        t('bookings.inventory.slot_inventory.InMemorySlotInventory.mark_occupied')
        return await self._flip(slot_id, SlotState.AVAILABLE, SlotState.OCCUPIED)

    async def mark_available(self, slot_id: str) -> bool:
        """Release a slot. ``False`` if it is unknown or already available."""

        t('bookings.inventory.slot_inventory.InMemorySlotInventory.mark_available')
        released = await self._flip(slot_id, SlotState.OCCUPIED, SlotState.AVAILABLE)
        if not released:
            self.logger.debug("Slot %s was not occupied; nothing to release", slot_id)
        return released


async def release_slot(inventory, slot_id: str, *, logger: logging.Logger) -> bool:
    """Free ``slot_id`` after a booking ends; failures are logged, not raised.

    The booking is already terminal when this runs.
    """

    t('bookings.inventory.slot_inventory.release_slot')
    if inventory is None or not slot_id:
        return False
    try:
        return bool(await inventory.mark_available(slot_id))
    except Exception as exc:
        logger.error("Failed to release slot %s: %s", slot_id, exc)
        return False
