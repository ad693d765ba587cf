"""
Booking Store

Durable booking records with compare-and-set status updates. Records are kept
in memory keyed by booking id and, when a repository is attached, written
through to a JSON file after every mutation. A failed write rolls the
in-memory state back so memory never runs ahead of disk.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from bookings.errors import DataIntegrityError
from bookings.lifecycle.transitions import apply_status_update
from bookings.models import Booking, BookingStatus
from bookings.persistence.repository import RecordRepository
from tracking import t

StatusLike = Union[BookingStatus, str]


def _status_value(status: StatusLike) -> str:
    return status.value if isinstance(status, BookingStatus) else str(status)


class BookingStore:
    """In-memory booking records, optionally backed by ``RecordRepository``."""

    def __init__(
        self,
        repository: Optional[RecordRepository] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('bookings.persistence.store.BookingStore.__init__')
        self.logger = logger or logging.getLogger('BookingStore')
        self.repository = repository
        self._lock = asyncio.Lock()
        self._records: Dict[str, Dict[str, Any]] = {}
        # Rows without an id are kept verbatim so saves never drop them.
        self._orphans: List[Dict[str, Any]] = []
        if repository is not None:
            self._ingest(repository.load())

    @classmethod
    def from_file(cls, file_path: str, *, logger: Optional[logging.Logger] = None) -> "BookingStore":
        t('bookings.persistence.store.BookingStore.from_file')
        log = logger or logging.getLogger('BookingStore')
        return cls(RecordRepository(file_path, logger=log, label="bookings"), logger=log)

    def _ingest(self, records: Iterable[dict]) -> None:
        for record in records:
            booking_id = record.get('id')
            if not booking_id:
                self._orphans.append(record)
                continue
            self._records[str(booking_id)] = dict(record)
        if self._orphans:
            self.logger.warning("Kept %s booking records without an id", len(self._orphans))
        self.logger.info("Booking store ready with %s bookings", len(self._records))

    def _persist_locked(self) -> None:
        if self.repository is None:
            return
        self.repository.save([*self._records.values(), *self._orphans])

    def _hydrate(self, record: Mapping[str, Any]) -> Booking:
        try:
            return Booking.from_record(record)
        except ValueError as exc:
            raise DataIntegrityError(str(record.get('id') or '?'), str(exc)) from exc

    async def insert_booking(self, booking: Booking) -> Booking:
        """Persist a new booking; duplicate ids are rejected with ``ValueError``."""

        t('bookings.persistence.store.BookingStore.insert_booking')
        async with self._lock:
            if booking.id in self._records:
                raise ValueError(f"Booking {booking.id} already exists")
            self._records[booking.id] = booking.to_record()
            try:
                self._persist_locked()
            except Exception:
                del self._records[booking.id]
                raise
        self.logger.debug("Inserted booking %s for slot %s", booking.id, booking.slot_id)
        return booking

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        t('bookings.persistence.store.BookingStore.get_booking')
        async with self._lock:
            record = self._records.get(booking_id)
            if record is None:
                return None
            return self._hydrate(copy.deepcopy(record))

    async def update_booking_status(
        self,
        booking_id: str,
        expected_status: StatusLike,
        new_fields: Mapping[str, Any],
        *,
        new_status: Optional[StatusLike] = None,
        expected_version: Optional[int] = None,
    ) -> bool:
        """Compare-and-set: apply ``new_fields`` only if status and version match.

        Returns ``False`` when the booking is missing or was changed by another
        writer since it was read.
        """

        t('bookings.persistence.store.BookingStore.update_booking_status')
        async with self._lock:
            current = self._records.get(booking_id)
            if current is None:
                return False
            if current.get('status') != _status_value(expected_status):
                return False
            if expected_version is not None and int(current.get('version') or 1) != expected_version:
                return False

            updated = apply_status_update(
                copy.deepcopy(current),
                _status_value(new_status) if new_status is not None else None,
                **dict(new_fields),
            )
            self._records[booking_id] = updated
            try:
                self._persist_locked()
            except Exception:
                self._records[booking_id] = current
                raise
        return True

    async def list_bookings_by_status(self, statuses: Iterable[StatusLike]) -> List[Booking]:
        """Bookings in any of ``statuses``; malformed rows are logged and skipped."""

        t('bookings.persistence.store.BookingStore.list_bookings_by_status')
        wanted = {_status_value(status) for status in statuses}
        async with self._lock:
            matching = [
                copy.deepcopy(record)
                for record in self._records.values()
                if record.get('status') in wanted
            ]

        bookings: List[Booking] = []
        for record in matching:
            try:
                bookings.append(self._hydrate(record))
            except DataIntegrityError as exc:
                self.logger.error("Skipping unreadable booking record: %s", exc)
        return bookings

    async def list_bookings(self) -> List[Booking]:
        t('bookings.persistence.store.BookingStore.list_bookings')
        return await self.list_bookings_by_status(BookingStatus)
