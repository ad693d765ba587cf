"""Read-side reporting over live bookings and slot occupancy."""

from __future__ import annotations
from tracking import t

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from bookings.billing.calculator import classify_billing_status
from bookings.billing.time_utils import format_duration, now_utc
from bookings.errors import DataIntegrityError, NotFound
from bookings.lifecycle.state_machine import BookingStateMachine
from bookings.models import (
    LIVE_STATUSES,
    BillingSnapshot,
    BillingStatus,
    Booking,
    SlotState,
)
from infrastructure.constants import (
    DEFAULT_EXPIRY_WARNING_MINUTES,
    DEFAULT_EXPIRY_WINDOW_MINUTES,
)


@dataclass(frozen=True)
class BookingBillingView:
    """A live booking together with its current bill and expiry standing."""

    booking: Booking
    snapshot: BillingSnapshot
    billing_status: BillingStatus
    minutes_until_expiry: Optional[int]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "booking_id": self.booking.id,
            "slot_id": self.booking.slot_id,
            "park_id": self.booking.park_id,
            "vehicle_number": self.booking.vehicle_number,
            "status": self.booking.status.value,
            "billing_status": self.billing_status.value,
            "minutes_until_expiry": self.minutes_until_expiry,
            "duration": format_duration(self.snapshot.billable_minutes),
            **self.snapshot.as_dict(),
        }


class BookingReportService:
    """Aggregations the operator dashboard reads."""

    def __init__(
        self,
        store,
        slot_inventory,
        *,
        state_machine: Optional[BookingStateMachine] = None,
        clock: Callable[[], datetime] = now_utc,
        expiry_window_minutes: int = DEFAULT_EXPIRY_WINDOW_MINUTES,
        warning_minutes: int = DEFAULT_EXPIRY_WARNING_MINUTES,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('bookings.services.report_service.BookingReportService.__init__')
        self.logger = logger or logging.getLogger('BookingReportService')
        self.store = store
        self.slot_inventory = slot_inventory
        self.state_machine = state_machine or BookingStateMachine(
            expiry_window_minutes=expiry_window_minutes
        )
        self.clock = clock
        self.expiry_window_minutes = expiry_window_minutes
        self.warning_minutes = warning_minutes

    def _billing_status(self, booking: Booking, instant: datetime) -> BillingStatus:
        if booking.hardware_entry_detected:
            # Parked vehicles never auto-expire.
            return BillingStatus.ACTIVE
        return classify_billing_status(
            booking.created_at,
            instant,
            expiry_window_minutes=self.expiry_window_minutes,
            warning_minutes=self.warning_minutes,
        )

    async def active_bookings_with_billing(self) -> List[BookingBillingView]:
        """Every reserved/active booking with its live bill, oldest first."""

        t('bookings.services.report_service.BookingReportService.active_bookings_with_billing')
        instant = self.clock()
        bookings = await self.store.list_bookings_by_status(LIVE_STATUSES)

        views: List[BookingBillingView] = []
        for booking in sorted(bookings, key=lambda item: item.created_at):
            try:
                snapshot = self.state_machine.live_snapshot(booking, instant)
            except DataIntegrityError as exc:
                self.logger.error("Excluding booking from report: %s", exc)
                continue
            views.append(
                BookingBillingView(
                    booking=booking,
                    snapshot=snapshot,
                    billing_status=self._billing_status(booking, instant),
                    minutes_until_expiry=self.state_machine.minutes_until_expiry(booking, instant),
                )
            )
        return views

    async def bookings_expiring_soon(self) -> List[BookingBillingView]:
        t('bookings.services.report_service.BookingReportService.bookings_expiring_soon')
        return [
            view
            for view in await self.active_bookings_with_billing()
            if view.billing_status is BillingStatus.WARNING
        ]

    async def booking_stats(self) -> Dict[str, int]:
        """Counts of live bookings per billing status plus the total."""

        t('bookings.services.report_service.BookingReportService.booking_stats')
        stats = {status.value: 0 for status in BillingStatus}
        views = await self.active_bookings_with_billing()
        for view in views:
            stats[view.billing_status.value] += 1
        stats["total"] = len(views)
        return stats

    async def calculate_booking_billing(
        self,
        booking_id: str,
        end_time: Optional[datetime] = None,
    ) -> BillingSnapshot:
        """Preview the bill of ``booking_id`` as if it ended at ``end_time``."""

        t('bookings.services.report_service.BookingReportService.calculate_booking_billing')
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise NotFound(booking_id)
        started_at, rate = self.state_machine.require_billing_inputs(booking)
        return self.state_machine.calculator.compute(
            started_at,
            rate,
            end_time if end_time is not None else self.clock(),
        )

    async def park_occupancy(self, park_id: str) -> Dict[str, Any]:
        t('bookings.services.report_service.BookingReportService.park_occupancy')
        statuses = await self.slot_inventory.list_slot_statuses(park_id)
        total = len(statuses)
        occupied = sum(1 for row in statuses if row.status is SlotState.OCCUPIED)
        percent = round(occupied / total * 100, 1) if total else 0.0
        return {
            "park_id": park_id,
            "total": total,
            "available": total - occupied,
            "occupied": occupied,
            "occupancy_percent": percent,
        }
