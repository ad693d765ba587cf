"""Domain service exposing the booking lifecycle operations."""

from __future__ import annotations
from tracking import t

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from bookings.billing.time_utils import (
    combine_in_display_tz,
    display_date,
    ensure_aware,
    format_display,
    now_utc,
    parse_time_of_day,
)
from bookings.errors import AlreadyTerminal, NotFound, SlotUnavailable, ValidationError
from bookings.inventory.slot_inventory import release_slot
from bookings.lifecycle.executor import TransitionExecutor, TransitionOutcome
from bookings.lifecycle.state_machine import BookingStateMachine
from bookings.lifecycle.validation import (
    coerce_reason,
    coerce_signal,
    normalise_vehicle_number,
    require_identifier,
)
from bookings.models import (
    BillingSnapshot,
    Booking,
    BookingStatus,
    CancellationReason,
    HardwareSignal,
    SlotState,
)
from infrastructure.constants import DEFAULT_PROVISIONAL_END_HOURS, DISPLAY_TIMEZONE


class BookingLifecycleService:
    """High-level API for creating, billing, cancelling and tracking bookings."""

    def __init__(
        self,
        store,
        slot_inventory,
        *,
        state_machine: Optional[BookingStateMachine] = None,
        executor: Optional[TransitionExecutor] = None,
        clock: Callable[[], datetime] = now_utc,
        display_timezone: str = DISPLAY_TIMEZONE,
        provisional_end_hours: int = DEFAULT_PROVISIONAL_END_HOURS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('bookings.services.lifecycle_service.BookingLifecycleService.__init__')
        self.logger = logger or logging.getLogger('BookingLifecycleService')
        self.store = store
        self.slot_inventory = slot_inventory
        self.state_machine = state_machine or BookingStateMachine()
        self.executor = executor or TransitionExecutor(store)
        self.clock = clock
        self.display_timezone = display_timezone
        self.provisional_end = timedelta(hours=provisional_end_hours)

    async def create_booking(
        self,
        slot_id: str,
        vehicle_number: str,
        requested_arrival_time: str,
        *,
        booking_date: Optional[date] = None,
    ) -> Booking:
        """Reserve ``slot_id`` for a vehicle and start the meter.

        ``requested_arrival_time`` is a 24-hour ``HH:MM`` string interpreted on
        ``booking_date`` (today in the display timezone by default).
        """

        t('bookings.services.lifecycle_service.BookingLifecycleService.create_booking')
        slot_id = require_identifier(slot_id, "slot_id")
        vehicle = normalise_vehicle_number(vehicle_number)
        arrival = parse_time_of_day(requested_arrival_time)
        if booking_date is not None and not isinstance(booking_date, date):
            raise ValidationError(
                f"booking_date must be a date, got {type(booking_date).__name__}",
                field="booking_date",
            )

        slot = await self.slot_inventory.get_slot(slot_id)
        if slot is None:
            raise SlotUnavailable(slot_id, "unknown slot")

        # Everything that can fail on input runs before the slot is claimed.
        now = ensure_aware(self.clock())
        day = booking_date or display_date(now, self.display_timezone)
        start_time = combine_in_display_tz(day, arrival, self.display_timezone)

        statuses = await self.slot_inventory.list_slot_statuses(slot.park_id)
        current = next((row for row in statuses if row.slot_id == slot_id), None)
        if current is None or current.status is not SlotState.AVAILABLE:
            raise SlotUnavailable(slot_id, "slot is already occupied")

        if not await self.slot_inventory.mark_occupied(slot_id):
            raise SlotUnavailable(slot_id, "slot was taken by another booking")

        try:
            booking = Booking(
                id=uuid.uuid4().hex,
                slot_id=slot_id,
                park_id=slot.park_id,
                vehicle_number=vehicle,
                status=BookingStatus.RESERVED,
                created_at=now,
                billing_started_at=now,
                start_time=start_time,
                end_time=start_time + self.provisional_end,
                rate_per_hour=slot.rate_per_hour,
            )
            await self.store.insert_booking(booking)
        except Exception:
            self.logger.error(
                "Persisting booking for slot %s failed; releasing slot", slot_id
            )
            await release_slot(self.slot_inventory, slot_id, logger=self.logger)
            raise

        self.logger.info(
            """NEW BOOKING
        Booking ID: %s
        Slot: %s (park %s)
        Vehicle: %s
        Arrival: %s
        Rate: %s/h
        """,
            booking.id,
            slot_id,
            slot.park_id,
            vehicle,
            format_display(start_time, self.display_timezone),
            slot.rate_per_hour,
        )
        return booking

    async def get_booking(self, booking_id: str) -> Booking:
        t('bookings.services.lifecycle_service.BookingLifecycleService.get_booking')
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise NotFound(booking_id)
        return booking

    async def get_live_cost(self, booking_id: str) -> BillingSnapshot:
        """Running cost for live bookings; the frozen cost for terminal ones."""

        t('bookings.services.lifecycle_service.BookingLifecycleService.get_live_cost')
        booking = await self.get_booking(booking_id)
        return self.state_machine.snapshot(booking, self.clock())

    async def cancel_booking(
        self,
        booking_id: str,
        reason: Union[CancellationReason, str] = CancellationReason.DRIVER_CANCEL,
    ) -> Booking:
        """Cancel a live booking. Repeated cancels return the terminal booking."""

        t('bookings.services.lifecycle_service.BookingLifecycleService.cancel_booking')
        cancel_reason = coerce_reason(reason)

        def planner(current: Booking):
            return self.state_machine.plan_cancellation(current, cancel_reason, self.clock())

        try:
            outcome = await self.executor.execute(booking_id, planner)
        except AlreadyTerminal as exc:
            self.logger.info(
                "Cancel ignored for booking %s: already %s",
                booking_id,
                exc.booking.status.value,
            )
            return exc.booking

        await self._release_if_needed(outcome)
        self.logger.info(
            "Booking %s cancelled (%s); final cost %s for %s min",
            booking_id,
            cancel_reason.value,
            outcome.booking.final_cost,
            outcome.booking.final_billable_minutes,
        )
        return outcome.booking

    async def ingest_hardware_signal(
        self,
        booking_id: str,
        signal_type: Union[HardwareSignal, str],
        instant: Optional[datetime] = None,
    ) -> Booking:
        """Apply an entry/exit detection to a booking.

        Signals arriving after the booking is terminal are logged and ignored.
        """

        t('bookings.services.lifecycle_service.BookingLifecycleService.ingest_hardware_signal')
        signal = coerce_signal(signal_type)
        signal_instant = ensure_aware(instant) if instant is not None else None

        def planner(current: Booking):
            at = signal_instant if signal_instant is not None else self.clock()
            return self.state_machine.plan_signal(current, signal, at)

        try:
            outcome = await self.executor.execute(booking_id, planner)
        except AlreadyTerminal as exc:
            self.logger.info(
                "%s signal ignored for booking %s: already %s",
                signal.value,
                booking_id,
                exc.booking.status.value,
            )
            return exc.booking

        if outcome.applied:
            await self._release_if_needed(outcome)
            self.logger.info(
                "Hardware %s recorded for booking %s (now %s)",
                signal.value,
                booking_id,
                outcome.booking.status.value,
            )
        return outcome.booking

    async def _release_if_needed(self, outcome: TransitionOutcome) -> None:
        if outcome.transition is not None and outcome.transition.releases_slot:
            await release_slot(self.slot_inventory, outcome.booking.slot_id, logger=self.logger)
