"""
Booking State Machine

Owns the lifecycle of a single booking:

    reserved --entry--> active --exit--> completed
    reserved --exit (entry collapsed)--> completed
    reserved/active --driver cancel--> cancelled
    reserved/active --no entry past expiry window--> cancelled (auto_expired)

Terminal states (completed, cancelled) accept no further transitions. Plans
are pure: they read a Booking and return a Transition, leaving the write to
persistence so concurrent finalizers can be arbitrated by compare-and-set.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Tuple

from bookings.billing.calculator import BillingCalculator
from bookings.billing.time_utils import ensure_aware
from bookings.errors import AlreadyTerminal, DataIntegrityError, TransitionRejected
from bookings.lifecycle.transitions import Transition
from bookings.models import (
    BillingSnapshot,
    Booking,
    BookingStatus,
    CancellationReason,
    HardwareSignal,
)
from infrastructure.constants import DEFAULT_EXPIRY_WINDOW_MINUTES
from tracking import t


def _iso(instant: datetime) -> str:
    return ensure_aware(instant).isoformat()


class BookingStateMachine:
    """Valid states, transitions and guards for bookings."""

    def __init__(
        self,
        *,
        calculator: Optional[BillingCalculator] = None,
        expiry_window_minutes: int = DEFAULT_EXPIRY_WINDOW_MINUTES,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('bookings.lifecycle.state_machine.BookingStateMachine.__init__')
        if expiry_window_minutes <= 0:
            raise ValueError("expiry_window_minutes must be positive")
        self.calculator = calculator or BillingCalculator()
        self.expiry_window = timedelta(minutes=expiry_window_minutes)
        self.logger = logger or logging.getLogger('BookingStateMachine')

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    def require_billing_inputs(self, booking: Booking) -> Tuple[datetime, Decimal]:
        """Return (billing start, hourly rate) or raise ``DataIntegrityError``."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.require_billing_inputs')
        if booking.billing_started_at is None:
            raise DataIntegrityError(booking.id, "billing_started_at is missing or malformed")
        if booking.rate_per_hour is None:
            raise DataIntegrityError(booking.id, "rate_per_hour is missing or malformed")
        return booking.billing_started_at, booking.rate_per_hour

    def ensure_live(self, booking: Booking) -> None:
        t('bookings.lifecycle.state_machine.BookingStateMachine.ensure_live')
        if booking.is_terminal:
            raise AlreadyTerminal(booking)

    def is_expired(self, booking: Booking, now: datetime) -> bool:
        """True when a live booking has had no entry for longer than the window."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.is_expired')
        if booking.is_terminal or booking.hardware_entry_detected:
            return False
        return ensure_aware(now) - booking.created_at > self.expiry_window

    def minutes_until_expiry(self, booking: Booking, now: datetime) -> Optional[int]:
        """Whole minutes left before auto-expiry, ``None`` once not applicable."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.minutes_until_expiry')
        if booking.is_terminal or booking.hardware_entry_detected:
            return None
        remaining = booking.created_at + self.expiry_window - ensure_aware(now)
        return max(int(remaining.total_seconds() // 60), 0)

    # ------------------------------------------------------------------
    # Billing views
    # ------------------------------------------------------------------
    def live_snapshot(self, booking: Booking, instant: datetime) -> BillingSnapshot:
        t('bookings.lifecycle.state_machine.BookingStateMachine.live_snapshot')
        started_at, rate = self.require_billing_inputs(booking)
        return self.calculator.compute(started_at, rate, instant)

    def final_snapshot(self, booking: Booking) -> BillingSnapshot:
        """Frozen cost of a terminal booking."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.final_snapshot')
        started_at, rate = self.require_billing_inputs(booking)
        finalized_at = booking.finalized_at or booking.end_time
        if booking.final_cost is not None and booking.final_billable_minutes is not None:
            return BillingSnapshot(
                billable_minutes=booking.final_billable_minutes,
                rate_per_minute=rate / 60,
                cost=booking.final_cost,
                evaluated_at=finalized_at,
                is_final=True,
            )
        if finalized_at is None:
            raise DataIntegrityError(booking.id, "terminal booking has no finalization instant")
        # Records written before final costs were frozen: recompute at the terminal instant.
        return self.calculator.compute(started_at, rate, finalized_at, is_final=True)

    def snapshot(self, booking: Booking, instant: datetime) -> BillingSnapshot:
        t('bookings.lifecycle.state_machine.BookingStateMachine.snapshot')
        if booking.is_terminal:
            return self.final_snapshot(booking)
        return self.live_snapshot(booking, instant)

    # ------------------------------------------------------------------
    # Transition plans
    # ------------------------------------------------------------------
    def plan_entry(self, booking: Booking, instant: datetime) -> Optional[Transition]:
        """reserved/active -> active. ``None`` when entry was already recorded."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.plan_entry')
        self.ensure_live(booking)
        self.require_billing_inputs(booking)
        if booking.status is BookingStatus.ACTIVE and booking.hardware_entry_detected:
            self.logger.debug("Duplicate entry signal ignored for booking %s", booking.id)
            return None

        return Transition(
            booking_id=booking.id,
            from_status=booking.status,
            to_status=BookingStatus.ACTIVE,
            trigger="hardware_entry",
            updates={
                "hardware_entry_detected": True,
                "entry_detected_at": _iso(instant),
            },
        )

    def plan_exit(self, booking: Booking, instant: datetime) -> Transition:
        """active -> completed; a reserved booking collapses entry and exit."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.plan_exit')
        self.ensure_live(booking)
        started_at, rate = self.require_billing_inputs(booking)
        snapshot = self.calculator.compute(started_at, rate, instant, is_final=True)

        updates = {
            "hardware_exit_detected": True,
            "exit_detected_at": _iso(instant),
            "end_time": _iso(instant),
            "completed_at": _iso(instant),
            "final_billable_minutes": snapshot.billable_minutes,
            "final_cost": snapshot.cost,
        }
        if not booking.hardware_entry_detected:
            self.logger.info(
                "Exit before entry for booking %s; treating as entry+exit", booking.id
            )
            updates["hardware_entry_detected"] = True
            updates["entry_detected_at"] = _iso(instant)

        return Transition(
            booking_id=booking.id,
            from_status=booking.status,
            to_status=BookingStatus.COMPLETED,
            trigger="hardware_exit",
            updates=updates,
            snapshot=snapshot,
            releases_slot=True,
        )

    def plan_cancellation(
        self,
        booking: Booking,
        reason: CancellationReason,
        instant: datetime,
    ) -> Transition:
        """reserved/active -> cancelled, freezing cost at ``instant``."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.plan_cancellation')
        self.ensure_live(booking)
        started_at, rate = self.require_billing_inputs(booking)
        snapshot = self.calculator.compute(started_at, rate, instant, is_final=True)

        return Transition(
            booking_id=booking.id,
            from_status=booking.status,
            to_status=BookingStatus.CANCELLED,
            trigger=reason.value,
            updates={
                "cancellation_reason": reason.value,
                "cancelled_at": _iso(instant),
                # The provisional end_time is superseded by the cancellation instant.
                "end_time": _iso(instant),
                "final_billable_minutes": snapshot.billable_minutes,
                "final_cost": snapshot.cost,
            },
            snapshot=snapshot,
            releases_slot=True,
        )

    def plan_expiry(self, booking: Booking, instant: datetime) -> Transition:
        """Auto-expiry: cancellation guarded by the no-show window."""

        t('bookings.lifecycle.state_machine.BookingStateMachine.plan_expiry')
        self.ensure_live(booking)
        if not self.is_expired(booking, instant):
            raise TransitionRejected(
                f"Booking {booking.id} is not past its expiry window"
            )
        return self.plan_cancellation(booking, CancellationReason.AUTO_EXPIRED, instant)

    def plan_signal(
        self,
        booking: Booking,
        signal: HardwareSignal,
        instant: datetime,
    ) -> Optional[Transition]:
        t('bookings.lifecycle.state_machine.BookingStateMachine.plan_signal')
        if signal is HardwareSignal.ENTRY:
            return self.plan_entry(booking, instant)
        return self.plan_exit(booking, instant)
