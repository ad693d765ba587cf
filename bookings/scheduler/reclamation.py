"""
Reclamation Scheduler

Periodically finds reservations whose driver never arrived and cancels them
with reason ``auto_expired``. The scheduler is an explicit object owning one
asyncio task; the runtime lifecycle manager starts and stops it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Union

from bookings.billing.time_utils import now_utc
from bookings.errors import (
    AlreadyTerminal,
    BookingError,
    PersistenceUnavailable,
    TransitionRejected,
)
from bookings.inventory.slot_inventory import release_slot
from bookings.lifecycle.executor import TransitionExecutor
from bookings.lifecycle.state_machine import BookingStateMachine
from bookings.models import LIVE_STATUSES
from bookings.scheduler.metrics import ReclamationStats
from infrastructure.constants import DEFAULT_RECLAMATION_INTERVAL_SECONDS
from tracking import t

NotificationCallback = Callable[[List[str]], Union[Awaitable[Any], Any]]


class ReclamationScheduler:
    """Cancel expired no-show bookings on a fixed interval."""

    def __init__(
        self,
        store,
        *,
        state_machine: Optional[BookingStateMachine] = None,
        executor: Optional[TransitionExecutor] = None,
        slot_inventory=None,
        interval_seconds: float = DEFAULT_RECLAMATION_INTERVAL_SECONDS,
        clock: Callable[[], Any] = now_utc,
        notification_callback: Optional[NotificationCallback] = None,
        stats: Optional[ReclamationStats] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('bookings.scheduler.reclamation.ReclamationScheduler.__init__')
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.logger = logger or logging.getLogger('ReclamationScheduler')
        self.store = store
        self.state_machine = state_machine or BookingStateMachine()
        self.executor = executor or TransitionExecutor(store)
        self.slot_inventory = slot_inventory
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.notification_callback = notification_callback
        self.stats = stats or ReclamationStats()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        t('bookings.scheduler.reclamation.ReclamationScheduler.running')
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop; a no-op when already running."""

        t('bookings.scheduler.reclamation.ReclamationScheduler.start')
        if self.running:
            self.logger.debug("Reclamation scheduler already running")
            return
        self._task = asyncio.create_task(
            self._scheduler_loop(), name="ReclamationScheduler"
        )
        self.logger.info(
            "Reclamation scheduler started (interval %ss)", self.interval_seconds
        )

    async def stop(self) -> None:
        """Stop the background loop; a no-op when already stopped."""

        t('bookings.scheduler.reclamation.ReclamationScheduler.stop')
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.logger.info("Reclamation scheduler stopped")

    async def _scheduler_loop(self) -> None:
        t('bookings.scheduler.reclamation.ReclamationScheduler._scheduler_loop')
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.logger.error("Reclamation run failed: %s", exc, exc_info=True)

    async def run_once(self) -> int:
        """Cancel every live booking past its expiry window.

        Returns the number of bookings this run cancelled. Per-booking errors
        are logged and counted; the pass continues.
        """

        t('bookings.scheduler.reclamation.ReclamationScheduler.run_once')
        started = time.monotonic()
        scan_instant = self.clock()

        try:
            candidates = await self.store.list_bookings_by_status(LIVE_STATUSES)
        except PersistenceUnavailable as exc:
            self.logger.error("Cannot list live bookings: %s", exc)
            self.stats.record_failed_run(finished_at=self.clock())
            return 0

        due = [
            booking
            for booking in candidates
            if self.state_machine.is_expired(booking, scan_instant)
        ]

        expired_ids: List[str] = []
        skipped = 0
        failures = 0
        for booking in due:
            try:
                if await self._expire(booking.id):
                    expired_ids.append(booking.id)
                else:
                    skipped += 1
            except (AlreadyTerminal, TransitionRejected) as exc:
                skipped += 1
                self.logger.info("Skipping booking %s: %s", booking.id, exc)
            except BookingError as exc:
                failures += 1
                self.logger.error("Failed to expire booking %s: %s", booking.id, exc)
            except Exception as exc:
                failures += 1
                self.logger.error(
                    "Unexpected error expiring booking %s: %s", booking.id, exc, exc_info=True
                )

        self.stats.record_run(
            scanned=len(candidates),
            expired=len(expired_ids),
            skipped=skipped,
            failures=failures,
            run_time=time.monotonic() - started,
            finished_at=self.clock(),
        )

        if expired_ids:
            self.logger.info("Auto-cancelled %s expired bookings", len(expired_ids))
            await self._notify(expired_ids)
        else:
            self.logger.debug(
                "Reclamation scan: %s live bookings, none expired", len(candidates)
            )
        return len(expired_ids)

    async def _expire(self, booking_id: str) -> bool:
        t('bookings.scheduler.reclamation.ReclamationScheduler._expire')

        # Each booking is billed at its own cancellation instant, not the scan instant.
        def planner(current):
            return self.state_machine.plan_expiry(current, self.clock())

        outcome = await self.executor.execute(booking_id, planner)
        if not outcome.applied:
            return False
        if outcome.transition.releases_slot:
            await release_slot(self.slot_inventory, outcome.booking.slot_id, logger=self.logger)
        return True

    async def _notify(self, expired_ids: List[str]) -> None:
        t('bookings.scheduler.reclamation.ReclamationScheduler._notify')
        if self.notification_callback is None:
            return
        try:
            result = self.notification_callback(list(expired_ids))
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            self.logger.error("Expiry notification failed: %s", exc)
