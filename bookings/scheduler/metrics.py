"""Statistics helpers for the reclamation scheduler."""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class ReclamationStats:
    """Mutable counters tracking reclamation runs."""

    runs: int = 0
    failed_runs: int = 0
    bookings_scanned: int = 0
    bookings_expired: int = 0
    bookings_skipped: int = 0
    booking_failures: int = 0
    total_run_time: float = 0.0
    last_run_at: Optional[datetime] = None

    def record_run(
        self,
        *,
        scanned: int,
        expired: int,
        skipped: int = 0,
        failures: int = 0,
        run_time: Optional[float] = None,
        finished_at: Optional[datetime] = None,
    ) -> None:
        t('bookings.scheduler.metrics.ReclamationStats.record_run')
        self.runs += 1
        self.bookings_scanned += scanned
        self.bookings_expired += expired
        self.bookings_skipped += skipped
        self.booking_failures += failures
        self._record_run_time(run_time)
        if finished_at is not None:
            self.last_run_at = finished_at

    def record_failed_run(self, finished_at: Optional[datetime] = None) -> None:
        """A run that could not list bookings at all."""

        t('bookings.scheduler.metrics.ReclamationStats.record_failed_run')
        self.runs += 1
        self.failed_runs += 1
        if finished_at is not None:
            self.last_run_at = finished_at

    def _record_run_time(self, run_time: Optional[float]) -> None:
        if run_time is None:
            return
        try:
            value = float(run_time)
        except (TypeError, ValueError):
            return
        if value < 0:
            return
        self.total_run_time += value

    @property
    def avg_run_time(self) -> float:
        t('bookings.scheduler.metrics.ReclamationStats.avg_run_time')
        completed = self.runs - self.failed_runs
        if completed <= 0:
            return 0.0
        return self.total_run_time / completed

    @property
    def expiry_rate(self) -> float:
        """Share of scanned live bookings that were auto-expired, in percent."""

        t('bookings.scheduler.metrics.ReclamationStats.expiry_rate')
        if self.bookings_scanned == 0:
            return 0.0
        return (self.bookings_expired / self.bookings_scanned) * 100

    def format_report(self) -> str:
        t('bookings.scheduler.metrics.ReclamationStats.format_report')
        lines = [
            "📊 Reclamation Scheduler Report",
            f"🔁 Runs: {self.runs}",
            f"🔎 Bookings Scanned: {self.bookings_scanned}",
            f"⌛ Auto-expired: {self.bookings_expired}",
            f"📈 Expiry Rate: {self.expiry_rate:.2f}%",
            f"⏱️ Avg Run Time: {self.avg_run_time:.3f}s",
        ]
        if self.bookings_skipped:
            lines.append(f"⏭️ Skipped: {self.bookings_skipped}")
        if self.booking_failures:
            lines.append(f"❌ Booking Failures: {self.booking_failures}")
        if self.failed_runs:
            lines.append(f"🛠️ Failed Runs: {self.failed_runs}")
        return "\n".join(lines)
