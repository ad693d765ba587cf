"""Lifecycle orchestration for the engine runtime."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from typing import Optional

from infrastructure.constants import METRICS_LOG_INTERVAL_SECONDS
from runtime.container import EngineDependencies


class LifecycleManager:
    """Manage startup, shutdown, and periodic tasks for the engine."""

    def __init__(
        self,
        dependencies: EngineDependencies,
        *,
        metrics_interval_seconds: float = METRICS_LOG_INTERVAL_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('runtime.lifecycle.LifecycleManager.__init__')
        self.dependencies = dependencies
        self.metrics_interval_seconds = metrics_interval_seconds
        self.logger = logger or logging.getLogger('LifecycleManager')
        self.metrics_task: Optional[asyncio.Task] = None

    async def post_init(self) -> None:
        """Start the reclamation scheduler and periodic metrics logging."""

        t('runtime.lifecycle.LifecycleManager.post_init')
        await self.dependencies.scheduler.start()

        if self.metrics_task is None:
            self.metrics_task = asyncio.create_task(self._metrics_loop())
            self.logger.info(
                "Metrics monitoring started (%ss intervals)", self.metrics_interval_seconds
            )

        self.logger.info("Booking engine started")

    async def post_stop(self) -> None:
        """Tear down background tasks."""

        t('runtime.lifecycle.LifecycleManager.post_stop')
        self.logger.info("🔴 Starting engine shutdown sequence...")

        if self.metrics_task:
            self.metrics_task.cancel()
            try:
                await self.metrics_task
            except asyncio.CancelledError:
                pass
            self.logger.info("✅ Metrics monitoring stopped")
            self.metrics_task = None

        await self.dependencies.scheduler.stop()
        await self.log_metrics()
        self.logger.info("✅ Engine shutdown sequence completed")

    async def log_metrics(self) -> None:
        """Collect and log key operational metrics."""

        t('runtime.lifecycle.LifecycleManager.log_metrics')
        try:
            stats = await self.dependencies.report_service.booking_stats()
        except Exception as exc:
            self.logger.error("Error collecting booking metrics: %s", exc, exc_info=True)
            return

        scheduler = self.dependencies.scheduler
        self.logger.info(
            "=== ENGINE METRICS REPORT ===\n"
            "📋 Live Bookings: %s (active %s, warning %s, expired %s)\n"
            "%s\n"
            "=============================",
            stats.get('total', 0),
            stats.get('active', 0),
            stats.get('warning', 0),
            stats.get('expired', 0),
            scheduler.stats.format_report(),
        )

    async def _metrics_loop(self) -> None:
        """Periodic metrics logging loop."""

        t('runtime.lifecycle.LifecycleManager._metrics_loop')
        try:
            while True:
                await self.log_metrics()
                await asyncio.sleep(self.metrics_interval_seconds)
        except asyncio.CancelledError:
            self.logger.info("Metrics logging task cancelled")
            raise


__all__ = ['LifecycleManager']
