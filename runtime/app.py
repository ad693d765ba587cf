#!/usr/bin/env python3
"""
Booking engine entrypoint: hosts the reclamation scheduler in one event loop.
"""
from tracking import t

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

if __name__ == "__main__" and __package__ is None:
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    __package__ = "runtime"

from infrastructure.logging_config import setup_logging
from infrastructure.settings import AppSettings, get_settings
from runtime.container import DependencyContainer
from runtime.lifecycle import LifecycleManager


async def log_expired_bookings(expired_ids: List[str]) -> None:
    """Default notification hook for auto-expired bookings."""

    t('runtime.app.log_expired_bookings')
    logging.getLogger('Main').info(
        "Notified about %s expired bookings: %s", len(expired_ids), ", ".join(expired_ids)
    )


def _install_signal_handlers(stop_event: asyncio.Event, logger: logging.Logger) -> None:
    t('runtime.app._install_signal_handlers')
    loop = asyncio.get_running_loop()

    def request_stop(signum: int) -> None:
        logger.info("🚨 Received signal %s, initiating graceful shutdown...", signum)
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, request_stop, signum)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler.
            signal.signal(
                signum,
                lambda received, _frame: loop.call_soon_threadsafe(request_stop, received),
            )


async def serve(settings: AppSettings, *, stop_event: Optional[asyncio.Event] = None) -> None:
    """Run the engine until ``stop_event`` is set (SIGINT/SIGTERM by default)."""

    t('runtime.app.serve')
    logger = logging.getLogger('Main')
    container = DependencyContainer(settings, notification_callback=log_expired_bookings)
    lifecycle = LifecycleManager(container.build_dependencies())

    if stop_event is None:
        stop_event = asyncio.Event()
        _install_signal_handlers(stop_event, logger)

    await lifecycle.post_init()
    try:
        await stop_event.wait()
    finally:
        await lifecycle.post_stop()


def main() -> int:
    """Process entry point."""

    t('runtime.app.main')
    settings = get_settings()
    log_dir = setup_logging(settings.log_directory, production_mode=settings.production_mode)

    logger = logging.getLogger('Main')
    logger.info("=" * 60)
    logger.info("Starting SmartPark booking engine (logs in %s)", log_dir)
    logger.info("Bookings file: %s", settings.bookings_file)
    logger.info("Slots file: %s", settings.slots_file)
    logger.info("=" * 60)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
