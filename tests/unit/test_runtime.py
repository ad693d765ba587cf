from tracking import t
import asyncio
import json
from datetime import timedelta

import pytest

from bookings.models import BookingStatus
from infrastructure.settings import load_settings
from runtime.app import serve
from runtime.container import DependencyContainer
from runtime.lifecycle import LifecycleManager
from tests.helpers import T0, DummyLogger, FakeClock


def _settings(tmp_path, **extra):
    slots = tmp_path / "slots.json"
    slots.write_text(
        json.dumps([{"id": "S1", "park_id": "P1", "price_per_hour": "120"}]),
        encoding="utf-8",
    )
    env = {
        "BOOKINGS_FILE": str(tmp_path / "bookings.json"),
        "SLOTS_FILE": str(slots),
        "LOG_DIRECTORY": str(tmp_path / "logs"),
    }
    env.update(extra)
    return load_settings(env)


def test_container_shares_components(tmp_path):
    t('tests.unit.test_runtime.test_container_shares_components')
    container = DependencyContainer(_settings(tmp_path, MINIMUM_BILLING_MINUTES="30"))

    deps = container.build_dependencies()

    assert deps.lifecycle_service.store is deps.store
    assert deps.scheduler.store is deps.store
    assert deps.scheduler.executor is deps.lifecycle_service.executor
    assert deps.report_service.slot_inventory is deps.slot_inventory
    assert deps.scheduler.interval_seconds == 300
    assert container.state_machine.calculator.minimum_billing_minutes == 30
    assert container.store is deps.store
    assert set(deps.as_dict()) == {
        "settings",
        "store",
        "slot_inventory",
        "lifecycle_service",
        "report_service",
        "scheduler",
    }


def test_container_overrides(tmp_path):
    t('tests.unit.test_runtime.test_container_overrides')
    sentinel = object()
    container = DependencyContainer(_settings(tmp_path), overrides={"slot_inventory": sentinel})

    assert container.slot_inventory is sentinel
    assert container.lifecycle_service.slot_inventory is sentinel


@pytest.mark.asyncio
async def test_wired_engine_end_to_end(tmp_path):
    t('tests.unit.test_runtime.test_wired_engine_end_to_end')
    clock = FakeClock()
    container = DependencyContainer(_settings(tmp_path), clock=clock)
    service = container.lifecycle_service

    booking = await service.create_booking("S1", "KA01AB1234", "10:00")
    clock.advance(minutes=61)
    expired = await container.scheduler.run_once()

    assert expired == 1
    reopened = DependencyContainer(_settings(tmp_path), clock=clock)
    stored = await reopened.store.get_booking(booking.id)
    assert stored.status is BookingStatus.CANCELLED
    assert stored.cancelled_at == T0 + timedelta(minutes=61)
    assert (await reopened.report_service.park_occupancy("P1"))["occupied"] == 0


@pytest.mark.asyncio
async def test_lifecycle_manager_starts_and_stops_background_tasks(tmp_path):
    t('tests.unit.test_runtime.test_lifecycle_manager_starts_and_stops_background_tasks')
    deps = DependencyContainer(_settings(tmp_path)).build_dependencies()
    logger = DummyLogger()
    manager = LifecycleManager(deps, metrics_interval_seconds=3600, logger=logger)

    await manager.post_init()
    assert deps.scheduler.running is True
    assert manager.metrics_task is not None

    await asyncio.sleep(0)
    await manager.post_stop()

    assert deps.scheduler.running is False
    assert manager.metrics_task is None
    assert any(
        isinstance(message, str) and "ENGINE METRICS REPORT" in message
        for _level, message in logger.messages
    )


@pytest.mark.asyncio
async def test_serve_returns_when_stop_is_requested(tmp_path):
    t('tests.unit.test_runtime.test_serve_returns_when_stop_is_requested')
    stop_event = asyncio.Event()
    stop_event.set()

    await asyncio.wait_for(serve(_settings(tmp_path), stop_event=stop_event), timeout=5)
