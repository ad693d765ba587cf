from tracking import t
from datetime import timedelta

import pytest

from bookings.errors import NotFound
from bookings.inventory import InMemorySlotInventory
from bookings.models import BillingStatus, BookingStatus, SlotState
from bookings.persistence.store import BookingStore
from bookings.services.report_service import BookingReportService
from tests.helpers import T0, DummyLogger, FakeClock, make_booking, make_slot


async def build_reports(bookings, slots=()):
    store = BookingStore(logger=DummyLogger())
    for booking in bookings:
        await store.insert_booking(booking)
    inventory = InMemorySlotInventory(list(slots), logger=DummyLogger())
    clock = FakeClock(T0 + timedelta(minutes=120))
    logger = DummyLogger()
    service = BookingReportService(store, inventory, clock=clock, logger=logger)
    return service, clock, logger


def _aged(booking_id, age_minutes, **overrides):
    return make_booking(
        booking_id,
        created_at=T0 + timedelta(minutes=120 - age_minutes),
        **overrides,
    )


@pytest.mark.asyncio
async def test_active_bookings_with_billing_status():
    t('tests.unit.test_report_service.test_active_bookings_with_billing_status')
    service, clock, logger = await build_reports(
        [
            _aged("fresh", 30),
            _aged("warning", 50),
            _aged("overdue", 70),
            _aged("parked", 70, status=BookingStatus.ACTIVE, hardware_entry_detected=True),
            _aged("done", 80, status=BookingStatus.COMPLETED),
        ]
    )

    views = await service.active_bookings_with_billing()
    by_id = {view.booking.id: view for view in views}

    assert [view.booking.id for view in views][0] in {"overdue", "parked"}
    assert set(by_id) == {"fresh", "warning", "overdue", "parked"}
    assert by_id["fresh"].billing_status is BillingStatus.ACTIVE
    assert by_id["fresh"].minutes_until_expiry == 30
    assert by_id["warning"].billing_status is BillingStatus.WARNING
    assert by_id["overdue"].billing_status is BillingStatus.EXPIRED
    assert by_id["parked"].billing_status is BillingStatus.ACTIVE
    assert by_id["parked"].minutes_until_expiry is None
    assert by_id["warning"].snapshot.cost == 100


@pytest.mark.asyncio
async def test_view_as_dict():
    t('tests.unit.test_report_service.test_view_as_dict')
    service, clock, logger = await build_reports([_aged("fresh", 75, status=BookingStatus.ACTIVE, hardware_entry_detected=True)])

    payload = (await service.active_bookings_with_billing())[0].as_dict()

    assert payload["booking_id"] == "fresh"
    assert payload["billing_status"] == "active"
    assert payload["duration"] == "1h 15m"
    assert payload["cost"] == 150
    assert payload["is_final"] is False


@pytest.mark.asyncio
async def test_expiring_soon_and_stats():
    t('tests.unit.test_report_service.test_expiring_soon_and_stats')
    service, clock, logger = await build_reports(
        [_aged("a", 10), _aged("b", 20), _aged("c", 46), _aged("d", 61)]
    )

    expiring = await service.bookings_expiring_soon()
    stats = await service.booking_stats()

    assert [view.booking.id for view in expiring] == ["c"]
    assert stats == {"active": 2, "warning": 1, "expired": 1, "total": 4}


@pytest.mark.asyncio
async def test_reports_skip_bookings_with_integrity_problems():
    t('tests.unit.test_report_service.test_reports_skip_bookings_with_integrity_problems')
    service, clock, logger = await build_reports(
        [_aged("ok", 10), _aged("broken", 10, billing_started_at=None)]
    )

    stats = await service.booking_stats()

    assert stats["total"] == 1
    assert "error" in logger.levels()


@pytest.mark.asyncio
async def test_calculate_booking_billing_preview():
    t('tests.unit.test_report_service.test_calculate_booking_billing_preview')
    service, clock, logger = await build_reports([make_booking("b1")])

    preview = await service.calculate_booking_billing("b1", T0 + timedelta(minutes=40))
    current = await service.calculate_booking_billing("b1")

    assert (preview.billable_minutes, preview.cost) == (40, 80)
    assert (current.billable_minutes, current.cost) == (120, 240)
    with pytest.raises(NotFound):
        await service.calculate_booking_billing("missing")


@pytest.mark.asyncio
async def test_park_occupancy():
    t('tests.unit.test_report_service.test_park_occupancy')
    service, clock, logger = await build_reports(
        [],
        slots=[
            make_slot("S1"),
            make_slot("S2"),
            make_slot("S3"),
            make_slot("S4", status=SlotState.OCCUPIED),
            make_slot("X1", park_id="P2"),
        ],
    )

    assert await service.park_occupancy("P1") == {
        "park_id": "P1",
        "total": 4,
        "available": 3,
        "occupied": 1,
        "occupancy_percent": 25.0,
    }
    assert (await service.park_occupancy("empty"))["occupancy_percent"] == 0.0
