from tracking import t
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytz

from bookings.models import (
    Booking,
    BookingStatus,
    CancellationReason,
    ParkingSlot,
    SlotState,
    parse_instant,
)
from tests.helpers import T0, make_booking, make_slot


def test_booking_record_round_trip():
    t('tests.unit.test_models.test_booking_record_round_trip')
    booking = make_booking(
        status=BookingStatus.CANCELLED,
        cancellation_reason=CancellationReason.AUTO_EXPIRED,
        cancelled_at=T0 + timedelta(minutes=65),
        final_billable_minutes=65,
        final_cost=130,
        version=3,
        metadata={"source": "app"},
    )

    record = booking.to_record()

    assert record["status"] == "cancelled"
    assert record["cancellation_reason"] == "auto_expired"
    assert record["rate_per_hour"] == "120"
    assert Booking.from_record(record) == booking


def test_from_record_is_lenient_with_timestamps():
    t('tests.unit.test_models.test_from_record_is_lenient_with_timestamps')
    record = make_booking().to_record()
    record["billing_started_at"] = "not-a-date"
    record["created_at"] = "2026-03-01T04:30:00"  # naive, read as UTC
    record.pop("version")

    booking = Booking.from_record(record)

    assert booking.billing_started_at is None
    assert booking.created_at == T0
    assert booking.version == 1


def test_from_record_reads_string_flags():
    t('tests.unit.test_models.test_from_record_reads_string_flags')
    record = make_booking().to_record()
    record["hardware_entry_detected"] = "false"
    record["hardware_exit_detected"] = "True"

    booking = Booking.from_record(record)

    assert booking.hardware_entry_detected is False
    assert booking.hardware_exit_detected is True

    record.pop("hardware_entry_detected")
    record["hardware_exit_detected"] = None
    booking = Booking.from_record(record)
    assert booking.hardware_entry_detected is False
    assert booking.hardware_exit_detected is False


@pytest.mark.parametrize(
    "field, value",
    [("id", None), ("status", "parked"), ("created_at", None)],
)
def test_from_record_requires_identity_status_and_creation(field, value):
    t('tests.unit.test_models.test_from_record_requires_identity_status_and_creation')
    record = make_booking().to_record()
    record[field] = value

    with pytest.raises(ValueError):
        Booking.from_record(record)


def test_terminal_helpers():
    t('tests.unit.test_models.test_terminal_helpers')
    live = make_booking()
    done = make_booking(status=BookingStatus.COMPLETED, completed_at=T0 + timedelta(minutes=20))

    assert live.is_terminal is False
    assert live.finalized_at is None
    assert done.is_terminal is True
    assert done.finalized_at == T0 + timedelta(minutes=20)


def test_parse_instant_converts_offsets_to_utc():
    t('tests.unit.test_models.test_parse_instant_converts_offsets_to_utc')
    parsed = parse_instant("2026-03-01T10:00:00+05:30")

    assert parsed == T0
    assert parsed.tzinfo is pytz.UTC
    assert parse_instant(datetime(2026, 3, 1, 4, 30)) == T0
    assert parse_instant("") is None
    assert parse_instant(12345) is None


def test_slot_record_round_trip_and_aliases():
    t('tests.unit.test_models.test_slot_record_round_trip_and_aliases')
    slot = make_slot("S9", park_id="P2", rate="80", status=SlotState.OCCUPIED)

    assert ParkingSlot.from_record(slot.to_record()) == slot

    aliased = ParkingSlot.from_record({"slot_id": "S3", "park_id": "P1", "rate_per_hour": 60})
    assert aliased.rate_per_hour == Decimal("60")
    assert aliased.status is SlotState.AVAILABLE
    assert aliased.slot_number == "S3"


@pytest.mark.parametrize(
    "record",
    [
        {"id": "S1", "price_per_hour": 60},
        {"park_id": "P1", "price_per_hour": 60},
        {"id": "S1", "park_id": "P1"},
    ],
)
def test_slot_record_requires_identity_and_price(record):
    t('tests.unit.test_models.test_slot_record_requires_identity_and_price')
    with pytest.raises(ValueError):
        ParkingSlot.from_record(record)
