from tracking import t

from bookings.lifecycle.transitions import Transition, apply_status_update
from bookings.models import BookingStatus


def test_apply_status_update_sets_status_fields_and_version():
    t('tests.unit.test_transitions.test_apply_status_update_sets_status_fields_and_version')
    record = {"id": "b1", "status": "reserved", "version": 1}

    result = apply_status_update(record, "active", hardware_entry_detected=True)

    assert result is record
    assert record == {
        "id": "b1",
        "status": "active",
        "version": 2,
        "hardware_entry_detected": True,
    }


def test_apply_status_update_without_status_change():
    t('tests.unit.test_transitions.test_apply_status_update_without_status_change')
    record = {"id": "b1", "status": "active"}

    apply_status_update(record, None, metadata={"note": "x"})

    assert record["status"] == "active"
    assert record["version"] == 2
    assert record["metadata"] == {"note": "x"}


def test_transition_terminal_flag():
    t('tests.unit.test_transitions.test_transition_terminal_flag')
    entry = Transition("b1", BookingStatus.RESERVED, BookingStatus.ACTIVE, "hardware_entry")
    cancel = Transition("b1", BookingStatus.ACTIVE, BookingStatus.CANCELLED, "driver_cancel")

    assert entry.is_terminal is False
    assert cancel.is_terminal is True
