from tracking import t

import pytest

from infrastructure import constants
from infrastructure.settings import AppSettings, get_settings, load_settings


def test_defaults_when_environment_is_empty():
    t('tests.unit.test_settings.test_defaults_when_environment_is_empty')
    settings = load_settings({})

    assert settings == AppSettings(
        production_mode=False,
        display_timezone="Asia/Kolkata",
        expiry_window_minutes=60,
        minimum_billing_minutes=15,
        expiry_warning_minutes=15,
        reclamation_interval_seconds=300,
        provisional_end_hours=24,
        data_directory="data",
        bookings_file="data/bookings.json",
        slots_file="data/slots.json",
        log_directory=constants.DEFAULT_LOG_DIRECTORY,
    )


def test_environment_overrides():
    t('tests.unit.test_settings.test_environment_overrides')
    settings = load_settings(
        {
            "PRODUCTION_MODE": "Yes",
            "BOOKING_EXPIRY_WINDOW_MINUTES": "90",
            "MINIMUM_BILLING_MINUTES": "0",
            "RECLAMATION_INTERVAL_SECONDS": " 60 ",
            "BOOKINGS_FILE": "/var/lib/smartpark/bookings.json",
        }
    )

    assert settings.production_mode is True
    assert settings.expiry_window_minutes == 90
    assert settings.minimum_billing_minutes == 0
    assert settings.reclamation_interval_seconds == 60
    assert settings.bookings_file == "/var/lib/smartpark/bookings.json"


def test_invalid_integers_fall_back_to_defaults():
    t('tests.unit.test_settings.test_invalid_integers_fall_back_to_defaults')
    settings = load_settings(
        {
            "BOOKING_EXPIRY_WINDOW_MINUTES": "soon",
            "RECLAMATION_INTERVAL_SECONDS": "0",
            "MINIMUM_BILLING_MINUTES": "-5",
            "PROVISIONAL_END_HOURS": "",
        }
    )

    assert settings.expiry_window_minutes == 60
    assert settings.reclamation_interval_seconds == 300
    assert settings.minimum_billing_minutes == 15
    assert settings.provisional_end_hours == 24


def test_get_settings_is_cached(monkeypatch):
    t('tests.unit.test_settings.test_get_settings_is_cached')
    get_settings.cache_clear()
    monkeypatch.setenv("EXPIRY_WARNING_MINUTES", "20")
    try:
        first = get_settings()
        monkeypatch.setenv("EXPIRY_WARNING_MINUTES", "30")
        assert get_settings() is first
        assert first.expiry_warning_minutes == 20
    finally:
        get_settings.cache_clear()


def test_unknown_display_timezone_is_rejected():
    t('tests.unit.test_settings.test_unknown_display_timezone_is_rejected')
    assert load_settings({"DISPLAY_TIMEZONE": "Europe/Madrid"}).display_timezone == "Europe/Madrid"

    with pytest.raises(ValueError, match="Asia/Kolkatta"):
        load_settings({"DISPLAY_TIMEZONE": "Asia/Kolkatta"})
