"""Centralized application settings.

A single place to load runtime configuration values for the booking engine.
Components receive plain values from :class:`AppSettings` instead of calling
``os.getenv`` themselves, which keeps them deterministic under test.
"""

from __future__ import annotations
from tracking import t

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

import pytz
from dotenv import load_dotenv

from . import constants


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""
    t('infrastructure.settings._to_bool')

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: Optional[str], default: int, *, minimum: int = 0) -> int:
    """Parse a positive integer setting, falling back to ``default``."""
    t('infrastructure.settings._to_int')

    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if parsed < minimum:
        return default
    return parsed


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    production_mode: bool
    display_timezone: str
    expiry_window_minutes: int
    minimum_billing_minutes: int
    expiry_warning_minutes: int
    reclamation_interval_seconds: int
    provisional_end_hours: int
    data_directory: str
    bookings_file: str
    slots_file: str
    log_directory: str


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""
    t('infrastructure.settings.load_settings')

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    production_mode = _to_bool(env.get("PRODUCTION_MODE", "false"), default=False)
    display_timezone = env.get("DISPLAY_TIMEZONE", constants.DISPLAY_TIMEZONE)
    try:
        pytz.timezone(display_timezone)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown DISPLAY_TIMEZONE: {display_timezone!r}") from None

    expiry_window_minutes = _to_int(
        env.get("BOOKING_EXPIRY_WINDOW_MINUTES"),
        constants.DEFAULT_EXPIRY_WINDOW_MINUTES,
        minimum=1,
    )
    minimum_billing_minutes = _to_int(
        env.get("MINIMUM_BILLING_MINUTES"),
        constants.DEFAULT_MINIMUM_BILLING_MINUTES,
    )
    expiry_warning_minutes = _to_int(
        env.get("EXPIRY_WARNING_MINUTES"),
        constants.DEFAULT_EXPIRY_WARNING_MINUTES,
    )
    reclamation_interval_seconds = _to_int(
        env.get("RECLAMATION_INTERVAL_SECONDS"),
        constants.DEFAULT_RECLAMATION_INTERVAL_SECONDS,
        minimum=1,
    )
    provisional_end_hours = _to_int(
        env.get("PROVISIONAL_END_HOURS"),
        constants.DEFAULT_PROVISIONAL_END_HOURS,
        minimum=1,
    )

    data_directory = env.get("DATA_DIRECTORY", constants.DEFAULT_DATA_DIRECTORY)
    bookings_file = env.get("BOOKINGS_FILE", constants.DEFAULT_BOOKINGS_FILE)
    slots_file = env.get("SLOTS_FILE", constants.DEFAULT_SLOTS_FILE)
    log_directory = env.get("LOG_DIRECTORY", constants.DEFAULT_LOG_DIRECTORY)

    return AppSettings(
        production_mode=production_mode,
        display_timezone=display_timezone,
        expiry_window_minutes=expiry_window_minutes,
        minimum_billing_minutes=minimum_billing_minutes,
        expiry_warning_minutes=expiry_warning_minutes,
        reclamation_interval_seconds=reclamation_interval_seconds,
        provisional_end_hours=provisional_end_hours,
        data_directory=data_directory,
        bookings_file=bookings_file,
        slots_file=slots_file,
        log_directory=log_directory,
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""
    t('infrastructure.settings.get_settings')

    return load_settings()
