"""Clock and duration helpers for booking billing.

Every instant inside the engine is an aware UTC datetime. Display output is
rendered in one fixed timezone (India Standard Time) regardless of the server
locale.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time
from typing import Optional

import pytz

from bookings.errors import ValidationError
from infrastructure.constants import (
    DISPLAY_DATETIME_FORMAT,
    DISPLAY_TIME_FORMAT,
    DISPLAY_TIMEZONE,
    TIME_OF_DAY_PATTERN,
)
from tracking import t

_TIME_OF_DAY_RE = re.compile(TIME_OF_DAY_PATTERN)


def now_utc() -> datetime:
    """Return the current instant as an aware UTC datetime."""

    t('bookings.billing.time_utils.now_utc')
    return datetime.now(pytz.UTC)


def ensure_aware(instant: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalise aware ones to UTC."""

    t('bookings.billing.time_utils.ensure_aware')
    if instant.tzinfo is None:
        return pytz.UTC.localize(instant)
    return instant.astimezone(pytz.UTC)


def display_timezone(timezone_str: str = DISPLAY_TIMEZONE):
    t('bookings.billing.time_utils.display_timezone')
    return pytz.timezone(timezone_str)


def to_display_tz(instant: datetime, timezone_str: str = DISPLAY_TIMEZONE) -> datetime:
    """Convert ``instant`` to the display timezone."""

    t('bookings.billing.time_utils.to_display_tz')
    return ensure_aware(instant).astimezone(display_timezone(timezone_str))


def format_display(instant: Optional[datetime], timezone_str: str = DISPLAY_TIMEZONE) -> str:
    """Format a date and time for drivers, e.g. ``19/10/2026, 03:45:12 PM``."""

    t('bookings.billing.time_utils.format_display')
    if instant is None:
        return "-"
    return to_display_tz(instant, timezone_str).strftime(DISPLAY_DATETIME_FORMAT)


def format_display_time(instant: Optional[datetime], timezone_str: str = DISPLAY_TIMEZONE) -> str:
    t('bookings.billing.time_utils.format_display_time')
    if instant is None:
        return "-"
    return to_display_tz(instant, timezone_str).strftime(DISPLAY_TIME_FORMAT)


def elapsed_minutes(start: datetime, end: Optional[datetime] = None) -> int:
    """Whole minutes between ``start`` and ``end`` rounded half up.

    ``end`` defaults to now. A negative span (``end`` before ``start``) clamps
    to zero.
    """

    t('bookings.billing.time_utils.elapsed_minutes')
    end_instant = ensure_aware(end) if end is not None else now_utc()
    seconds = (end_instant - ensure_aware(start)).total_seconds()
    if seconds <= 0:
        return 0
    return int(math.floor(seconds / 60 + 0.5))


def format_duration(minutes: int) -> str:
    """Render minutes as ``"Xh Ym"`` from one hour upwards, else ``"Ym"``."""

    t('bookings.billing.time_utils.format_duration')
    total = max(int(minutes), 0)
    hours, mins = divmod(total, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def parse_time_of_day(value: str) -> time:
    """Parse a 24-hour ``H:MM``/``HH:MM`` string into a :class:`time`."""

    t('bookings.billing.time_utils.parse_time_of_day')
    if not isinstance(value, str):
        raise ValidationError(
            "Arrival time is required in HH:MM format (24-hour)",
            field="requested_arrival_time",
        )

    candidate = value.strip()
    if not _TIME_OF_DAY_RE.match(candidate):
        raise ValidationError(
            f"Invalid time format {value!r}. Please use HH:MM format (24-hour)",
            field="requested_arrival_time",
        )

    hour_str, minute_str = candidate.split(":")
    return time(hour=int(hour_str), minute=int(minute_str))


def combine_in_display_tz(
    day: date,
    time_of_day: time,
    timezone_str: str = DISPLAY_TIMEZONE,
) -> datetime:
    """Localize ``day`` at ``time_of_day`` in the display zone, returned in UTC."""

    t('bookings.billing.time_utils.combine_in_display_tz')
    local = display_timezone(timezone_str).localize(datetime.combine(day, time_of_day))
    return local.astimezone(pytz.UTC)


def display_date(instant: datetime, timezone_str: str = DISPLAY_TIMEZONE) -> date:
    """Calendar date of ``instant`` as seen in the display timezone."""

    t('bookings.billing.time_utils.display_date')
    return to_display_tz(instant, timezone_str).date()
