"""Input validation helpers for booking operations."""

from __future__ import annotations

import re
from typing import Any, Union

from bookings.errors import ValidationError
from bookings.models import CancellationReason, HardwareSignal
from infrastructure.constants import MAX_VEHICLE_NUMBER_LENGTH
from tracking import t

_VEHICLE_NUMBER_RE = re.compile(r'^[A-Z0-9][A-Z0-9 -]*$')


def normalise_vehicle_number(value: Any) -> str:
    """Return the vehicle number upper-cased with collapsed whitespace."""

    t('bookings.lifecycle.validation.normalise_vehicle_number')
    if value is None:
        raise ValidationError("Vehicle number is required.", field="vehicle_number")

    cleaned = " ".join(str(value).split()).upper()
    if not cleaned:
        raise ValidationError("Vehicle number is required.", field="vehicle_number")
    if len(cleaned) > MAX_VEHICLE_NUMBER_LENGTH:
        raise ValidationError(
            f"Vehicle number too long. Got {len(cleaned)} characters, max {MAX_VEHICLE_NUMBER_LENGTH}.",
            field="vehicle_number",
        )
    if not _VEHICLE_NUMBER_RE.match(cleaned):
        raise ValidationError(
            "Vehicle number may only contain letters, digits, spaces and hyphens.",
            field="vehicle_number",
        )
    return cleaned


def require_identifier(value: Any, field: str) -> str:
    t('bookings.lifecycle.validation.require_identifier')
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required.", field=field)
    return str(value).strip()


def coerce_signal(value: Union[HardwareSignal, str]) -> HardwareSignal:
    """Accept ``HardwareSignal`` members or their string values."""

    t('bookings.lifecycle.validation.coerce_signal')
    if isinstance(value, HardwareSignal):
        return value
    try:
        return HardwareSignal(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(signal.value for signal in HardwareSignal)
        raise ValidationError(
            f"Unknown hardware signal {value!r}; expected one of: {allowed}",
            field="signal_type",
        ) from exc


def coerce_reason(value: Union[CancellationReason, str]) -> CancellationReason:
    t('bookings.lifecycle.validation.coerce_reason')
    if isinstance(value, CancellationReason):
        return value
    try:
        return CancellationReason(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(reason.value for reason in CancellationReason)
        raise ValidationError(
            f"Unknown cancellation reason {value!r}; expected one of: {allowed}",
            field="reason",
        ) from exc
