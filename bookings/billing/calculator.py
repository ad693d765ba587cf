"""Per-minute billing for bookings.

``compute_cost`` is the single authoritative cost function; previews and
reports call it rather than re-deriving the arithmetic.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from bookings.billing.time_utils import elapsed_minutes, ensure_aware, now_utc
from bookings.errors import ValidationError
from bookings.models import BillingSnapshot, BillingStatus
from infrastructure.constants import (
    DEFAULT_EXPIRY_WARNING_MINUTES,
    DEFAULT_EXPIRY_WINDOW_MINUTES,
    DEFAULT_MINIMUM_BILLING_MINUTES,
    MINUTES_PER_HOUR,
)
from tracking import t

Rate = Union[Decimal, int, float, str]

_WHOLE_UNIT = Decimal("1")


def _to_rate(rate_per_hour: Rate) -> Decimal:
    t('bookings.billing.calculator._to_rate')
    try:
        rate = rate_per_hour if isinstance(rate_per_hour, Decimal) else Decimal(str(rate_per_hour))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid hourly rate {rate_per_hour!r}", field="rate_per_hour") from exc
    if not rate.is_finite() or rate < 0:
        raise ValidationError(f"Invalid hourly rate {rate_per_hour!r}", field="rate_per_hour")
    return rate


def compute_cost(
    billing_started_at: datetime,
    rate_per_hour: Rate,
    evaluation_instant: Optional[datetime] = None,
    *,
    minimum_billing_minutes: int = DEFAULT_MINIMUM_BILLING_MINUTES,
    is_final: bool = False,
) -> BillingSnapshot:
    """Return the billing snapshot for a booking at ``evaluation_instant``.

    Billable minutes are the elapsed minutes since ``billing_started_at``
    floored at ``minimum_billing_minutes``; an evaluation instant earlier than
    the billing start (clock skew) bills the minimum. The cost is rounded half
    up to a whole currency unit.
    """

    t('bookings.billing.calculator.compute_cost')
    rate = _to_rate(rate_per_hour)
    instant = ensure_aware(evaluation_instant) if evaluation_instant is not None else now_utc()

    elapsed = elapsed_minutes(billing_started_at, instant)
    billable_minutes = max(elapsed, int(minimum_billing_minutes))

    # Multiply before dividing so rates like 50/h stay exact at 15 minutes (12.5 -> 13).
    raw_cost = Decimal(billable_minutes) * rate / MINUTES_PER_HOUR
    cost = int(raw_cost.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP))

    return BillingSnapshot(
        billable_minutes=billable_minutes,
        rate_per_minute=rate / MINUTES_PER_HOUR,
        cost=cost,
        evaluated_at=instant,
        is_final=is_final,
    )


def classify_billing_status(
    created_at: datetime,
    evaluation_instant: datetime,
    *,
    expiry_window_minutes: int = DEFAULT_EXPIRY_WINDOW_MINUTES,
    warning_minutes: int = DEFAULT_EXPIRY_WARNING_MINUTES,
) -> BillingStatus:
    """Classify a not-yet-arrived booking relative to its auto-expiry."""

    t('bookings.billing.calculator.classify_billing_status')
    age_seconds = (ensure_aware(evaluation_instant) - ensure_aware(created_at)).total_seconds()
    window_seconds = expiry_window_minutes * 60
    if age_seconds > window_seconds:
        return BillingStatus.EXPIRED
    if age_seconds >= window_seconds - warning_minutes * 60:
        return BillingStatus.WARNING
    return BillingStatus.ACTIVE


class BillingCalculator:
    """Holds the configured minimum interval so callers pass only booking data."""

    def __init__(self, minimum_billing_minutes: int = DEFAULT_MINIMUM_BILLING_MINUTES) -> None:
        t('bookings.billing.calculator.BillingCalculator.__init__')
        if minimum_billing_minutes < 0:
            raise ValueError("minimum_billing_minutes must not be negative")
        self.minimum_billing_minutes = minimum_billing_minutes

    def compute(
        self,
        billing_started_at: datetime,
        rate_per_hour: Rate,
        evaluation_instant: Optional[datetime] = None,
        *,
        is_final: bool = False,
    ) -> BillingSnapshot:
        t('bookings.billing.calculator.BillingCalculator.compute')
        return compute_cost(
            billing_started_at,
            rate_per_hour,
            evaluation_instant,
            minimum_billing_minutes=self.minimum_billing_minutes,
            is_final=is_final,
        )
