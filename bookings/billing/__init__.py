"""Clock arithmetic and cost computation."""

from .calculator import BillingCalculator, classify_billing_status, compute_cost
from .time_utils import (
    elapsed_minutes,
    format_display,
    format_display_time,
    format_duration,
    now_utc,
    parse_time_of_day,
    to_display_tz,
)

__all__ = [
    "BillingCalculator",
    "classify_billing_status",
    "compute_cost",
    "elapsed_minutes",
    "format_display",
    "format_display_time",
    "format_duration",
    "now_utc",
    "parse_time_of_day",
    "to_display_tz",
]
