"""Public booking services."""

from .lifecycle_service import BookingLifecycleService
from .report_service import BookingBillingView, BookingReportService

__all__ = ["BookingBillingView", "BookingLifecycleService", "BookingReportService"]
