"""Function usage tracking for the booking engine."""

from .runtime import call_counts, configure, t

__all__ = ["t", "call_counts", "configure"]
