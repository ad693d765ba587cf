"""Background reclamation of expired reservations."""

from .metrics import ReclamationStats
from .reclamation import ReclamationScheduler

__all__ = ["ReclamationScheduler", "ReclamationStats"]
