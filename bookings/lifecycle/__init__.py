"""Booking state machine and transition execution."""

from .executor import TransitionExecutor, TransitionOutcome
from .state_machine import BookingStateMachine
from .transitions import Transition, apply_status_update

__all__ = [
    "BookingStateMachine",
    "Transition",
    "TransitionExecutor",
    "TransitionOutcome",
    "apply_status_update",
]
