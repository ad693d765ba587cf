"""Apply planned transitions through compare-and-set persistence."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from bookings.errors import NotFound, PersistenceConflict
from bookings.lifecycle.transitions import Transition
from bookings.models import Booking
from tracking import t

Planner = Callable[[Booking], Optional[Transition]]


@dataclass(frozen=True)
class TransitionOutcome:
    """Booking state after an execution attempt."""

    booking: Booking
    transition: Optional[Transition] = None

    @property
    def applied(self) -> bool:
        return self.transition is not None


class TransitionExecutor:
    """Read, plan, compare-and-set; one fresh-read retry on conflict.

    The planner runs against the freshest read on every attempt, so a booking
    finalized by a concurrent writer makes the retry raise ``AlreadyTerminal``
    from the state machine instead of writing twice.
    """

    MAX_ATTEMPTS = 2

    def __init__(self, store, *, logger: Optional[logging.Logger] = None) -> None:
        t('bookings.lifecycle.executor.TransitionExecutor.__init__')
        self._store = store
        self.logger = logger or logging.getLogger('TransitionExecutor')

    async def execute(self, booking_id: str, planner: Planner) -> TransitionOutcome:
        t('bookings.lifecycle.executor.TransitionExecutor.execute')
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            booking = await self._store.get_booking(booking_id)
            if booking is None:
                raise NotFound(booking_id)

            transition = planner(booking)
            if transition is None:
                return TransitionOutcome(booking=booking)

            written = await self._store.update_booking_status(
                booking_id,
                transition.from_status.value,
                transition.updates,
                new_status=transition.to_status.value,
                expected_version=booking.version,
            )
            if written:
                updated = await self._store.get_booking(booking_id)
                if updated is None:
                    raise NotFound(booking_id)
                self.logger.info(
                    "Booking %s: %s -> %s (%s)",
                    booking_id,
                    transition.from_status.value,
                    transition.to_status.value,
                    transition.trigger,
                )
                return TransitionOutcome(booking=updated, transition=transition)

            self.logger.warning(
                "Write conflict on booking %s (attempt %s/%s, trigger %s)",
                booking_id,
                attempt,
                self.MAX_ATTEMPTS,
                transition.trigger,
            )

        raise PersistenceConflict(booking_id, self.MAX_ATTEMPTS)
