"""
Place Crowd Counter

Per-place state machine with two states, DoesNotExist and Exists. A booking
either creates the place with a one-element history or increments the
running gauge and pushes onto a FIFO-capped history. The transition here is
pure; stores make it atomic per place key.
"""

from datetime import datetime
from typing import Optional

from footfall.domain.models import FootfallEntry, TouristPlace

HISTORY_LIMIT = 500


def clamp_crowd_count(count: int) -> int:
    """Crowd gauges never go below zero."""
    return max(0, count)


class PlaceCrowdCounter:
    """
    Applies bookings to TouristPlace records.

    Example:
        counter = PlaceCrowdCounter()
        place = counter.apply(None, "Rajasthan", "Jaipur", "Amber Fort", 4, now)
        place = counter.apply(place, "Rajasthan", "Jaipur", "Amber Fort", 2, now)
        assert place.crowd_count == 6
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit

    def apply(
        self,
        place: Optional[TouristPlace],
        state: str,
        city: str,
        name: str,
        visitors: int,
        at: datetime,
    ) -> TouristPlace:
        """
        Apply one booking.

        Args:
            place: Current record, or None if the place does not exist yet
            state: State of the place (used only on creation)
            city: City of the place (used only on creation)
            name: Name of the place (used only on creation)
            visitors: Visitor delta of the booking
            at: Time recorded in the history entry

        Returns:
            The new TouristPlace record
        """
        entry = FootfallEntry(time=at, visitors=visitors)

        if place is None:
            return TouristPlace(
                state=state,
                city=city,
                name=name,
                crowd_count=clamp_crowd_count(visitors),
                footfall_history=(entry,),
            )

        history = place.footfall_history + (entry,)
        if len(history) > self.history_limit:
            # evict by insertion order, regardless of entry age
            history = history[len(history) - self.history_limit:]

        return TouristPlace(
            id=place.id,
            state=place.state,
            city=place.city,
            name=place.name,
            crowd_count=clamp_crowd_count(place.crowd_count + visitors),
            footfall_history=history,
        )
