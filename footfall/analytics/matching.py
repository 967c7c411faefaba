"""
Place Identity Matching

Telecom aggregates and ticket events name places independently. Both sides
are reduced to a PlaceKey built with one normalization function, so every
comparison in the merge layer, the stores and the counter uniqueness
constraint is case-insensitive and exact.
"""

from dataclasses import dataclass
from typing import Optional

from footfall.domain.models import TelecomAggregate, TicketEvent


def normalize_name(value: Optional[str]) -> str:
    """Normalize a place-identity component for comparison."""
    return (value or "").lower()


@dataclass(frozen=True)
class PlaceKey:
    """Normalized (state, city, place) merge key"""
    state: str
    city: str
    place: str


def place_key(state: Optional[str], city: Optional[str], place: Optional[str]) -> PlaceKey:
    """Build a key from raw names; an empty place falls back to the city."""
    return PlaceKey(
        state=normalize_name(state),
        city=normalize_name(city),
        place=normalize_name(place or city),
    )


def telecom_place_key(aggregate: TelecomAggregate) -> PlaceKey:
    loc = aggregate.location
    return place_key(loc.state, loc.city, loc.tourist_place)


def ticket_place_key(ticket: TicketEvent) -> PlaceKey:
    return place_key(ticket.state, ticket.city, ticket.place)


def same_place(a: PlaceKey, b: PlaceKey) -> bool:
    return a == b
