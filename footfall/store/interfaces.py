"""Store interfaces (repository pattern).

Stores are swappable, async, and return domain models. Place filters are
compared on normalized names.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncContextManager, List, Optional, Sequence

from footfall.domain.models import (
    CrowdLevel,
    EntryDraft,
    EntryEvent,
    Hotel,
    HotelCapacity,
    TelecomAggregate,
    TicketDraft,
    TicketEvent,
    TimeRange,
    TouristPlace,
)


@dataclass(frozen=True)
class TelecomQuery:
    """Filter for telecom aggregates; the time range applies to window start."""
    state: Optional[str] = None
    city: Optional[str] = None
    place: Optional[str] = None
    time_range: Optional[TimeRange] = None
    min_confidence: Optional[float] = None


@dataclass(frozen=True)
class TicketQuery:
    """Filter for ticket events; the time range applies to creation time."""
    state: Optional[str] = None
    city: Optional[str] = None
    place: Optional[str] = None
    time_range: Optional[TimeRange] = None


class FootfallStore(ABC):
    """Interface for footfall persistence operations."""

    @abstractmethod
    async def query_telecom_aggregates(self, query: TelecomQuery) -> List[TelecomAggregate]:
        """Return matching aggregates ordered by window start ascending."""
        ...

    @abstractmethod
    async def query_ticket_events(self, query: TicketQuery) -> List[TicketEvent]:
        """Return matching tickets ordered by creation time ascending."""
        ...

    @abstractmethod
    async def get_place(self, state: str, city: str, name: str) -> Optional[TouristPlace]:
        """Return the place gauge, or None if no booking has created it."""
        ...

    @abstractmethod
    async def upsert_place_counter(
        self,
        state: str,
        city: str,
        name: str,
        visitors: int,
        at: datetime,
    ) -> TouristPlace:
        """
        Create or increment the place gauge as one atomic step.

        Concurrent calls for the same place never lose an increment. The
        history receives one entry per call and keeps the newest entries up
        to the configured limit.
        """
        ...

    @abstractmethod
    async def insert_ticket_event(
        self,
        draft: TicketDraft,
        crowd_status: CrowdLevel,
        crowd_count_at_booking: int,
        created_at: datetime,
    ) -> TicketEvent:
        """Persist a validated booking and return it with its id."""
        ...

    @abstractmethod
    def atomic(self) -> AsyncContextManager["FootfallStore"]:
        """
        Open a unit of work.

        Yields a store whose writes either all persist or, when the block
        raises, none do.
        """
        ...

    @abstractmethod
    async def insert_telecom_aggregates(self, aggregates: Sequence[TelecomAggregate]) -> int:
        """Append aggregates; returns the number written."""
        ...

    @abstractmethod
    async def latest_telecom_window_start(self) -> Optional[datetime]:
        """Most recent window start across all aggregates."""
        ...

    @abstractmethod
    async def insert_entry_event(self, draft: EntryDraft, timestamp: datetime) -> EntryEvent:
        """Append a check-in event."""
        ...

    @abstractmethod
    async def add_hotel(self, hotel: Hotel) -> Hotel:
        """Add a hotel to the inventory."""
        ...

    @abstractmethod
    async def list_hotels(self) -> List[Hotel]:
        """Every hotel, ordered by serial number."""
        ...

    @abstractmethod
    async def hotel_capacity(self) -> HotelCapacity:
        """Total rooms and vacancies across all hotels."""
        ...

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
