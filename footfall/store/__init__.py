"""
Footfall Store Module
"""
from .interfaces import FootfallStore, TelecomQuery, TicketQuery
from .memory_store import InMemoryFootfallStore
from .sql_store import SqlFootfallStore

__all__ = [
    "FootfallStore",
    "TelecomQuery",
    "TicketQuery",
    "InMemoryFootfallStore",
    "SqlFootfallStore",
]
