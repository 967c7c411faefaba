"""
Database Module
"""
from .connection import check_database_health, close_database, create_schema, init_database
from .models import Base

__all__ = [
    "check_database_health",
    "close_database",
    "create_schema",
    "init_database",
    "Base",
]
