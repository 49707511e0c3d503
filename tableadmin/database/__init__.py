"""
Database module for tableadmin.
Provides the database abstraction layer with support for multiple database engines.
"""

from .factory import (
    DatabaseFactory,
    get_database,
    initialize_database,
    is_database_initialized,
    reset_database,
)
from .base import DatabaseInterface


__all__ = [
    "DatabaseFactory",
    "DatabaseInterface",
    "get_database",
    "initialize_database",
    "is_database_initialized",
    "reset_database",
]
