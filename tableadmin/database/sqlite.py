"""
SQLite database implementation.
"""

import logging
from typing import Any, Dict, List
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from .base import DatabaseInterface


class SQLiteDatabase(DatabaseInterface):
    """SQLite database implementation."""

    def __init__(self, config: dict):
        """Initialize SQLite database."""
        super().__init__(config)
        self._engine = None

    @property
    def engine(self) -> Engine:
        """Get the SQLite engine, creating it if necessary."""
        if self._engine is None:
            self._engine = self.create_engine()
        return self._engine

    def create_engine(self) -> Engine:
        """Create and configure the SQLite engine."""
        connection_string = self.get_connection_string()

        # SQLite-specific connection args for thread safety
        connect_args = {"check_same_thread": False}
        if self.config.get("connect_timeout"):
            connect_args["timeout"] = self.config["connect_timeout"]

        engine_kwargs = {"connect_args": connect_args}

        # An in-memory database lives on a single connection, share it
        if self.is_memory_database():
            engine_kwargs["poolclass"] = StaticPool

        engine = create_engine(connection_string, **engine_kwargs)
        logging.info(f"Created SQLite engine with connection: {connection_string}")
        return engine

    def get_connection_string(self) -> str:
        """Get the SQLite connection string."""
        if self.config.get("url"):
            return self.config["url"]

        return "sqlite:///./tableadmin.db"

    def is_memory_database(self) -> bool:
        return self.get_connection_string() in ("sqlite://", "sqlite:///:memory:")

    def validate_config(self) -> bool:
        """Validate SQLite configuration."""
        url = self.config.get("url")
        if url and not url.startswith("sqlite://"):
            raise ValueError(f"Invalid SQLite URL format: {url}")
        return True

    def list_tables(self) -> List[str]:
        """List tables from sqlite_master, skipping SQLite's own bookkeeping tables."""
        query = text(
            "SELECT name FROM sqlite_master "
            "WHERE type='table' AND name NOT LIKE 'sqlite_%'"
        )
        with self.engine.connect() as connection:
            return [row[0] for row in connection.execute(query)]

    def describe_table(self, table_name: str) -> List[Dict[str, Any]]:
        """
        Describe a table with PRAGMA table_info.

        Each row carries cid, name, type, notnull, dflt_value and pk.
        """
        statement = f"PRAGMA table_info({self.quote_identifier(table_name)})"
        with self.engine.connect() as connection:
            result = connection.exec_driver_sql(statement)
            return [dict(row._mapping) for row in result]

    def get_database_info(self) -> dict:
        """Get SQLite database information."""
        with self.engine.connect() as connection:
            version = connection.execute(text("SELECT sqlite_version()")).scalar()
        return {
            "type": "sqlite",
            "version": version or "unknown",
            "in_memory": self.is_memory_database(),
        }
