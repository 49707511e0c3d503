"""
Abstract base class for database implementations.
Defines the interface that all database engines must implement.

Catalog queries (listing tables, describing a table) differ per engine and
are left to the subclasses. Row access is dialect-neutral SQLAlchemy Core
over lightweight, untyped table constructs, so every engine shares it and
values are bound exactly as received.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.sql.expression import TableClause


class DatabaseInterface(ABC):
    """Abstract interface for database implementations."""

    def __init__(self, config: dict):
        """
        Initialize the database with configuration.

        Args:
            config: Database configuration dictionary
        """
        self.config = config
        self._engine = None

    @property
    @abstractmethod
    def engine(self) -> Engine:
        """Get the database engine."""
        pass

    @abstractmethod
    def create_engine(self) -> Engine:
        """Create and configure the database engine."""
        pass

    @abstractmethod
    def get_connection_string(self) -> str:
        """Get the connection string for this database."""
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """Validate the database configuration."""
        pass

    @abstractmethod
    def list_tables(self) -> List[str]:
        """
        List user tables in catalog order, excluding engine-internal tables.
        """
        pass

    @abstractmethod
    def describe_table(self, table_name: str) -> List[Dict[str, Any]]:
        """
        Describe the columns of a table in the engine's own catalog shape.

        Returns one raw dictionary per column, in catalog order. An unknown
        table yields an empty list.
        """
        pass

    def quote_identifier(self, name: str) -> str:
        """Quote an identifier for interpolation into engine-specific SQL."""
        return self.engine.dialect.identifier_preparer.quote_identifier(name)

    @staticmethod
    def _table(table_name: str, column_names: Iterable[str] = ()) -> TableClause:
        return sa.table(table_name, *[sa.column(name) for name in column_names])

    def count(self, table_name: str) -> int:
        """Count every row of a table."""
        statement = sa.select(sa.func.count()).select_from(self._table(table_name))
        with self.engine.connect() as connection:
            return connection.execute(statement).scalar_one()

    def select(self, table_name: str, offset: int, limit: int) -> List[Dict[str, Any]]:
        """
        Fetch a slice of rows in the engine's default order.
        """
        statement = (
            sa.select(sa.literal_column("*"))
            .select_from(self._table(table_name))
            .offset(offset)
            .limit(limit)
        )
        with self.engine.connect() as connection:
            return [dict(row._mapping) for row in connection.execute(statement)]

    def insert(self, table_name: str, row: Dict[str, Any]) -> int:
        """Insert a single row and return the number of rows written."""
        table = self._table(table_name, row.keys())
        statement = sa.insert(table).values(row)
        with self.engine.begin() as connection:
            return connection.execute(statement).rowcount

    def update_where(
        self, table_name: str, condition: Dict[str, Any], update: Dict[str, Any]
    ) -> int:
        """
        Apply ``update`` to every row matching all entries of ``condition``.

        Returns the number of affected rows.
        """
        table = self._table(table_name, {**condition, **update}.keys())
        statement = (
            sa.update(table)
            .where(self._predicate(table, condition))
            .values(update)
        )
        with self.engine.begin() as connection:
            return connection.execute(statement).rowcount

    def delete_where(self, table_name: str, condition: Dict[str, Any]) -> int:
        """
        Delete every row matching all entries of ``condition``.

        Returns the number of affected rows.
        """
        table = self._table(table_name, condition.keys())
        statement = sa.delete(table).where(self._predicate(table, condition))
        with self.engine.begin() as connection:
            return connection.execute(statement).rowcount

    @staticmethod
    def _predicate(table: TableClause, condition: Dict[str, Any]):
        # A None value compiles to IS NULL so full-row conditions still match
        return sa.and_(*[table.c[name] == value for name, value in condition.items()])

    def get_database_info(self) -> dict:
        """Engine-specific details reported by the health endpoint."""
        return {"type": self.config.get("type")}

    def validate_startup_connection(self) -> bool:
        """
        Validate database connection on startup with fail-fast behavior.

        Returns:
            True if connection is valid, False otherwise
        """
        from .validation import DatabaseConnectionManager

        manager = DatabaseConnectionManager(self)
        return manager.validate_startup_connection()

    def test_connection(self) -> tuple[bool, str]:
        """
        Test database connection with a single attempt.

        Returns:
            Tuple of (success, error_message)
        """
        from .validation import DatabaseConnectionManager

        manager = DatabaseConnectionManager(self, max_retries=0)
        return manager.test_connection()

    def get_health_status(self) -> dict:
        """
        Get comprehensive database health status.

        Returns:
            Dictionary with health status information
        """
        from .validation import DatabaseConnectionManager

        manager = DatabaseConnectionManager(self, max_retries=0)
        return manager.get_health_status()

    def close(self) -> None:
        """Close database connections (optional override)."""
        if self._engine:
            self._engine.dispose()
