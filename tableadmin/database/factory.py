"""
Database factory for creating database instances based on configuration.
"""

import logging
from typing import Dict, Optional, Type

from ..exceptions import UnsupportedBackend
from .base import DatabaseInterface
from .mysql import MySQLDatabase
from .postgresql import PostgreSQLDatabase
from .sqlite import SQLiteDatabase


class DatabaseFactory:
    """Factory for creating database instances."""

    # Registry of available database implementations
    _implementations: Dict[str, Type[DatabaseInterface]] = {
        "sqlite": SQLiteDatabase,
        "postgresql": PostgreSQLDatabase,
        "mysql": MySQLDatabase,
        "mariadb": MySQLDatabase,  # MariaDB uses same implementation
    }

    @classmethod
    def create_database(cls, config: dict) -> DatabaseInterface:
        """
        Create a database instance based on configuration.

        Args:
            config: Database configuration dictionary

        Returns:
            DatabaseInterface: Configured database instance

        Raises:
            UnsupportedBackend: If database type is missing or not supported
            ValueError: If the configuration is invalid
        """
        db_type = config.get("type")

        if not db_type:
            raise UnsupportedBackend("Database type must be specified in configuration")

        db_type = db_type.lower()

        if db_type not in cls._implementations:
            available_types = ", ".join(cls._implementations.keys())
            raise UnsupportedBackend(
                f"Unsupported database type: {db_type}. "
                f"Available types: {available_types}"
            )

        implementation_class = cls._implementations[db_type]

        logging.info(f"Creating {db_type} database instance")

        database = implementation_class(config)

        from .validation import validate_database_config

        is_valid, errors, warnings = validate_database_config(config)

        if not is_valid:
            error_msg = "Database configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            logging.error(error_msg)
            raise ValueError(error_msg)

        for warning in warnings:
            logging.warning(f"Database configuration warning: {warning}")

        try:
            database.validate_config()
        except Exception as e:
            logging.error(f"Database interface validation failed: {e}")
            raise

        return database

    @classmethod
    def get_supported_types(cls) -> list:
        """Get list of supported database types."""
        return list(cls._implementations.keys())

    @classmethod
    def register_implementation(cls, db_type: str, implementation: Type[DatabaseInterface]) -> None:
        """
        Register a new database implementation.

        Args:
            db_type: Database type identifier
            implementation: Database implementation class
        """
        cls._implementations[db_type] = implementation
        logging.info(f"Registered database implementation: {db_type}")


# Global database instance (will be initialized by the factory)
_database_instance: Optional[DatabaseInterface] = None


def get_database() -> DatabaseInterface:
    """Get the global database instance."""
    if _database_instance is None:
        raise RuntimeError("Database not initialized. Call initialize_database() first.")
    return _database_instance


def is_database_initialized() -> bool:
    return _database_instance is not None


def initialize_database(config: dict, validate_connection: bool = True) -> DatabaseInterface:
    """
    Initialize the global database instance.

    Args:
        config: Database configuration dictionary
        validate_connection: Whether to validate connection on startup (default: True)

    Returns:
        DatabaseInterface: The initialized database instance

    Raises:
        UnsupportedBackend: If the configured database type is not supported
        RuntimeError: If database initialization or validation fails
    """
    global _database_instance

    try:
        _database_instance = DatabaseFactory.create_database(config)

        if validate_connection:
            if not _database_instance.validate_startup_connection():
                raise RuntimeError("Database connection validation failed during initialization")

        logging.info("Database initialized successfully")
        return _database_instance

    except UnsupportedBackend:
        raise
    except Exception as e:
        logging.error(f"Database initialization failed: {e}")
        if _database_instance:
            _database_instance.close()
            _database_instance = None
        raise RuntimeError(f"Database initialization failed: {e}") from e


def reset_database() -> None:
    """Reset the global database instance (mainly for testing)."""
    global _database_instance
    if _database_instance:
        _database_instance.close()
    _database_instance = None
