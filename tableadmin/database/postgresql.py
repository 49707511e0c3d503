"""
PostgreSQL database implementation.
Provides PostgreSQL support with connection pooling and SSL.
"""

import logging
from typing import Any, Dict, List
from urllib.parse import urlparse, parse_qs
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlmodel import create_engine

from .base import DatabaseInterface


class PostgreSQLDatabase(DatabaseInterface):
    """PostgreSQL database implementation."""

    # Introspection is limited to this schema
    SCHEMA = "public"

    def __init__(self, config: dict):
        """Initialize PostgreSQL database."""
        super().__init__(config)
        self._engine = None

    @property
    def engine(self) -> Engine:
        """Get the PostgreSQL engine, creating it if necessary."""
        if self._engine is None:
            self._engine = self.create_engine()
        return self._engine

    def create_engine(self) -> Engine:
        """Create and configure the PostgreSQL engine with connection pooling."""
        connection_string = self.get_connection_string()

        engine_kwargs = {
            "poolclass": QueuePool,
            "pool_size": self.config.get("pool_size", 10),
            "max_overflow": self.config.get("max_overflow", 20),
            "pool_pre_ping": True,  # Validate connections before use
            "pool_recycle": self.config.get("pool_recycle", 3600),
        }

        connect_args = self._get_connect_args()
        if connect_args:
            engine_kwargs["connect_args"] = connect_args

        engine = create_engine(connection_string, **engine_kwargs)
        logging.info(f"Created PostgreSQL engine with connection pooling (pool_size={engine_kwargs['pool_size']})")
        return engine

    def _get_connect_args(self) -> dict:
        """Get PostgreSQL-specific connection arguments."""
        connect_args = {}

        ssl_mode = self.config.get("ssl_mode", "prefer")
        if ssl_mode and ssl_mode != "disable":
            connect_args["sslmode"] = ssl_mode

            # Client certificate authentication
            if self.config.get("ssl_cert"):
                connect_args["sslcert"] = self.config["ssl_cert"]
            if self.config.get("ssl_key"):
                connect_args["sslkey"] = self.config["ssl_key"]
            if self.config.get("ssl_ca"):
                connect_args["sslrootcert"] = self.config["ssl_ca"]

        if self.config.get("connect_timeout"):
            connect_args["connect_timeout"] = int(self.config["connect_timeout"])
            # Abort statements that outlive the connect timeout on the server side
            connect_args["options"] = f"-c statement_timeout={int(self.config['connect_timeout']) * 1000}"

        # Application name for connection tracking
        connect_args["application_name"] = self.config.get("application_name", "tableadmin")

        return connect_args

    def get_connection_string(self) -> str:
        """Get the PostgreSQL connection string."""
        if self.config.get("url"):
            return self._validate_and_enhance_url(self.config["url"])

        host = self.config.get("host") or "localhost"
        port = self.config.get("port") or 5432
        database = self.config.get("database") or self.config.get("name") or "tableadmin"
        user = self.config.get("user") or self.config.get("username")
        password = self.config.get("password")

        if not user:
            raise ValueError("PostgreSQL user/username is required")

        if password:
            connection_string = f"postgresql://{user}:{password}@{host}:{port}/{database}"
        else:
            connection_string = f"postgresql://{user}@{host}:{port}/{database}"

        return self._validate_and_enhance_url(connection_string)

    def _validate_and_enhance_url(self, url: str) -> str:
        """Validate the PostgreSQL URL and add the configured SSL mode if missing."""
        if not url.startswith(("postgresql://", "postgres://", "postgresql+psycopg2://")):
            raise ValueError(f"Invalid PostgreSQL URL format: {url}")

        # SQLAlchemy no longer accepts the short scheme
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)

        query_params = parse_qs(urlparse(url).query)

        if "sslmode" not in query_params and self.config.get("ssl_mode"):
            if "?" in url:
                url += f"&sslmode={self.config['ssl_mode']}"
            else:
                url += f"?sslmode={self.config['ssl_mode']}"

        return url

    def validate_config(self) -> bool:
        """Validate PostgreSQL configuration."""
        try:
            import psycopg2  # noqa: F401
        except ImportError:
            raise ImportError(
                "PostgreSQL support requires psycopg2. Install with: pip install psycopg2-binary"
            )

        try:
            parsed = urlparse(self.get_connection_string())

            if not parsed.hostname:
                raise ValueError("PostgreSQL host is required")

            if not parsed.username:
                raise ValueError("PostgreSQL user is required")

            ssl_mode = self.config.get("ssl_mode")
            if ssl_mode and ssl_mode not in ["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]:
                raise ValueError(f"Invalid SSL mode: {ssl_mode}")

        except Exception as e:
            raise ValueError(f"PostgreSQL configuration validation failed: {e}")

        return True

    def list_tables(self) -> List[str]:
        """List tables of the public schema from pg_tables."""
        query = text("SELECT tablename FROM pg_tables WHERE schemaname = :schema")
        with self.engine.connect() as connection:
            return [row[0] for row in connection.execute(query, {"schema": self.SCHEMA})]

    def describe_table(self, table_name: str) -> List[Dict[str, Any]]:
        """
        Describe a table from information_schema.columns.

        Each row carries column_name, data_type, is_nullable and column_default.
        The query does not report primary keys.
        """
        query = text(
            "SELECT column_name, data_type, is_nullable, column_default "
            "FROM information_schema.columns "
            "WHERE table_schema = :schema AND table_name = :table_name "
            "ORDER BY ordinal_position"
        )
        with self.engine.connect() as connection:
            result = connection.execute(
                query, {"schema": self.SCHEMA, "table_name": table_name}
            )
            return [dict(row._mapping) for row in result]

    def get_database_info(self) -> dict:
        """Get PostgreSQL database information."""
        with self.engine.connect() as connection:
            version = connection.execute(text("SELECT version()")).scalar()
            database = connection.execute(text("SELECT current_database()")).scalar()

        return {
            "type": "postgresql",
            "version": version or "unknown",
            "database": database or "unknown",
            "connection_pool_size": self.config.get("pool_size", 10),
            "ssl_mode": self.config.get("ssl_mode", "prefer"),
        }
