"""
MySQL/MariaDB database implementation.
Provides MySQL and MariaDB support with connection pooling and SSL.
"""

import logging
from typing import Any, Dict, List
from urllib.parse import urlparse, parse_qs
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlmodel import create_engine

from .base import DatabaseInterface


class MySQLDatabase(DatabaseInterface):
    """MySQL/MariaDB database implementation."""

    def __init__(self, config: dict):
        """Initialize MySQL database."""
        super().__init__(config)
        self._engine = None

    @property
    def engine(self) -> Engine:
        """Get the MySQL engine, creating it if necessary."""
        if self._engine is None:
            self._engine = self.create_engine()
        return self._engine

    def create_engine(self) -> Engine:
        """Create and configure the MySQL engine with connection pooling."""
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
        logging.info(f"Created MySQL engine with connection pooling (pool_size={engine_kwargs['pool_size']})")
        return engine

    def _get_connect_args(self) -> dict:
        """Get MySQL-specific connection arguments."""
        connect_args = {}

        ssl_mode = self.config.get("ssl_mode")
        if ssl_mode and ssl_mode != "DISABLED":
            # MySQL SSL modes: DISABLED, PREFERRED, REQUIRED, VERIFY_CA, VERIFY_IDENTITY
            ssl = {}
            if ssl_mode == "VERIFY_IDENTITY":
                ssl["check_hostname"] = True
            if self.config.get("ssl_cert"):
                ssl["cert"] = self.config["ssl_cert"]
            if self.config.get("ssl_key"):
                ssl["key"] = self.config["ssl_key"]
            if self.config.get("ssl_ca"):
                ssl["ca"] = self.config["ssl_ca"]
            connect_args["ssl"] = ssl

        if self.config.get("connect_timeout"):
            connect_args["connect_timeout"] = int(self.config["connect_timeout"])
            connect_args["read_timeout"] = int(self.config["connect_timeout"])

        return connect_args

    def get_connection_string(self) -> str:
        """Get the MySQL connection string."""
        if self.config.get("url"):
            return self._validate_and_enhance_url(self.config["url"])

        host = self.config.get("host") or "localhost"
        port = self.config.get("port") or 3306
        database = self.config.get("database") or self.config.get("name") or "tableadmin"
        user = self.config.get("user") or self.config.get("username")
        password = self.config.get("password")

        if not user:
            raise ValueError("MySQL user/username is required")

        driver = self._get_mysql_driver()

        if password:
            connection_string = f"mysql+{driver}://{user}:{password}@{host}:{port}/{database}"
        else:
            connection_string = f"mysql+{driver}://{user}@{host}:{port}/{database}"

        return self._validate_and_enhance_url(connection_string)

    def _get_mysql_driver(self) -> str:
        """Determine which MySQL driver to use based on availability."""
        drivers = [
            ("pymysql", "pymysql"),
            ("MySQLdb", "mysqldb"),
        ]

        for module_name, driver_name in drivers:
            try:
                __import__(module_name)
                logging.info(f"Using MySQL driver: {driver_name}")
                return driver_name
            except ImportError:
                continue

        raise ImportError(
            "No MySQL driver found. Install one of: pymysql or mysqlclient"
        )

    def _validate_and_enhance_url(self, url: str) -> str:
        """Validate the MySQL URL and add the configured charset if missing."""
        if url.startswith("mariadb://"):
            url = url.replace("mariadb://", "mysql://", 1)

        if not url.startswith("mysql+"):
            if url.startswith("mysql://"):
                driver = self._get_mysql_driver()
                url = url.replace("mysql://", f"mysql+{driver}://", 1)
            else:
                raise ValueError(f"Invalid MySQL URL format: {url}")

        query_params = parse_qs(urlparse(url).query)

        if "charset" not in query_params:
            charset = self.config.get("charset", "utf8mb4")
            if "?" in url:
                url += f"&charset={charset}"
            else:
                url += f"?charset={charset}"

        return url

    def validate_config(self) -> bool:
        """Validate MySQL configuration."""
        self._get_mysql_driver()

        try:
            parsed = urlparse(self.get_connection_string())

            if not parsed.hostname:
                raise ValueError("MySQL host is required")

            if not parsed.username:
                raise ValueError("MySQL user is required")

            ssl_mode = self.config.get("ssl_mode")
            if ssl_mode and ssl_mode not in ["DISABLED", "PREFERRED", "REQUIRED", "VERIFY_CA", "VERIFY_IDENTITY"]:
                raise ValueError(f"Invalid SSL mode: {ssl_mode}. Must be one of: DISABLED, PREFERRED, REQUIRED, VERIFY_CA, VERIFY_IDENTITY")

        except Exception as e:
            raise ValueError(f"MySQL configuration validation failed: {e}")

        return True

    def list_tables(self) -> List[str]:
        """List tables of the current schema with SHOW TABLES."""
        with self.engine.connect() as connection:
            return [row[0] for row in connection.execute(text("SHOW TABLES"))]

    def describe_table(self, table_name: str) -> List[Dict[str, Any]]:
        """
        Describe a table with DESCRIBE.

        Each row carries Field, Type, Null, Key, Default and Extra.
        """
        statement = f"DESCRIBE {self.quote_identifier(table_name)}"
        with self.engine.connect() as connection:
            result = connection.exec_driver_sql(statement)
            return [
                {key: _decode(value) for key, value in row._mapping.items()}
                for row in result
            ]

    def get_database_info(self) -> dict:
        """Get MySQL database information."""
        with self.engine.connect() as connection:
            version = connection.execute(text("SELECT VERSION()")).scalar()
            database = connection.execute(text("SELECT DATABASE()")).scalar()

        is_mariadb = "MariaDB" in (version or "")

        return {
            "type": "mariadb" if is_mariadb else "mysql",
            "version": version or "unknown",
            "database": database or "unknown",
            "connection_pool_size": self.config.get("pool_size", 10),
        }


def _decode(value: Any) -> Any:
    # Newer servers report DESCRIBE columns such as Type as binary strings
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return value
