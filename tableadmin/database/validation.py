"""
Checks run before and while a backend serves requests.

DatabaseConfigValidator reports configuration problems as errors (startup
aborts) or warnings (logged). DatabaseConnectionManager probes the
connection with ``SELECT 1``, retrying with exponential backoff at startup.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from .base import DatabaseInterface

MYSQL_RULES = {
    "label": "MySQL",
    "url_prefixes": ("mysql://", "mysql+", "mariadb://", "mariadb+"),
    "url_hint": "'mysql://' or 'mysql+<driver>://'",
}

# Per database type: display label, accepted URL prefixes and how to spell them
ENGINE_RULES: Dict[str, Dict[str, Any]] = {
    "sqlite": {
        "label": "SQLite",
        "url_prefixes": ("sqlite://",),
        "url_hint": "'sqlite://'",
    },
    "postgresql": {
        "label": "PostgreSQL",
        "url_prefixes": ("postgresql://", "postgres://", "postgresql+"),
        "url_hint": "'postgresql://' or 'postgres://'",
    },
    "mysql": MYSQL_RULES,
    "mariadb": MYSQL_RULES,
}

MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")
SERVER_ONLY_SETTINGS = ("host", "port", "user", "password", "ssl_mode")
POOL_SETTINGS = ("pool_size", "max_overflow", "pool_recycle")
POSTGRESQL_SSL_MODES = ("disable", "allow", "prefer", "require", "verify-ca", "verify-full")
COMMON_MYSQL_CHARSETS = ("utf8", "utf8mb4", "latin1", "ascii")


class DatabaseConfigValidator:
    """
    Collects the errors and warnings of one database configuration.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.db_type = (config.get("type") or "sqlite").lower()
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate(self) -> Tuple[bool, List[str], List[str]]:
        """
        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors = []
        self.warnings = []

        rules = ENGINE_RULES.get(self.db_type)
        if rules is None:
            self.errors.append(
                f"Unsupported database type: {self.db_type}. "
                f"Supported types: {', '.join(ENGINE_RULES)}"
            )
            return False, self.errors, self.warnings

        if self.config.get("url"):
            self._check_url(rules)
        elif self.db_type != "sqlite":
            for setting in ("host", "name"):
                if not self.config.get(setting):
                    self.errors.append(f"{rules['label']} requires '{setting}' parameter")

        if self.db_type == "sqlite":
            self._warn_unused(SERVER_ONLY_SETTINGS, "Parameter '{}' is not used with SQLite")
            self._warn_unused(POOL_SETTINGS, "Connection pool parameter '{}' is not used with SQLite")
        else:
            self._check_port(rules["label"])
            self._check_driver_options()
            self._check_pool()

        return not self.errors, self.errors, self.warnings

    def _check_url(self, rules: Dict[str, Any]) -> None:
        url = self.config["url"]
        if not url.startswith(rules["url_prefixes"]):
            self.errors.append(f"{rules['label']} URL must start with {rules['url_hint']}")
            return

        if self.db_type == "sqlite":
            if url in MEMORY_URLS:
                self.warnings.append("Using in-memory SQLite database - data will not persist")
            return

        parsed = urlparse(url)
        if not parsed.hostname:
            self.errors.append("Connection string missing hostname")
        if not parsed.path.strip("/"):
            self.errors.append("Connection string missing database name")

    def _check_port(self, label: str) -> None:
        port = self.config.get("port")
        if not port:
            return
        try:
            number = int(port)
        except ValueError:
            self.errors.append(f"{label} port must be a valid integer")
            return
        if not 1 <= number <= 65535:
            self.errors.append(f"{label} port must be between 1 and 65535")

    def _check_driver_options(self) -> None:
        ssl_mode = self.config.get("ssl_mode")
        if self.db_type == "postgresql" and ssl_mode and ssl_mode not in POSTGRESQL_SSL_MODES:
            self.errors.append(
                f"Invalid PostgreSQL SSL mode: {ssl_mode}. "
                f"Valid modes: {', '.join(POSTGRESQL_SSL_MODES)}"
            )

        charset = self.config.get("charset")
        if self.db_type != "postgresql" and charset and charset not in COMMON_MYSQL_CHARSETS:
            self.warnings.append(
                f"Unusual MySQL charset: {charset}. "
                f"Common charsets: {', '.join(COMMON_MYSQL_CHARSETS)}"
            )

    def _check_pool(self) -> None:
        pool_size = self._integer_setting("pool_size", "Pool size")
        if pool_size is not None:
            if pool_size < 1:
                self.errors.append("Pool size must be at least 1")
            elif pool_size > 100:
                self.warnings.append("Pool size > 100 may cause resource issues")

        max_overflow = self._integer_setting("max_overflow", "Max overflow")
        if max_overflow is not None and max_overflow < 0:
            self.errors.append("Max overflow must be non-negative")

        pool_recycle = self._integer_setting("pool_recycle", "Pool recycle")
        if pool_recycle is not None:
            if pool_recycle < 0:
                self.errors.append("Pool recycle must be non-negative")
            elif pool_recycle < 300:
                self.warnings.append("Pool recycle < 300 seconds may cause frequent reconnections")

    def _integer_setting(self, key: str, label: str) -> Optional[int]:
        value = self.config.get(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            self.errors.append(f"{label} must be a valid integer")
            return None

    def _warn_unused(self, settings: Tuple[str, ...], template: str) -> None:
        for setting in settings:
            if self.config.get(setting):
                self.warnings.append(template.format(setting))


class DatabaseConnectionManager:
    """
    Probes a backend's connection, optionally retrying with exponential backoff.
    """

    BASE_DELAY = 1.0
    MAX_DELAY = 30.0
    BACKOFF_FACTOR = 2.0

    def __init__(self, database: DatabaseInterface, max_retries: int = 3):
        self.database = database
        self.max_retries = max_retries

    def retry_delay(self, attempt: int) -> float:
        return min(self.BASE_DELAY * (self.BACKOFF_FACTOR ** attempt), self.MAX_DELAY)

    def test_connection(self) -> Tuple[bool, Optional[str]]:
        """
        Returns:
            Tuple of (success, error_message)
        """
        error = None
        for attempt in range(self.max_retries + 1):
            if attempt:
                delay = self.retry_delay(attempt - 1)
                logging.warning(
                    f"Database connection attempt {attempt} failed: {error}. "
                    f"Retrying in {delay:.1f} seconds..."
                )
                time.sleep(delay)
            try:
                with Session(self.database.engine) as session:
                    session.exec(text("SELECT 1"))
            except SQLAlchemyError as e:
                error = str(e)
                continue

            if attempt:
                logging.info(f"Database connection successful after {attempt} retries")
            return True, None

        logging.error(f"Database connection failed after {self.max_retries + 1} attempts: {error}")
        return False, error

    def get_health_status(self) -> Dict[str, Any]:
        """
        Connectivity, probe latency and, when reachable, the backend's own details.
        """
        started = time.time()
        connected, error = self.test_connection()

        status = {
            "status": "healthy" if connected else "unhealthy",
            "connection_time_ms": round((time.time() - started) * 1000, 2),
            "database_type": self.database.config.get("type"),
            "connection_error": error,
            "timestamp": time.time(),
        }
        if not connected:
            return status

        try:
            status.update(self.database.get_database_info())
        except SQLAlchemyError as e:
            logging.warning(f"Failed to get database info: {e}")
            status["info_error"] = str(e)
        return status

    def validate_startup_connection(self) -> bool:
        """Probe with retries; False means startup must not continue."""
        logging.info("Validating database connection on startup...")
        connected, error = self.test_connection()
        if not connected:
            logging.error(f"Database connection validation failed: {error}")
            return False
        logging.info("Database connection validation successful")
        return True


def validate_database_config(config: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
    """
    Returns:
        Tuple of (is_valid, errors, warnings)
    """
    return DatabaseConfigValidator(config).validate()
