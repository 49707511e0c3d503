"""
Connection URL handling for the database configuration.

A URL such as ``postgresql://user:secret@db:5432/shop?sslmode=require`` is
split into the flat settings the backends read (host, port, name, user,
password and the query options they understand).
"""

import logging
from typing import Any, Dict
from urllib.parse import parse_qsl, urlparse

# URL scheme -> database type registered with the factory
SCHEME_TYPES = {
    "sqlite": "sqlite",
    "postgresql": "postgresql",
    "postgres": "postgresql",
    "postgresql+psycopg2": "postgresql",
    "mysql": "mysql",
    "mysql+pymysql": "mysql",
    "mysql+mysqldb": "mysql",
    "mysql+mysqlconnector": "mysql",
    "mariadb": "mariadb",
    "mariadb+pymysql": "mariadb",
}

# Query options copied into the settings, keyed by their URL spelling
QUERY_SETTINGS = {
    "sslmode": "ssl_mode",
    "ssl_mode": "ssl_mode",
    "application_name": "application_name",
    "connect_timeout": "connect_timeout",
    "charset": "charset",
}


def parse_connection_url(url: str) -> Dict[str, Any]:
    """
    Split a connection URL into database settings.

    SQLite URLs only yield the type, the file path stays in the URL.

    Raises:
        ValueError: If the URL is empty or its scheme is not supported
    """
    if not url:
        raise ValueError("Connection string cannot be empty")

    parsed = urlparse(url)
    if not parsed.scheme:
        raise ValueError("Connection string must include a scheme (e.g., postgresql://)")

    db_type = SCHEME_TYPES.get(parsed.scheme)
    if not db_type:
        raise ValueError(f"Unsupported database scheme: {parsed.scheme}")

    settings: Dict[str, Any] = {"type": db_type, "url": url}
    if db_type == "sqlite":
        return settings

    for key, value in (
        ("host", parsed.hostname),
        ("port", str(parsed.port) if parsed.port else None),
        ("user", parsed.username),
        ("password", parsed.password),
        ("name", parsed.path.lstrip("/")),
    ):
        if value:
            settings[key] = value

    for param, value in parse_qsl(parsed.query):
        key = QUERY_SETTINGS.get(param)
        if key is None:
            continue
        if key == "connect_timeout":
            if not value.isdigit():
                logging.warning(f"Ignoring invalid connect_timeout value: {value}")
                continue
            value = int(value)
        settings[key] = value

    return settings


def parse_database_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a raw database configuration.

    Unset values are dropped. When a URL is present its parts fill in every
    setting that was not given explicitly. A URL that does not parse is left
    for the validator to report.
    """
    explicit = {key: value for key, value in config.items() if value is not None}
    if not explicit.get("url"):
        return explicit

    try:
        parsed = parse_connection_url(explicit["url"])
    except ValueError as e:
        logging.warning(f"Failed to parse connection string: {e}")
        return explicit

    parsed.update(explicit)
    return parsed
