import os
from typing import List, Optional


class Config:
    """Configuration management for the table admin service."""

    # Database configuration
    DB_TYPE: str = os.getenv("TABLEADMIN_DB_TYPE", "sqlite")
    DB_URL: Optional[str] = os.getenv("TABLEADMIN_DB_URL")
    DB_HOST: Optional[str] = os.getenv("TABLEADMIN_DB_HOST")
    DB_PORT: Optional[str] = os.getenv("TABLEADMIN_DB_PORT")
    DB_NAME: Optional[str] = os.getenv("TABLEADMIN_DB_NAME")
    DB_USER: Optional[str] = os.getenv("TABLEADMIN_DB_USER")
    DB_PASSWORD: Optional[str] = os.getenv("TABLEADMIN_DB_PASSWORD")
    DB_SSL_MODE: Optional[str] = os.getenv("TABLEADMIN_DB_SSL_MODE")

    # Pooling for the networked engines
    DB_POOL_SIZE: int = int(os.getenv("TABLEADMIN_DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("TABLEADMIN_DB_MAX_OVERFLOW", "20"))
    DB_POOL_RECYCLE: int = int(os.getenv("TABLEADMIN_DB_POOL_RECYCLE", "3600"))
    DB_CONNECT_TIMEOUT: Optional[int] = int(os.getenv("TABLEADMIN_DB_CONNECT_TIMEOUT", "30")) if os.getenv("TABLEADMIN_DB_CONNECT_TIMEOUT") else None
    DB_APPLICATION_NAME: str = os.getenv("TABLEADMIN_DB_APPLICATION_NAME", "tableadmin")
    DB_CHARSET: str = os.getenv("TABLEADMIN_DB_CHARSET", "utf8mb4")

    # HTTP surface
    CORS_ORIGINS: str = os.getenv("TABLEADMIN_CORS_ORIGINS", "*")
    RATE_LIMIT_WRITE: str = os.getenv("TABLEADMIN_RATE_LIMIT_WRITE", "120/minute")

    @classmethod
    def get_database_type(cls) -> str:
        """Get the database type (sqlite, postgresql, mysql, mariadb)."""
        return cls.DB_TYPE.lower()

    @classmethod
    def get_cors_origins(cls) -> List[str]:
        return [origin.strip() for origin in cls.CORS_ORIGINS.split(",") if origin.strip()]

    @classmethod
    def get_write_rate_limit(cls) -> str:
        """Rate limit applied to the mutating endpoints."""
        return cls.RATE_LIMIT_WRITE

    @classmethod
    def get_database_config(cls) -> dict:
        """Get database configuration as a dictionary with connection string parsing."""
        raw_config = {
            "type": cls.get_database_type(),
            "url": cls.DB_URL,
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "name": cls.DB_NAME,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "ssl_mode": cls.DB_SSL_MODE,
        }

        db_type = cls.get_database_type()

        if db_type == "postgresql":
            raw_config.update({
                "pool_size": cls.DB_POOL_SIZE,
                "max_overflow": cls.DB_MAX_OVERFLOW,
                "pool_recycle": cls.DB_POOL_RECYCLE,
                "connect_timeout": cls.DB_CONNECT_TIMEOUT,
                "application_name": cls.DB_APPLICATION_NAME,
            })

        elif db_type in ["mysql", "mariadb"]:
            raw_config.update({
                "pool_size": cls.DB_POOL_SIZE,
                "max_overflow": cls.DB_MAX_OVERFLOW,
                "pool_recycle": cls.DB_POOL_RECYCLE,
                "connect_timeout": cls.DB_CONNECT_TIMEOUT,
                "charset": cls.DB_CHARSET,
            })

        elif db_type == "sqlite":
            raw_config["connect_timeout"] = cls.DB_CONNECT_TIMEOUT

        # Parse and normalize configuration (handles connection strings)
        from .config_parser import parse_database_config
        return parse_database_config(raw_config)

    @classmethod
    def validate_database_config(cls) -> tuple[bool, list[str], list[str]]:
        """
        Validate the current database configuration.

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        from .database.validation import validate_database_config

        config = cls.get_database_config()
        return validate_database_config(config)
