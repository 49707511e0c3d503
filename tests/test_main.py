"""
Tests for application bootstrap, logging and rate limiting wiring.
"""

import asyncio
import json
import logging
from unittest.mock import Mock, patch

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from slowapi.errors import RateLimitExceeded

from tableadmin.config import Config
from tableadmin.database import initialize_database, is_database_initialized
from tableadmin.logging_config import setup_logging
from tableadmin.main import app as module_app, create_app
from tableadmin.rate_limiter import WRITE_LIMIT, limiter, rate_limit_exceeded_handler


class TestLifespan:
    """Test database ownership across startup and shutdown."""

    def test_database_initialized_from_environment(self):
        app = create_app()

        with TestClient(app) as client:
            assert is_database_initialized()
            assert client.get("/api/database/tables").json()["data"] == []

        assert not is_database_initialized()

    def test_existing_global_database_is_reused(self):
        database = initialize_database({"type": "sqlite", "url": "sqlite://"})

        with TestClient(create_app()) as client:
            assert client.get("/api/health").status_code == 200

        assert is_database_initialized()
        assert database.engine is not None

    def test_startup_fails_fast(self, monkeypatch):
        monkeypatch.setattr(Config, "DB_TYPE", "postgresql")
        monkeypatch.setattr(Config, "DB_URL", None)
        monkeypatch.setattr(Config, "DB_HOST", None)

        app = create_app()

        async def start():
            async with app.router.lifespan_context(app):
                pass

        with pytest.raises(RuntimeError, match="Database initialization failed"):
            asyncio.run(start())

    def test_health_without_database(self):
        with patch("tableadmin.health_api.get_database", side_effect=RuntimeError("Database not initialized")):
            response = TestClient(create_app()).get("/api/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["checks"]["database"]["error"] == "Database not initialized"


class TestRateLimiting:
    """Test limiter wiring."""

    def test_limiter_is_attached(self):
        assert module_app.state.limiter is limiter

    def test_write_limit_from_config(self):
        assert WRITE_LIMIT == Config.get_write_rate_limit()

    def test_exceeded_limit_uses_envelope(self):
        request = Request(
            {
                "type": "http",
                "method": "POST",
                "path": "/api/database/tables/users",
                "headers": [],
                "query_string": b"",
                "client": ("10.0.0.1", 5000),
            }
        )
        exc = RateLimitExceeded(Mock(error_message=None, limit="5 per 1 minute"))

        response = asyncio.run(rate_limit_exceeded_handler(request, exc))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        body = json.loads(response.body)
        assert body["success"] is False
        assert "5 per 1 minute" in body["message"]


class TestLogging:
    """Test the JSON logging setup."""

    def test_records_are_json(self, capsys):
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        root.handlers = []
        try:
            setup_logging()
            logging.getLogger("tableadmin.test").warning("table %s missing", "users")
            captured = capsys.readouterr().out.strip().splitlines()[-1]
        finally:
            root.handlers = saved_handlers

        record = json.loads(captured)
        assert record["message"] == "table users missing"
        assert record["levelname"] == "WARNING"
        assert record["name"] == "tableadmin.test"

    def test_no_duplicate_handlers(self):
        root = logging.getLogger()
        count = len(root.handlers)

        setup_logging()

        assert len(root.handlers) == count
