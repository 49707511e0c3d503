import os

import pytest
from fastapi.testclient import TestClient

# Configure the service BEFORE importing any tableadmin modules, the write
# rate limit is read at import time
os.environ["TABLEADMIN_DB_TYPE"] = "sqlite"
os.environ["TABLEADMIN_DB_URL"] = "sqlite://"
os.environ.setdefault("TABLEADMIN_RATE_LIMIT_WRITE", "10000/minute")

from tableadmin.database import reset_database
from tableadmin.database.sqlite import SQLiteDatabase
from tableadmin.main import create_app
from tableadmin.rate_limiter import limiter
from tableadmin.service import TableService

USERS_DDL = (
    "CREATE TABLE users ("
    "id INTEGER PRIMARY KEY, "
    "name TEXT NOT NULL, "
    "email TEXT"
    ")"
)

EVENTS_DDL = (
    "CREATE TABLE events ("
    "id INTEGER PRIMARY KEY, "
    "title TEXT, "
    "happened_at DATETIME, "
    "day DATE"
    ")"
)

# No primary key and no id column, rows are identified by their values
TAGS_DDL = "CREATE TABLE tags (label TEXT, color TEXT)"


@pytest.fixture
def database():
    """A fresh in-memory SQLite database holding the users, events and tags tables."""
    db = SQLiteDatabase({"type": "sqlite", "url": "sqlite://"})
    with db.engine.begin() as connection:
        for ddl in (USERS_DDL, EVENTS_DDL, TAGS_DDL):
            connection.exec_driver_sql(ddl)
    yield db
    db.close()


@pytest.fixture
def service(database):
    return TableService(database)


@pytest.fixture
def client(database):
    """Test client serving the fixture database."""
    limiter.reset()
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clean_global_database():
    """Make sure no test leaks the global database instance into the next."""
    yield
    reset_database()
