"""Pytest configuration for Discard Toolkit."""

import pytest
from sqlalchemy import create_engine, event

from discard_toolkit.config import reset_config


def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "db: test runs against an SQLite database")


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine with working SAVEPOINT support.

    pysqlite's own transaction handling breaks SAVEPOINT, so BEGIN is emitted
    by SQLAlchemy instead.
    """
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    yield engine

    engine.dispose()


@pytest.fixture(autouse=True)
def fresh_config():
    """Give every test the default configuration."""
    reset_config()
    yield
    reset_config()
