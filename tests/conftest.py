"""Pytest configuration and fixtures for CLIMB tests."""

from datetime import datetime
from pathlib import Path

import pytest

from tests.helpers.synthetic_data import build_clinic_snapshot


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line(
        "markers", "business_logic: Tests for core business logic and algorithms"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config, logs and the default database out of the real home dir."""
    import climb.config
    import climb.constants
    import climb.logging_config

    home = tmp_path / "climb-home"
    monkeypatch.setattr(climb.config, "DEFAULT_HOME_DIR", home)
    monkeypatch.setattr(
        climb.config, "DEFAULT_DATABASE_PATH", str(home / "climb.db")
    )
    monkeypatch.setattr(climb.logging_config, "DEFAULT_LOG_DIR", home / "logs")
    # CLI invocations must not install global handlers during tests
    monkeypatch.setattr(climb.logging_config, "_logging_configured", True)
    return home


@pytest.fixture(autouse=True)
def reset_database_state():
    """Reset global database state before and after each test."""
    from climb.database.session import cleanup_database

    cleanup_database()
    yield
    cleanup_database()


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Path for a throwaway SQLite database."""
    return tmp_path / f"test_climb_{datetime.now().timestamp()}.db"


@pytest.fixture
def initialized_db(temp_db):
    """Initialize the global session factory against a temporary database."""
    from climb.database.session import init_database

    init_database(str(temp_db))
    return temp_db


@pytest.fixture
def clinic_snapshot():
    """Small two-month snapshot covering every record type."""
    return build_clinic_snapshot()
