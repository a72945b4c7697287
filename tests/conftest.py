"""Pytest configuration and fixtures for ventwire tests."""

import pytest

CPAP_FRAME = "*,S,141125,1447,G,12.2,1.0,H,10.6,10.6,20.0,1.0,I,5.0,1.0,1.0,1.0,0.0,1.0,1.0,#"

CPAP_MANUAL_FRAME = (
    "*,R,141125,1703,MANUALMODE,G,13.6,1.0,H,12.4,12.4,20.0,1.0,"
    "I,5.0,1.0,1.0,1.0,0.0,1.0,1.0,12345678,#"
)

BIPAP_FRAME = (
    "*,S,141125,1447,A,12.2,1.0,B,29.6,10.8,10.6,40.0,10.0,10.0,13.0,1.0,"
    "C,16.0,10.0,10.0,10.0,10.0,10.0,0.0,200.0,1.0,"
    "D,11.0,10.0,10.0,10.0,10.0,10.0,10.0,200.0,1.0,"
    "E,20.0,10.0,5.0,10.0,20.0,20.0,1.0,200.0,1.0,170.0,500.0,"
    "F,5.0,1.0,1.0,1.0,0.0,1.0,1.0,#"
)


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line("markers", "parser: Tests for frame parsing")
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )
    config.addinivalue_line("markers", "database: Tests that use a SQLite database")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point ~ at a temp dir so tests never read or write the real config."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    # File logging would open ~/.ventwire/logs at import-time paths
    monkeypatch.setattr("ventwire.logging_config._logging_configured", True)
    return home


@pytest.fixture
def cpap_frame():
    return CPAP_FRAME


@pytest.fixture
def cpap_manual_frame():
    return CPAP_MANUAL_FRAME


@pytest.fixture
def bipap_frame():
    return BIPAP_FRAME


@pytest.fixture
def temp_db(tmp_path):
    """Path for a throwaway SQLite database."""
    return tmp_path / "test_ventwire.db"


@pytest.fixture
def initialized_db(temp_db):
    """Initialize the global database against a temp file, reset afterwards."""
    from ventwire.database.session import cleanup_database, init_database

    cleanup_database()
    init_database(str(temp_db))

    yield temp_db

    cleanup_database()
