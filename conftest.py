"""
Shared pytest fixtures.
"""

from datetime import date

import pytest

from modules import storage


@pytest.fixture
def today():
    """Fixed reference date for expiry validation."""
    return date(2025, 6, 15)


@pytest.fixture
def valid_data():
    return {
        "gtin": "12345678901234",
        "batch": "BATCH001",
        "expiry": "2025-12-31",
        "serial": "SN001",
    }


@pytest.fixture
def json_store(tmp_path, monkeypatch):
    """Point the storage layer at an empty JSON file in a temp directory."""
    monkeypatch.setattr(storage, "PERSISTENCE_BACKEND", "json")
    monkeypatch.setattr(storage, "JSON_PATH", tmp_path / "data" / "app.json")
    storage.init_db()
    return storage
