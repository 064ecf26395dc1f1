"""Shared fixtures."""

import pytest

from pongrank.core.config import AppConfig
from pongrank.services.storage import PongStore


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(database_path=str(tmp_path / "pongrank.duckdb"))


@pytest.fixture
def store(config: AppConfig):
    store = PongStore(config)
    yield store
    store.close_sync()
