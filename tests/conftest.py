"""Shared pytest fixtures for the thrips server."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from server.config import Settings
from server.models import CountRecord
from server.server import create_app
from server.store import InMemoryThripsStore


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def sample_records():
    # 2024-01-01 and 2024-01-08 are both Mondays
    return [
        CountRecord(id=1, created_at=utc(2024, 1, 1, 9, 0), tea=3, other=1),
        CountRecord(id=2, created_at=utc(2024, 1, 1, 15, 30), tea=2, other=0),
        CountRecord(id=3, created_at=utc(2024, 1, 8, 10, 0), tea=1, other=5),
    ]


@pytest.fixture
def store():
    return InMemoryThripsStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=str(tmp_path / "thrips.db"))


@pytest.fixture
def client(store, settings):
    app = create_app(store=store, settings=settings)
    return TestClient(app)
