from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from taskmaster.main import create_app
from taskmaster.settings import Settings
from taskmaster.storage import MemoryBackend
from taskmaster.store import TaskStore

FIXED_NOW = datetime(2025, 1, 25, 10, 15, 30, tzinfo=timezone.utc)


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        persistence_backend="memory",
        data_dir=str(tmp_path / "data"),
        storage_key="tasks",
        seed_sample_tasks=False,
        cors_allow_origins=["*"],
        log_level="DEBUG",
    )


@pytest.fixture()
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture()
def store(backend: MemoryBackend) -> TaskStore:
    """
    Store with sequential ids ("t1", "t2", ...) and a fixed clock.
    """
    counter = itertools.count(1)
    return TaskStore(backend, "tasks", id_factory=lambda: f"t{next(counter)}", clock=lambda: FIXED_NOW)


@pytest.fixture()
def client(settings: Settings, store: TaskStore) -> TestClient:
    return TestClient(create_app(settings, store))
