from __future__ import annotations

import json
import logging

from taskmaster.generate_openapi import generate_openapi
from taskmaster.logging_setup import setup_logging
from taskmaster.settings import get_settings

ENV_VARS = [
    "PERSISTENCE_BACKEND",
    "TASKS_DATA_DIR",
    "TASKS_STORAGE_KEY",
    "SEED_SAMPLE_TASKS",
    "CORS_ALLOW_ORIGINS",
    "LOG_LEVEL",
]


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.data_dir == "./data"
        assert s.storage_key == "tasks"
        assert s.seed_sample_tasks is False
        assert s.cors_allow_origins == ["*"]
        assert s.log_level == "INFO"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", " FILE ")
        monkeypatch.setenv("TASKS_DATA_DIR", "/tmp/tasks")
        monkeypatch.setenv("TASKS_STORAGE_KEY", "mytasks")
        monkeypatch.setenv("SEED_SAMPLE_TASKS", "yes")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = get_settings()
        assert s.persistence_backend == "file"
        assert s.data_dir == "/tmp/tasks"
        assert s.storage_key == "mytasks"
        assert s.seed_sample_tasks is True
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert s.log_level == "DEBUG"

    def test_unknown_backend_falls_back_to_memory(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "redis")
        assert get_settings().persistence_backend == "memory"


class TestLogging:
    def test_setup_is_idempotent(self):
        setup_logging("DEBUG")
        setup_logging("INFO")
        named = [h for h in logging.getLogger().handlers if h.get_name() == "taskmaster-console"]
        assert len(named) == 1
        assert logging.getLogger("taskmaster").level == logging.INFO

    def test_unknown_level_defaults_to_info(self):
        setup_logging("LOUD")
        assert logging.getLogger("taskmaster").level == logging.INFO

    def test_corrupt_data_is_logged(self, caplog):
        from taskmaster.storage import MemoryBackend
        from taskmaster.store import TaskStore

        with caplog.at_level(logging.WARNING, logger="taskmaster.store"):
            TaskStore(MemoryBackend({"tasks": "{broken"}))
        assert any("Discarding unreadable task data" in r.getMessage() for r in caplog.records)


def test_generate_openapi(tmp_path):
    out = tmp_path / "interfaces" / "openapi.json"
    path = generate_openapi(str(out))
    assert path == str(out)
    schema = json.loads(out.read_text(encoding="utf-8"))
    assert "/api/v1/tasks/" in schema["paths"]
    assert "/api/v1/tasks/{task_id}/toggle" in schema["paths"]
    assert {t["name"] for t in schema["tags"]} >= {"health", "tasks"}
