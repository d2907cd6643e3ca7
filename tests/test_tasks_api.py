from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from taskmaster.main import create_app
from taskmaster.storage import MemoryBackend
from taskmaster.store import TaskStore

BASE = "/api/v1/tasks/"


def create_task_payload(
    title="Test Task",
    description="Do something",
    priority="medium",
    due_date=None,
):
    payload = {
        "title": title,
        "description": description,
        "priority": priority,
    }
    if due_date is not None:
        payload["dueDate"] = due_date
    return payload


def assert_task_shape(task: dict):
    for key in ["id", "title", "description", "dueDate", "priority", "completed", "createdAt"]:
        assert key in task
    assert isinstance(task["id"], str)
    assert isinstance(task["title"], str)
    assert isinstance(task["completed"], bool)
    assert task["priority"] in ("low", "medium", "high")
    datetime.fromisoformat(task["createdAt"].replace("Z", "+00:00"))


def create(client: TestClient, **kwargs) -> dict:
    res = client.post(BASE, json=create_task_payload(**kwargs))
    assert res.status_code == 201
    return res.json()


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] == "memory"
        assert data["tasks"] == 0


class TestTasksCRUD:
    def test_create_task_minimal(self, client):
        res = client.post(BASE, json={"title": "Buy milk"})
        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["title"] == "Buy milk"
        assert task["description"] == ""
        assert task["dueDate"] is None
        assert task["priority"] == "medium"
        assert task["completed"] is False

    def test_create_task_with_due_date(self, client):
        task = create(client, title="Pay bills", description="Electricity", due_date="2099-12-25")
        assert_task_shape(task)
        assert task["dueDate"] == "2099-12-25"

    def test_get_task_and_not_found(self, client):
        tid = create(client, title="Read book")["id"]

        res_get = client.get(f"{BASE}{tid}")
        assert res_get.status_code == 200
        assert res_get.json()["title"] == "Read book"

        res_404 = client.get(f"{BASE}missing")
        assert res_404.status_code == 404
        assert res_404.json()["detail"] == "Task not found"

    def test_put_updates_in_place(self, client):
        first = create(client, title="First")
        create(client, title="Second")

        res_put = client.put(
            f"{BASE}{first['id']}",
            json=create_task_payload(title="First, renamed", description="", priority="high", due_date="2100-01-01"),
        )
        assert res_put.status_code == 200
        updated = res_put.json()
        assert updated["id"] == first["id"]
        assert updated["createdAt"] == first["createdAt"]
        assert updated["title"] == "First, renamed"
        assert updated["priority"] == "high"
        assert updated["dueDate"] == "2100-01-01"

        titles = [t["title"] for t in client.get(BASE).json()["items"]]
        assert titles == ["Second", "First, renamed"]

        res_put_nf = client.put(f"{BASE}missing", json=create_task_payload())
        assert res_put_nf.status_code == 404

    def test_edit_checks_out_task(self, client):
        task = create(client, title="Draft me", description="notes", priority="low", due_date="2030-06-01")

        res_edit = client.post(f"{BASE}{task['id']}/edit")
        assert res_edit.status_code == 200
        assert res_edit.json() == {
            "title": "Draft me",
            "description": "notes",
            "dueDate": "2030-06-01",
            "priority": "low",
        }
        assert client.get(f"{BASE}{task['id']}").status_code == 404

        res_again = client.post(f"{BASE}{task['id']}/edit")
        assert res_again.status_code == 404

        resubmitted = client.post(BASE, json=res_edit.json())
        assert resubmitted.status_code == 201
        assert resubmitted.json()["id"] != task["id"]

    def test_toggle(self, client):
        tid = create(client, title="Toggle me")["id"]
        assert client.post(f"{BASE}{tid}/toggle").json()["completed"] is True
        assert client.post(f"{BASE}{tid}/toggle").json()["completed"] is False
        assert client.post(f"{BASE}missing/toggle").status_code == 404

    def test_delete_is_idempotent(self, client):
        tid = create(client, title="ToDelete")["id"]

        res_del = client.delete(f"{BASE}{tid}")
        assert res_del.status_code == 204
        assert res_del.text == ""
        assert client.get(f"{BASE}{tid}").status_code == 404

        res_del_again = client.delete(f"{BASE}{tid}")
        assert res_del_again.status_code == 204

    def test_clear(self, client):
        a = create(client, title="A")
        create(client, title="B")
        client.post(f"{BASE}{a['id']}/toggle")

        assert client.delete(f"{BASE}?completed_only=true").status_code == 204
        assert [t["title"] for t in client.get(BASE).json()["items"]] == ["B"]

        assert client.delete(BASE).status_code == 204
        assert client.get(f"{BASE}stats").json() == {"total": 0, "completed": 0, "pending": 0}


class TestListFilteringSearch:
    def seed_tasks(self, client, count=6):
        ids = []
        for i in range(count):
            task = create(client, title=f"Task {i}", description=f"Desc {i}")
            if i % 2 == 0:
                client.post(f"{BASE}{task['id']}/toggle")
            ids.append(task["id"])
        return ids

    def test_list_newest_first_with_stats(self, client):
        ids = self.seed_tasks(client, 4)
        body = client.get(BASE).json()
        assert [item["id"] for item in body["items"]] == list(reversed(ids))
        assert body["empty"] is False
        assert body["filter"] == "all"
        assert body["countLabel"] == "(4 tasks)"
        assert body["stats"] == {"total": 4, "completed": 2, "pending": 2}

    def test_list_filter_completed_and_active(self, client):
        self.seed_tasks(client)

        completed = client.get(f"{BASE}?filter=completed").json()
        assert completed["items"]
        assert all(item["completed"] is True for item in completed["items"])
        assert all("completed" in item["cssClass"] for item in completed["items"])

        active = client.get(f"{BASE}?filter=active").json()
        assert active["items"]
        assert all(item["completed"] is False for item in active["items"])
        # stats always cover the whole collection
        assert active["stats"]["total"] == 6

    def test_list_search_matches_title_and_description(self, client):
        self.seed_tasks(client, 5)
        titles = [item["title"] for item in client.get(f"{BASE}?q=task 1").json()["items"]]
        assert titles == ["Task 1"]

        res_desc = client.get(f"{BASE}?q=DESC 2").json()
        assert [item["description"] for item in res_desc["items"]] == ["Desc 2"]
        assert res_desc["search"] == "DESC 2"

    def test_search_text_is_trimmed(self, client):
        self.seed_tasks(client, 3)
        body = client.get(BASE, params={"q": "  task 2 "}).json()
        assert [item["title"] for item in body["items"]] == ["Task 2"]
        assert body["search"] == "task 2"

    def test_empty_state(self, client):
        body = client.get(f"{BASE}?q=nothing-matches").json()
        assert body["items"] == []
        assert body["empty"] is True

    def test_invalid_filter(self, client):
        res = client.get(f"{BASE}?filter=done")
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"

    def test_stats_example(self, client):
        tid = create(client, title="Buy milk", priority="low")["id"]
        assert client.get(f"{BASE}stats").json() == {"total": 1, "completed": 0, "pending": 1}
        client.post(f"{BASE}{tid}/toggle")
        assert client.get(f"{BASE}stats").json() == {"total": 1, "completed": 1, "pending": 0}


class TestValidationErrors:
    def test_create_validation_error_title_empty(self, client):
        res = client.post(BASE, json={"title": "  ", "description": "x"})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)
        assert client.get(f"{BASE}stats").json()["total"] == 0

    def test_put_validation_error_bad_due_date(self, client):
        tid = create(client, title="Due date bad")["id"]
        res = client.put(f"{BASE}{tid}", json={"title": "Due date bad", "dueDate": "not-a-date"})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert isinstance(body.get("detail"), list)

    def test_bad_priority(self, client):
        res = client.post(BASE, json={"title": "x", "priority": "urgent"})
        assert res.status_code == 422

    @pytest.mark.parametrize("title", [123, ["x"], {"text": "x"}])
    def test_non_string_title(self, client, title):
        res = client.post(BASE, json={"title": title})
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"
        tid = create(client, title="Keep me")["id"]
        res = client.put(f"{BASE}{tid}", json={"title": title})
        assert res.status_code == 422
        assert client.get(f"{BASE}{tid}").json()["title"] == "Keep me"

    def test_long_title_is_accepted(self, client):
        res = client.post(BASE, json={"title": "x" * 500})
        assert res.status_code == 201
        assert len(res.json()["title"]) == 500


class TestAppWiring:
    def test_each_app_owns_its_store(self, settings):
        store_a = TaskStore(MemoryBackend())
        store_b = TaskStore(MemoryBackend())
        client_a = TestClient(create_app(settings, store_a))
        client_b = TestClient(create_app(settings, store_b))

        client_a.post(BASE, json={"title": "only in a"})
        assert len(store_a) == 1
        assert len(store_b) == 0
        assert client_b.get(BASE).json()["empty"] is True

    def test_seeds_samples_when_configured(self, settings, tmp_path):
        from dataclasses import replace

        seeded = replace(settings, seed_sample_tasks=True, persistence_backend="file")
        client = TestClient(create_app(seeded))
        assert client.get(f"{BASE}stats").json() == {"total": 3, "completed": 1, "pending": 2}
        assert client.get("/").json()["backend"] == "file"
        assert (tmp_path / "data" / "tasks.json").exists()

        # a second app over the same directory loads instead of reseeding
        again = TestClient(create_app(seeded))
        assert again.get(f"{BASE}stats").json()["total"] == 3
