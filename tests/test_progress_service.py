import pytest

from training_tracker.core.data_parser import export_csv
from training_tracker.core.models import Section, Task
from training_tracker.database.stores import JsonFileStore, SqlProgressStore, StoreError
from training_tracker.services.progress_service import (
    LOCAL_CONFIRMATIONS_KEY,
    ImportFormatError,
    ProgressService,
    TaskNotFoundError,
)


class BrokenStore:
    def get(self, key):
        raise StoreError("offline")

    def set(self, key, value):
        raise StoreError("offline")

    def delete(self, key):
        raise StoreError("offline")


def make_sections():
    return [
        Section("Intro", [
            Task("task-9", "Intro", "Culture", "Company history"),
            Task("task-10", "Intro", "Rules", "Attendance policy"),
        ]),
        Section("Skills", [Task("task-11", "Skills", "Product", "Pricing rules")]),
    ]


@pytest.fixture
def local_store(tmp_path):
    return JsonFileStore(tmp_path / "local.json")


@pytest.fixture
def remote_store(tmp_path):
    store = SqlProgressStore(f"sqlite:///{tmp_path / 'remote.db'}")
    yield store
    store.close()


@pytest.fixture
def service(local_store):
    return ProgressService(make_sections(), local_store, meta={"员工": "Test"})


def test_confirm_persists_locally(service, local_store):
    result = service.confirm("task-9", True)

    assert result["id"] == "task-9"
    assert result["confirmed"] is True
    assert result["date"] == result["updatedAt"]
    assert result["synced"] is False
    assert local_store.get(LOCAL_CONFIRMATIONS_KEY)["task-9"]["confirmed"] is True


def test_confirm_unknown_task(service):
    with pytest.raises(TaskNotFoundError):
        service.confirm("task-404", True)


def test_parsed_sections_are_not_mutated(service):
    service.confirm("task-9", True)
    assert service.sections[0].tasks[0].confirmed is False
    assert service.merged_sections()[0].tasks[0].confirmed is True


def test_overlay_survives_new_service(service, local_store):
    service.confirm("task-10", True)
    reopened = ProgressService(make_sections(), local_store)
    assert reopened.stats()["progress"] == {"total": 3, "completed": 1, "percentage": 33}


def test_view_filters_and_reports_progress(service):
    service.confirm("task-11", True)
    view = service.view(query="", tab="completed")

    assert [s["title"] for s in view["sections"]] == ["Skills"]
    assert view["sections"][0]["tasks"][0]["confirmed"] is True
    assert [n["done"] for n in view["navigation"]] == [0, 1]
    assert view["progress"]["completed"] == 1


def test_reset(service):
    service.confirm("task-9", True)
    service.reset()
    assert service.get_overlay() == {}
    assert service.stats()["progress"]["completed"] == 0


def test_activity(service):
    service.confirm("task-9", True)
    service.confirm("task-10", True)
    activity = service.activity()
    assert len(activity) == 1
    assert activity[0]["count"] == 2


def test_json_export_and_import(service):
    service.confirm("task-10", True)
    envelope = service.export_json()

    assert envelope["meta"] == {"员工": "Test"}
    assert envelope["progress"] == {"total": 3, "completed": 1, "percentage": 33}
    assert [t["id"] for t in envelope["tasks"]] == ["task-9", "task-10", "task-11"]
    completion = envelope["tasks"][1]["completionDate"]

    service.reset()
    assert service.import_json(envelope) == 1
    overlay = service.get_overlay()
    assert list(overlay) == ["task-10"]
    assert overlay["task-10"]["date"] == completion


@pytest.mark.parametrize("payload", [None, [], {"tasks": "nope"}, {"meta": {}}])
def test_json_import_rejects_bad_payload(service, payload):
    with pytest.raises(ImportFormatError):
        service.import_json(payload)


def test_csv_export_reflects_overlay(service):
    service.confirm("task-9", True)
    lines = service.export_csv().split("\n")
    assert len(lines) == 4
    assert lines[1].startswith('"task-9","Intro","Culture","Company history"')
    assert '"true"' in lines[1]
    assert lines[2].endswith('"false",""')


def test_csv_import_replaces_tasks_and_overlay(service):
    tasks = [
        Task("n1", "New", "Cat", "Imported one", confirmed=True, completion_date="2025-04-01T00:00:00+00:00"),
        Task("n2", "New", "Cat", "Imported two"),
    ]
    service.confirm("task-9", True)

    result = service.import_csv(export_csv(tasks))

    assert result == {"sections": 1, "tasks": 2, "confirmed": 1}
    assert service.task_ids() == ["n1", "n2"]
    assert set(service.get_overlay()) == {"n1"}
    merged = service.merged_sections()[0].tasks
    assert merged[0].completion_date == "2025-04-01T00:00:00+00:00"


def test_csv_import_without_tasks(service):
    with pytest.raises(ImportFormatError, match="No valid task data found"):
        service.import_csv('"ID","Section","Category","Content"')
    assert service.task_ids() == ["task-9", "task-10", "task-11"]


def test_confirm_pushes_to_remote(local_store, remote_store):
    service = ProgressService(make_sections(), local_store, remote_store=remote_store)
    result = service.confirm("task-9", True, user_id="user-1")

    assert result["synced"] is True
    assert remote_store.get("user-1")["task-9"]["confirmed"] is True


def test_remote_failure_keeps_local_copy(local_store):
    service = ProgressService(make_sections(), local_store, remote_store=BrokenStore())
    result = service.confirm("task-9", True, user_id="user-1")

    assert result["synced"] is False
    assert service.get_overlay()["task-9"]["confirmed"] is True
    assert service.pull_remote("user-1") == {"synced": False, "count": 1}


def test_push_without_remote(service):
    assert service.push_remote("user-1") is False
    assert service.pull_remote("user-1") == {"synced": False, "count": 0}


def test_pull_merges_newer_remote_entries(local_store, remote_store):
    service = ProgressService(make_sections(), local_store, remote_store=remote_store)
    local_store.set(LOCAL_CONFIRMATIONS_KEY, {
        "task-9": {"confirmed": True, "date": "2025-03-01T00:00:00+00:00", "updatedAt": "2025-03-01T00:00:00+00:00"},
        "task-10": {"confirmed": True, "date": "2025-03-09T00:00:00+00:00", "updatedAt": "2025-03-09T00:00:00+00:00"},
    })
    remote_store.set("user-1", {
        "task-9": {"confirmed": False, "date": "", "updatedAt": "2025-03-05T00:00:00+00:00"},
        "task-10": {"confirmed": False, "date": "", "updatedAt": "2025-03-02T00:00:00+00:00"},
        "task-11": {"confirmed": True, "date": "2025-03-03T00:00:00+00:00", "updatedAt": "2025-03-03T00:00:00+00:00"},
    })

    result = service.pull_remote("user-1")

    assert result["synced"] is True
    assert result["count"] == 3
    overlay = service.get_overlay()
    assert overlay["task-9"]["confirmed"] is False
    assert overlay["task-10"]["confirmed"] is True
    assert overlay["task-11"]["confirmed"] is True


def test_pull_with_no_remote_row(local_store, remote_store):
    service = ProgressService(make_sections(), local_store, remote_store=remote_store)
    service.confirm("task-9", True)
    result = service.pull_remote("user-1")
    assert result["synced"] is True
    assert result["count"] == 1
