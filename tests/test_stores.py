import json

import pytest

from training_tracker.database.stores import JsonFileStore, SqlProgressStore, StoreError


class TestJsonFileStore:
    def test_missing_file_reads_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "missing.json")
        assert store.get("anything") is None

    def test_set_get_delete(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        store = JsonFileStore(path)

        store.set("training-confirmations", {"t1": {"confirmed": True}})
        assert store.get("training-confirmations") == {"t1": {"confirmed": True}}
        assert json.loads(path.read_text(encoding="utf-8")) == {"training-confirmations": {"t1": {"confirmed": True}}}

        store.delete("training-confirmations")
        assert store.get("training-confirmations") is None

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonFileStore(tmp_path / "store.json")
        store.set("a", 1)
        store.set("b", 2)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["store.json"]

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileStore(path)

        assert store.get("a") is None
        store.set("a", 1)
        assert store.get("a") == 1

    def test_non_object_file_reads_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert JsonFileStore(path).get("a") is None

    def test_unwritable_location_raises_store_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileStore(blocker / "store.json")
        with pytest.raises(StoreError):
            store.set("a", 1)


class TestSqlProgressStore:
    @pytest.fixture
    def store(self, tmp_path):
        store = SqlProgressStore(f"sqlite:///{tmp_path / 'progress.db'}")
        yield store
        store.close()

    def test_unknown_user(self, store):
        assert store.get("nobody") is None
        assert store.updated_at("nobody") is None

    def test_upsert(self, store):
        store.set("user-1", {"t1": {"confirmed": True, "date": "2025-03-01"}})
        first_stamp = store.updated_at("user-1")
        store.set("user-1", {"t2": {"confirmed": True, "date": "2025-03-02"}})

        assert store.get("user-1") == {"t2": {"confirmed": True, "date": "2025-03-02"}}
        assert store.updated_at("user-1") >= first_stamp

    def test_users_are_isolated(self, store):
        store.set("user-1", {"t1": {"confirmed": True}})
        store.set("user-2", {"t2": {"confirmed": True}})
        assert set(store.get("user-1")) == {"t1"}
        assert set(store.get("user-2")) == {"t2"}

    def test_delete(self, store):
        store.set("user-1", {"t1": {"confirmed": True}})
        store.delete("user-1")
        store.delete("user-1")
        assert store.get("user-1") is None

    def test_data_survives_reopen(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'progress.db'}"
        first = SqlProgressStore(url)
        first.set("user-1", {"t1": {"confirmed": True}})
        first.close()

        second = SqlProgressStore(url)
        assert second.get("user-1") == {"t1": {"confirmed": True}}
        second.close()

    def test_bad_url_raises_store_error(self):
        with pytest.raises(StoreError):
            SqlProgressStore("notadialect://nowhere")
