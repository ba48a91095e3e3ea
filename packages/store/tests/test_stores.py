"""Tests for prinbox-store backends and persisted documents."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from prinbox_store.blob import VersionedBlob
from prinbox_store.file import FileStore
from prinbox_store.gist import GistStore
from prinbox_store.memory import MemoryStore
from prinbox_store.models import ReadMarker, ViewerSettings
from prinbox_store.read_status import READ_STATUS_KEY, ReadMarkerStore
from prinbox_store.settings import SettingsStore
from prinbox_store.sqlite import SQLiteStore

READ_AT = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


def _markers():
    return {
        101: ReadMarker(last_read_at=READ_AT, comments_read_count=2),
        202: ReadMarker(last_read_at=READ_AT + timedelta(hours=1), comments_read_count=0),
    }


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------


class TestMemoryStore:
    def test_missing_key_returns_none(self):
        assert MemoryStore().read("read_status") is None

    def test_write_then_read(self):
        store = MemoryStore()
        store.write("k", "v")
        assert store.read("k") == "v"

    def test_close_is_safe(self):
        MemoryStore().close()


# ---------------------------------------------------------------------------
# FileStore
# ---------------------------------------------------------------------------


class TestFileStore:
    def test_write_and_read(self, tmp_path):
        store = FileStore(directory=str(tmp_path / "state"))
        store.write("read_status", '{"version": 1}')
        assert store.read("read_status") == '{"version": 1}'
        assert (tmp_path / "state" / "read_status.json").exists()

    def test_missing_key_returns_none(self, tmp_path):
        assert FileStore(directory=str(tmp_path)).read("nothing") is None

    def test_no_temp_file_left_behind(self, tmp_path):
        store = FileStore(directory=str(tmp_path))
        store.write("read_status", "{}")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["read_status.json"]

    def test_overwrite_replaces_whole_blob(self, tmp_path):
        store = FileStore(directory=str(tmp_path))
        store.write("k", "a much longer first value")
        store.write("k", "short")
        assert store.read("k") == "short"


# ---------------------------------------------------------------------------
# SQLiteStore
# ---------------------------------------------------------------------------


class TestSQLiteStore:
    def test_write_and_read(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.write("read_status", "{}")
        assert store.read("read_status") == "{}"
        store.close()

    def test_missing_key_returns_none(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        assert store.read("nothing") is None
        store.close()

    def test_overwrite_keeps_one_row(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.write("k", "1")
        store.write("k", "2")
        assert store.read("k") == "2"
        assert store._conn.execute("SELECT COUNT(*) FROM blobs").fetchone()[0] == 1
        store.close()

    def test_persists_across_connections(self, tmp_path):
        """Data written by one SQLiteStore instance must be readable by another."""
        db_path = str(tmp_path / "test.db")
        store_a = SQLiteStore(db_path=db_path)
        store_a.write("k", "v")
        store_a.close()

        store_b = SQLiteStore(db_path=db_path)
        assert store_b.read("k") == "v"
        store_b.close()


# ---------------------------------------------------------------------------
# GistStore
# ---------------------------------------------------------------------------


def _make_gist_mock(files: dict[str, str] | None = None):
    gist = MagicMock()
    gist.files = {}
    for name, content in (files or {}).items():
        file_mock = MagicMock()
        file_mock.content = content
        gist.files[name] = file_mock
    return gist


def _make_gist_store():
    """Return a GistStore with a mocked Github client."""
    store = object.__new__(GistStore)
    store._gist_id = "abc123"
    store._gh = MagicMock()
    return store


class TestGistStore:
    def test_read_existing_file(self):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock({"prinbox_read_status.json": "{}"})
        assert store.read("read_status") == "{}"

    def test_read_missing_file(self):
        store = _make_gist_store()
        store._gh.get_gist.return_value = _make_gist_mock()
        assert store.read("read_status") is None

    def test_write_edits_one_file(self, mocker):
        input_file = mocker.patch("prinbox_store.gist.InputFileContent")
        store = _make_gist_store()
        gist = _make_gist_mock()
        store._gh.get_gist.return_value = gist

        store.write("read_status", '{"version": 1}')

        input_file.assert_called_once_with('{"version": 1}')
        gist.edit.assert_called_once()
        assert list(gist.edit.call_args.kwargs["files"]) == ["prinbox_read_status.json"]

    def test_errors_propagate_to_caller(self):
        store = _make_gist_store()
        store._gh.get_gist.side_effect = Exception("network error")
        with pytest.raises(Exception):
            store.read("read_status")


# ---------------------------------------------------------------------------
# VersionedBlob
# ---------------------------------------------------------------------------


class TestVersionedBlob:
    def test_write_stamps_version(self):
        backend = MemoryStore()
        assert VersionedBlob(backend, "doc", version=3).write({"a": 1}) is True
        assert json.loads(backend.read("doc")) == {"version": 3, "a": 1}

    def test_malformed_json_reads_none(self, caplog):
        backend = MemoryStore({"doc": "{not json"})
        with caplog.at_level(logging.WARNING):
            assert VersionedBlob(backend, "doc").read() is None
        assert "malformed" in caplog.text

    def test_non_object_reads_none(self):
        assert VersionedBlob(MemoryStore({"doc": "[1, 2]"}), "doc").read() is None

    def test_newer_version_reads_none(self):
        assert VersionedBlob(MemoryStore({"doc": '{"version": 9}'}), "doc").read() is None

    def test_backend_read_error_reads_none(self):
        backend = MagicMock()
        backend.read.side_effect = OSError("permission denied")
        assert VersionedBlob(backend, "doc").read() is None

    def test_backend_write_error_returns_false(self, caplog):
        backend = MagicMock()
        backend.write.side_effect = OSError("disk full")
        with caplog.at_level(logging.WARNING):
            assert VersionedBlob(backend, "doc").write({}) is False
        assert "disk full" in caplog.text


# ---------------------------------------------------------------------------
# ReadMarkerStore
# ---------------------------------------------------------------------------


class TestReadMarkerStore:
    def test_save_and_load(self):
        store = ReadMarkerStore(MemoryStore())
        assert store.save(_markers()) is True
        assert store.load() == _markers()

    def test_layout(self):
        backend = MemoryStore()
        ReadMarkerStore(backend).save({101: ReadMarker(last_read_at=READ_AT, comments_read_count=2)})
        assert json.loads(backend.read(READ_STATUS_KEY)) == {
            "version": 1,
            "markers": {"101": {"lastReadAt": "2024-03-01T12:30:00+00:00", "commentsReadCount": 2}},
        }

    def test_load_missing_is_empty(self):
        assert ReadMarkerStore(MemoryStore()).load() == {}

    def test_undo_snapshot_distinguishes_empty_from_missing(self):
        backend = MemoryStore()
        store = ReadMarkerStore(backend)
        assert store.load_state().undo is None
        store.save(_markers(), undo={})
        assert store.load_state().undo == {}

    def test_undo_snapshot_shares_the_document(self):
        backend = MagicMock()
        backend.read.return_value = None
        store = ReadMarkerStore(backend)
        store.save(_markers(), undo={101: ReadMarker(last_read_at=READ_AT, comments_read_count=2)})
        backend.write.assert_called_once()
        key, content = backend.write.call_args.args
        assert key == READ_STATUS_KEY
        assert json.loads(content)["undo"] == {"101": {"lastReadAt": "2024-03-01T12:30:00+00:00", "commentsReadCount": 2}}

    def test_load_state_roundtrip(self):
        store = ReadMarkerStore(MemoryStore())
        undo = {101: ReadMarker(last_read_at=READ_AT, comments_read_count=2)}
        store.save(_markers(), undo=undo)
        state = store.load_state()
        assert state.markers == _markers()
        assert state.undo == undo

    def test_malformed_undo_is_dropped(self):
        payload = {"version": 1, "markers": {}, "undo": ["not", "an", "object"]}
        state = ReadMarkerStore(MemoryStore({READ_STATUS_KEY: json.dumps(payload)})).load_state()
        assert state.undo is None

    def test_legacy_flat_layout(self):
        legacy = {"101": {"prId": 101, "lastReadAt": "2024-03-01T12:30:00.000Z", "commentsReadCount": 2}}
        store = ReadMarkerStore(MemoryStore({READ_STATUS_KEY: json.dumps(legacy)}))
        assert store.load() == {101: ReadMarker(last_read_at=READ_AT, comments_read_count=2)}

    def test_malformed_entry_skipped(self):
        payload = {
            "version": 1,
            "markers": {
                "101": {"lastReadAt": "2024-03-01T12:30:00+00:00", "commentsReadCount": 2},
                "202": {"commentsReadCount": 1},
                "abc": {"lastReadAt": "2024-03-01T12:30:00+00:00"},
                "303": "garbage",
            },
        }
        store = ReadMarkerStore(MemoryStore({READ_STATUS_KEY: json.dumps(payload)}))
        assert list(store.load()) == [101]

    def test_load_failure_is_empty(self):
        backend = MagicMock()
        backend.read.side_effect = OSError("gone")
        assert ReadMarkerStore(backend).load() == {}

    def test_save_writes_once(self):
        backend = MagicMock()
        ReadMarkerStore(backend).save(_markers())
        backend.write.assert_called_once()

    def test_file_backend_roundtrip(self, tmp_path):
        ReadMarkerStore(FileStore(str(tmp_path))).save(_markers())
        assert ReadMarkerStore(FileStore(str(tmp_path))).load() == _markers()


# ---------------------------------------------------------------------------
# SettingsStore
# ---------------------------------------------------------------------------


class TestSettingsStore:
    def test_save_and_load(self):
        store = SettingsStore(MemoryStore())
        store.save(ViewerSettings(organization="acme", usernames=["alice", "bob"]))
        loaded = store.load()
        assert loaded.organization == "acme"
        assert loaded.usernames == ["alice", "bob"]

    def test_missing_is_empty(self):
        loaded = SettingsStore(MemoryStore()).load()
        assert loaded.organization == ""
        assert loaded.usernames == []
