"""Tests for the JSON file persistence strategies."""

import json
import os
from pathlib import Path

import pytest

from conftest import make_box, utc
from timebox.storage.json_file import (
    JsonFileInit,
    JsonFileLoader,
    JsonFileStorage,
    serialize_state,
)
from timebox.tracking import (
    AlreadyExistsError,
    CorruptStateError,
    InMemoryTimeTracker,
    JsonFormat,
    StateNotFoundError,
    StorageIOError,
    TrackerState,
)


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / ".timebox-tracker" / "time_boxes.json"


class TestJsonFileInit:
    """Tests for creating the state file."""

    def test_init_creates_empty_state(self, state_path):
        JsonFileInit(state_path).init()

        assert state_path.exists()
        assert JsonFileLoader(state_path).load() == TrackerState()
        assert (state_path.parent / ".gitignore").read_text() == "*"

    def test_init_twice_fails(self, state_path):
        JsonFileInit(state_path).init()
        with pytest.raises(AlreadyExistsError):
            JsonFileInit(state_path).init()

    def test_init_below_a_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StorageIOError):
            JsonFileInit(blocker / "time_boxes.json").init()

    def test_init_keeps_existing_gitignore(self, state_path):
        state_path.parent.mkdir(parents=True)
        (state_path.parent / ".gitignore").write_text("custom")

        JsonFileInit(state_path).init()

        assert (state_path.parent / ".gitignore").read_text() == "custom"

    def test_init_without_gitignore(self, state_path):
        JsonFileInit(state_path, gitignore=False).init()
        assert not (state_path.parent / ".gitignore").exists()

    def test_init_compact(self, state_path):
        JsonFileInit(state_path, json_format=JsonFormat.COMPACT).init()
        assert "\n" not in state_path.read_text()

    def test_gitignore_failure_keeps_state_file(self, state_path, monkeypatch, caplog):
        def fail_write_text(self, *args, **kwargs):
            raise OSError("read-only directory")

        monkeypatch.setattr(Path, "write_text", fail_write_text)

        JsonFileInit(state_path).init()

        assert JsonFileLoader(state_path).load() == TrackerState()
        assert not (state_path.parent / ".gitignore").exists()
        assert "read-only directory" in caplog.text


class TestJsonFileLoader:
    """Tests for loading the state file."""

    def test_missing_file(self, state_path):
        with pytest.raises(StateNotFoundError):
            JsonFileLoader(state_path).load()

    def test_blank_file_is_empty_state(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text("  \n")
        assert JsonFileLoader(state_path).load() == TrackerState()

    def test_invalid_utf8(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_bytes(b'{"active": null, "finished": [\xff\xfe]}')
        with pytest.raises(CorruptStateError, match="UTF-8"):
            JsonFileLoader(state_path).load()

    def test_malformed_json(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text("{not json")
        with pytest.raises(CorruptStateError):
            JsonFileLoader(state_path).load()

    def test_box_without_notes_is_rejected(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(json.dumps({"active": {"notes": []}, "finished": []}))
        with pytest.raises(CorruptStateError):
            JsonFileLoader(state_path).load()

    def test_reads_hand_written_file(self, state_path):
        state_path.parent.mkdir(parents=True)
        state_path.write_text(
            json.dumps(
                {
                    "active": None,
                    "finished": [
                        {
                            "notes": [
                                {"time": "2025-01-01T10:00:00Z", "description": "start"},
                                {"time": "2025-01-01T12:30:00+01:00", "description": "stop"},
                            ]
                        }
                    ],
                }
            )
        )

        state = JsonFileLoader(state_path).load()

        box = state.finished[0]
        assert box.time_stop() == utc(2025, 1, 1, 11, 30)
        assert box.duration_in_hours() == 1.5

    def test_unsorted_file_is_rejected(self, state_path):
        state = TrackerState(finished=[make_box(utc(2025, 1, 2, 10)), make_box(utc(2025, 1, 1, 10))])
        state_path.parent.mkdir(parents=True)
        state_path.write_text(serialize_state(state))

        with pytest.raises(CorruptStateError, match="#1"):
            JsonFileLoader(state_path).load()

    def test_unsorted_file_is_repaired_on_request(self, state_path, caplog):
        state = TrackerState(finished=[make_box(utc(2025, 1, 2, 10), "b"), make_box(utc(2025, 1, 1, 10), "a")])
        state_path.parent.mkdir(parents=True)
        state_path.write_text(serialize_state(state))

        loaded = JsonFileLoader(state_path, repair=True).load()

        assert [b.notes[0].description for b in loaded.finished] == ["a", "b"]
        assert "sorting in memory" in caplog.text


class TestJsonFileStorage:
    """Tests for writing the state file."""

    def test_round_trip(self, state_path, sample_state):
        JsonFileStorage(state_path).save(sample_state)
        assert JsonFileLoader(state_path).load() == sample_state

    def test_pretty_and_compact(self, tmp_path, sample_state):
        pretty = tmp_path / "pretty.json"
        compact = tmp_path / "compact.json"

        JsonFileStorage(pretty, JsonFormat.PRETTY).save(sample_state)
        JsonFileStorage(compact, JsonFormat.COMPACT).save(sample_state)

        assert "\n  " in pretty.read_text()
        assert "\n" not in compact.read_text()
        assert json.loads(pretty.read_text()) == json.loads(compact.read_text())

    def test_document_layout(self, state_path, sample_state):
        JsonFileStorage(state_path).save(sample_state)

        document = json.loads(state_path.read_text())

        assert set(document) == {"active", "finished"}
        assert document["active"]["notes"][0] == {
            "time": "2025-01-02T09:00:00Z",
            "description": "planning",
        }
        assert len(document["finished"]) == 2

    def test_no_swap_file_left_behind(self, state_path, sample_state):
        JsonFileStorage(state_path).save(sample_state)
        JsonFileStorage(state_path).save(TrackerState())

        assert sorted(p.name for p in state_path.parent.iterdir()) == ["time_boxes.json"]
        assert JsonFileLoader(state_path).load() == TrackerState()

    def test_failed_replace_keeps_old_file(self, state_path, sample_state, monkeypatch):
        storage = JsonFileStorage(state_path)
        storage.save(sample_state)

        def fail_replace(src, dst):
            raise OSError("no space left")

        monkeypatch.setattr(os, "replace", fail_replace)

        with pytest.raises(StorageIOError, match="no space left"):
            storage.save(TrackerState())

        assert JsonFileLoader(state_path).load() == sample_state
        assert [p.name for p in state_path.parent.iterdir()] == ["time_boxes.json"]


    def test_parent_is_a_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StorageIOError):
            JsonFileStorage(blocker / "time_boxes.json").save(TrackerState())
        assert blocker.read_text() == "not a directory"


class TestTrackerWithJsonFile:
    """The in-memory tracker persisting through the JSON strategies."""

    def test_mutations_survive_reopening(self, state_path, clock):
        JsonFileInit(state_path, gitignore=False).init()
        tracker = InMemoryTimeTracker.open(
            JsonFileLoader(state_path), JsonFileStorage(state_path), clock=clock
        )

        tracker.begin("start")
        clock.advance(minutes=45)
        tracker.note("done", end=True)
        tracker.begin("next")

        reopened = InMemoryTimeTracker.open(JsonFileLoader(state_path), clock=clock)
        assert reopened.state() == tracker.state()
        assert reopened.active().notes[0].description == "next"
        assert reopened.finished().items[0].duration_in_minutes() == 45.0
