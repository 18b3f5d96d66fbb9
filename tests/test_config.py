"""Tests for settings and backend selection."""

import logging
from pathlib import Path
from zoneinfo import ZoneInfo

from timebox.config import Settings
from timebox.storage import create_backend
from timebox.storage.json_file import JsonFileLoader, JsonFileStorage
from timebox.storage.sqlite import SqliteLoader, SqliteStorage
from timebox.tracking import JsonFormat, SortOrder


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        for name in ("TIMEBOX_STORAGE_DIR", "TIMEBOX_BACKEND", "TIMEBOX_LIST_LIMIT"):
            monkeypatch.delenv(name, raising=False)

        config = Settings(_env_file=None)

        assert config.storage_dir == Path(".timebox-tracker")
        assert config.backend == "json"
        assert config.list_limit == 25
        assert config.get_storage_path() == Path(".timebox-tracker") / "time_boxes.json"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TIMEBOX_STORAGE_DIR", str(tmp_path))
        monkeypatch.setenv("TIMEBOX_BACKEND", "sqlite")
        monkeypatch.setenv("TIMEBOX_JSON_FORMAT", "compact")
        monkeypatch.setenv("TIMEBOX_LIST_ORDER", "descending")

        config = Settings(_env_file=None)

        assert config.get_storage_path() == tmp_path / "time_boxes.db"
        assert config.json_format == JsonFormat.COMPACT
        assert config.list_order == SortOrder.DESCENDING


class TestCreateBackend:
    """Tests for create_backend()."""

    def test_json_backend(self, tmp_path):
        config = Settings(_env_file=None, storage_dir=tmp_path, backend="json", repair_on_load=True)

        backend = create_backend(config)

        assert isinstance(backend.loader, JsonFileLoader)
        assert isinstance(backend.storage, JsonFileStorage)
        assert backend.storage.path == tmp_path / "time_boxes.json"

    def test_sqlite_backend(self, tmp_path):
        config = Settings(_env_file=None, storage_dir=tmp_path, backend="sqlite")

        backend = create_backend(config)

        assert isinstance(backend.loader, SqliteLoader)
        assert isinstance(backend.storage, SqliteStorage)
        assert backend.initializer.path == tmp_path / "time_boxes.db"

    def test_initializer_and_loader_share_the_path(self, tmp_path):
        backend = create_backend(Settings(_env_file=None, storage_dir=tmp_path))

        backend.initializer.init()

        assert backend.loader.load().finished == []


class TestTimezone:
    """Tests for Settings.get_timezone()."""

    def test_system_timezone_by_default(self, monkeypatch):
        monkeypatch.delenv("TIMEBOX_TIMEZONE", raising=False)
        assert Settings(_env_file=None).get_timezone() is None

    def test_named_timezone(self):
        config = Settings(_env_file=None, timezone="Europe/Berlin")
        assert config.get_timezone() == ZoneInfo("Europe/Berlin")

    def test_unknown_timezone_falls_back(self, caplog):
        config = Settings(_env_file=None, timezone="Mars/Olympus_Mons")

        with caplog.at_level(logging.WARNING, logger="timebox.config"):
            assert config.get_timezone() is None
        assert "Mars/Olympus_Mons" in caplog.text
