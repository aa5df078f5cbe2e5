"""Tests for the config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from nesha.config import (
    get_api_key,
    get_db_path,
    load_config,
    reset_db_path,
    save_config,
    set_db_path,
    set_model,
)
from nesha.models import AppConfig


class TestLoadSaveConfig:
    def test_load_default_when_missing(self) -> None:
        config = load_config()
        assert config.db_path is None
        assert config.model == "gemini-2.5-flash"

    def test_save_and_load_roundtrip(self) -> None:
        cfg = AppConfig(db_path="/tmp/test.db", model="gemini-x", request_timeout=30)
        path = save_config(cfg)
        assert path.exists()

        loaded = load_config()
        assert loaded.db_path == "/tmp/test.db"
        assert loaded.model == "gemini-x"
        assert loaded.request_timeout == 30

    def test_load_handles_corrupt_file(self, tmp_path: Path) -> None:
        cfg_dir = tmp_path / "config"
        cfg_dir.mkdir(parents=True, exist_ok=True)
        (cfg_dir / "config.json").write_text("not valid json{{{")
        config = load_config()
        assert config.db_path is None  # falls back to default

    def test_load_handles_invalid_values(self, tmp_path: Path) -> None:
        cfg_dir = tmp_path / "config"
        cfg_dir.mkdir(parents=True, exist_ok=True)
        (cfg_dir / "config.json").write_text('{"request_timeout": -3}')
        assert load_config().request_timeout == 20.0

    def test_set_model(self) -> None:
        set_model("gemini-pro")
        assert load_config().model == "gemini-pro"


class TestDbPath:
    def test_default_path(self) -> None:
        path = get_db_path()
        assert path.name == "nesha.db"

    def test_set_db_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.db"
        cfg = set_db_path(str(custom))
        assert cfg.db_path == str(custom)
        assert get_db_path() == custom

    def test_set_db_path_directory(self, tmp_path: Path) -> None:
        d = tmp_path / "somedir"
        d.mkdir()
        cfg = set_db_path(str(d))
        assert cfg.db_path is not None
        assert cfg.db_path.endswith("nesha.db")

    def test_reset_db_path(self, tmp_path: Path) -> None:
        set_db_path(str(tmp_path / "custom.db"))
        cfg = reset_db_path()
        assert cfg.db_path is None


class TestApiKey:
    def test_missing(self) -> None:
        assert get_api_key(AppConfig()) is None

    def test_from_config(self) -> None:
        assert get_api_key(AppConfig(api_key=" abc ")) == "abc"

    def test_env_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_KEY", "from-env")
        assert get_api_key(AppConfig(api_key="from-config")) == "from-env"

    def test_gemini_var_first(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_KEY", "generic")
        monkeypatch.setenv("GEMINI_API_KEY", "gemini")
        assert get_api_key() == "gemini"
