"""Tests for torrentdeck.config.config layered loading."""

from __future__ import annotations

import pytest
import toml

from torrentdeck.config.config import (
    ConfigManager,
    get_config,
    init_config,
    reset_config,
    set_config,
)
from torrentdeck.models import Config, LogLevel
from torrentdeck.utils.exceptions import ConfigurationError

pytestmark = [pytest.mark.unit, pytest.mark.config]


class TestConfigManager:
    """Defaults, file, environment and overrides."""

    def test_defaults_without_file(self, tmp_path):
        manager = ConfigManager()
        assert manager.config_file is None
        config = manager.config
        assert config.engine.url == "http://127.0.0.1:3030"
        assert config.ui.refresh_interval == 0.5
        assert config.ui.paste_debounce_ms == 200
        assert config.add.probe_attempts == 3
        # No ~/Downloads in the isolated home, so the working directory is used
        assert config.add.download_dir == str(tmp_path)

    def test_file_in_working_directory_is_found(self, tmp_path):
        (tmp_path / "torrentdeck.toml").write_text(
            '[engine]\nurl = "http://10.0.0.2:3030/"\n\n[ui]\nrefresh_interval = 2.0\n'
        )
        manager = ConfigManager()
        assert manager.config_file == tmp_path / "torrentdeck.toml"
        assert manager.config.engine.url == "http://10.0.0.2:3030"
        assert manager.config.ui.refresh_interval == 2.0

    def test_file_in_user_config_dir_is_found(self, tmp_path):
        config_dir = tmp_path / "home" / ".config" / "torrentdeck"
        config_dir.mkdir(parents=True)
        (config_dir / "torrentdeck.toml").write_text("[add]\nprobe_attempts = 5\n")
        assert ConfigManager().config.add.probe_attempts == 5

    def test_explicit_missing_file_fails(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Config file not found"):
            ConfigManager(tmp_path / "nope.toml")

    def test_malformed_file_fails(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[engine\nurl = ")
        with pytest.raises(ConfigurationError, match="Failed to load config file"):
            ConfigManager(path)

    def test_invalid_values_fail(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('[engine]\nurl = "ftp://x"\n')
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager(path)

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "c.toml"
        path.write_text("[ui]\nrefresh_interval = 2.0\npaste_debounce_ms = 100\n")
        monkeypatch.setenv("TORRENTDECK_REFRESH_INTERVAL", "1.5")
        monkeypatch.setenv("TORRENTDECK_STRUCTURED_LOGGING", "yes")
        monkeypatch.setenv("TORRENTDECK_LOG_LEVEL", "DEBUG")
        config = ConfigManager(path).config
        assert config.ui.refresh_interval == 1.5
        assert config.ui.paste_debounce_ms == 100
        assert config.observability.structured_logging is True
        assert config.observability.log_level == LogLevel.DEBUG

    def test_numeric_looking_download_dir_stays_string(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TORRENTDECK_DOWNLOAD_DIR", "2024")
        assert ConfigManager().config.add.download_dir == "2024"

    def test_overrides_win_and_none_is_skipped(self, monkeypatch):
        monkeypatch.setenv("TORRENTDECK_ENGINE_URL", "http://env:1")
        manager = ConfigManager(
            overrides={"engine.url": "http://cli:2", "ui.refresh_interval": None}
        )
        assert manager.config.engine.url == "http://cli:2"
        assert manager.config.ui.refresh_interval == 0.5

    def test_download_dir_expands_home(self, tmp_path):
        manager = ConfigManager(overrides={"add.download_dir": "~/dl"})
        assert manager.config.add.download_dir == str(tmp_path / "home" / "dl")

    def test_export_round_trips(self):
        manager = ConfigManager(overrides={"ui.refresh_interval": 3.0})
        exported = toml.loads(manager.export())
        assert exported["ui"]["refresh_interval"] == 3.0
        assert "log_file" not in exported["observability"]
        assert Config(**exported) == manager.config


class TestGlobalConfig:
    """Module-level accessors."""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_init_and_set_config(self):
        manager = init_config(overrides={"add.probe_attempts": 7})
        assert get_config() is manager.config
        assert get_config().add.probe_attempts == 7

        replacement = Config()
        set_config(replacement)
        assert get_config() is replacement

        reset_config()
        assert get_config() is not replacement
