"""Configuration management for torrentdeck.

Configuration is loaded hierarchically: defaults, then a TOML config file,
then ``TORRENTDECK_*`` environment variables, then CLI overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml

from torrentdeck.models import Config
from torrentdeck.utils.exceptions import ConfigurationError
from torrentdeck.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "torrentdeck.toml"

# Mapping of environment variables to config paths
ENV_MAPPINGS: dict[str, str] = {
    "TORRENTDECK_ENGINE_URL": "engine.url",
    "TORRENTDECK_REQUEST_TIMEOUT": "engine.request_timeout",
    "TORRENTDECK_REFRESH_INTERVAL": "ui.refresh_interval",
    "TORRENTDECK_PASTE_DEBOUNCE_MS": "ui.paste_debounce_ms",
    "TORRENTDECK_DOWNLOAD_DIR": "add.download_dir",
    "TORRENTDECK_PROBE_ATTEMPTS": "add.probe_attempts",
    "TORRENTDECK_PROBE_RETRY_DELAY": "add.probe_retry_delay",
    "TORRENTDECK_LOG_LEVEL": "observability.log_level",
    "TORRENTDECK_LOG_FILE": "observability.log_file",
    "TORRENTDECK_STRUCTURED_LOGGING": "observability.structured_logging",
}

# Paths that must stay strings even when they look numeric
_STRING_PATHS = frozenset(
    {"engine.url", "add.download_dir", "observability.log_file", "observability.log_level"}
)

# Global configuration instance
_config_manager: ConfigManager | None = None


def _parse_env_value(raw: str, path: str) -> bool | int | float | str:
    if path in _STRING_PATHS:
        return raw
    low = raw.lower()
    if low in {"true", "yes", "on"}:
        return True
    if low in {"false", "no", "off"}:
        return False
    try:
        if "." in raw:
            return float(raw)
        return int(raw)
    except ValueError:
        return raw


def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    cur = d
    for p in parts[:-1]:
        cur = cur.setdefault(p, {})
    cur[parts[-1]] = value


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(
        self,
        config_file: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
    ):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for torrentdeck.toml
            overrides: Dotted-path overrides (e.g. ``{"engine.url": ...}``), applied last

        """
        self.config_file = self._find_config_file(config_file)
        self.overrides = overrides or {}
        self.config = self._load_config()

    def _find_config_file(
        self,
        config_file: str | Path | None,
    ) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            path = Path(config_file).expanduser()
            if not path.exists():
                msg = f"Config file not found: {path}"
                raise ConfigurationError(msg)
            return path

        search_paths = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / ".config" / "torrentdeck" / CONFIG_FILE_NAME,
            Path.home() / f".{CONFIG_FILE_NAME}",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file, environment and overrides."""
        config_data: dict[str, Any] = {}

        if self.config_file:
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                msg = f"Failed to load config file {self.config_file}: {e}"
                raise ConfigurationError(msg) from e

        config_data = self._merge_config(config_data, self._get_env_config())

        override_data: dict[str, Any] = {}
        for path, value in self.overrides.items():
            if value is not None:
                _set_nested(override_data, path, value)
        config_data = self._merge_config(config_data, override_data)

        try:
            return Config(**config_data)
        except Exception as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}
        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            _set_nested(env_config, cfg_path, _parse_env_value(raw, cfg_path))
        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def export(self) -> str:
        """Export current configuration as TOML."""
        return toml.dumps(self.config.model_dump(mode="json", exclude_none=True))

    def setup_logging(self, console: bool = False) -> None:
        """Set up logging from the observability section."""
        setup_logging(self.config.observability, console=console)


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config


def init_config(
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file, overrides)
    return _config_manager


def set_config(new_config: Config) -> None:
    """Replace the global configuration at runtime."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(None)
    _config_manager.config = new_config


def reset_config() -> None:
    """Forget the global configuration (used by tests)."""
    global _config_manager
    _config_manager = None
