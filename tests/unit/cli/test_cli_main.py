"""Tests for the torrentdeck command line entry point."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import toml
from click.testing import CliRunner

from torrentdeck import __version__
from torrentdeck.cli.main import cli
from torrentdeck.models import (
    SessionStats,
    TorrentDetails,
    TorrentStats,
    TorrentStatsState,
)
from torrentdeck.utils.exceptions import EngineUnavailableError

pytestmark = [pytest.mark.unit, pytest.mark.cli]


def _engine_cm(engine):
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=engine)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


class TestCli:
    """Group options and one-shot commands."""

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"], obj={})
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_applies_overrides(self, tmp_path):
        result = CliRunner().invoke(
            cli,
            [
                "--engine-url",
                "http://10.0.0.5:3030",
                "--refresh-interval",
                "2",
                "--log-level",
                "debug",
                "config",
            ],
            obj={},
        )
        assert result.exit_code == 0, result.output
        exported = toml.loads(result.output)
        assert exported["engine"]["url"] == "http://10.0.0.5:3030"
        assert exported["ui"]["refresh_interval"] == 2.0
        assert exported["observability"]["log_level"] == "DEBUG"

    def test_config_reports_source_file(self, tmp_path):
        path = tmp_path / "deck.toml"
        path.write_text("[add]\nprobe_attempts = 4\n")
        result = CliRunner().invoke(cli, ["-c", str(path), "config"], obj={})
        assert result.exit_code == 0, result.output
        assert result.output.startswith(f"# loaded from {path}")
        assert "probe_attempts = 4" in result.output

    def test_invalid_config_is_a_usage_error(self):
        result = CliRunner().invoke(cli, ["-e", "ftp://nope", "config"], obj={})
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_status_prints_table(self):
        engine = MagicMock()
        engine.session_stats = AsyncMock(return_value=SessionStats())
        engine.list_torrents = AsyncMock(
            return_value=[
                TorrentDetails(
                    id=1,
                    info_hash="ab" * 20,
                    name="deb",
                    stats=TorrentStats(
                        state=TorrentStatsState.PAUSED, total_bytes=2048, progress_bytes=1024
                    ),
                ),
                TorrentDetails(info_hash="cd" * 20, name="ghost"),
            ]
        )
        with patch("torrentdeck.cli.main._engine_for", return_value=_engine_cm(engine)):
            result = CliRunner().invoke(cli, ["status"], obj={})
        assert result.exit_code == 0, result.output
        assert "deb" in result.output
        assert "Paused" in result.output
        assert "50.0%" in result.output
        assert "ghost" not in result.output

    def test_status_engine_down(self):
        engine = MagicMock()
        engine.session_stats = AsyncMock(
            side_effect=EngineUnavailableError(
                "engine unreachable at http://127.0.0.1:3030",
                operation="error reading session stats",
            )
        )
        with patch("torrentdeck.cli.main._engine_for", return_value=_engine_cm(engine)):
            result = CliRunner().invoke(cli, ["status"], obj={})
        assert result.exit_code == 1
        assert "engine unreachable" in result.output

    def test_default_runs_interactive(self):
        with patch(
            "torrentdeck.interface.dashboard.run_dashboard", new_callable=AsyncMock
        ) as run_dashboard:
            result = CliRunner().invoke(cli, [], obj={})
        assert result.exit_code == 0, result.output
        run_dashboard.assert_awaited_once()
        engine, config = run_dashboard.await_args.args
        assert engine.base_url == "http://127.0.0.1:3030"
        assert config.ui.refresh_interval == 0.5
