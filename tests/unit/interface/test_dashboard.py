"""Tests for the Textual application wiring around the reducer."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from torrentdeck.interface import actions as act
from torrentdeck.interface.dashboard import TorrentDeckApp
from torrentdeck.interface.input import InputEvent
from torrentdeck.interface.state import Modal
from torrentdeck.models import AddConfig, Config, UIConfig

pytestmark = [pytest.mark.unit, pytest.mark.interface]


@pytest.fixture
def app(engine, download_dir):
    config = Config(
        ui=UIConfig(paste_debounce_ms=150, help_scroll_max=10),
        add=AddConfig(download_dir=str(download_dir), probe_attempts=2, probe_retry_delay=0),
    )
    return TorrentDeckApp(engine, config)


class TestTorrentDeckApp:
    """Construction, tick coalescing and the consumer loop."""

    def test_wiring_follows_config(self, app, download_dir):
        assert app.state.download_dir == str(download_dir)
        assert app.runner.probe_attempts == 2
        assert app.reducer.translator.debounce == pytest.approx(0.15)
        assert app.reducer.help_scroll_max == 10

    def test_ticks_are_coalesced(self, app):
        app._tick()
        app._tick()
        assert app._events.qsize() == 1
        assert app._events.get_nowait() == act.RefreshRequested(quiet=True)

    @pytest.mark.asyncio
    async def test_consumer_drains_until_quit(self, app, engine):
        engine.seed(name="one")
        app._tick()
        app._events.put_nowait(InputEvent.press("q", timestamp=1.0))
        app._events.put_nowait(InputEvent.press("y", timestamp=2.0))
        app._events.put_nowait(InputEvent.press("enter", timestamp=3.0))
        with patch.object(app, "_paint") as paint, patch.object(app, "exit") as exit_app:
            await asyncio.wait_for(app._consume(), timeout=5)
        exit_app.assert_called_once_with()
        assert paint.call_count == 4
        assert app._tick_pending is False
        assert [row.name for row in app.state.torrents] == ["one"]

    @pytest.mark.asyncio
    async def test_quit_cancel_keeps_running(self, app):
        for key, at in (("q", 1.0), ("escape", 2.0), ("q", 3.0), ("y", 4.0), ("enter", 5.0)):
            app._events.put_nowait(InputEvent.press(key, timestamp=at))
        with patch.object(app, "_paint"), patch.object(app, "exit") as exit_app:
            await asyncio.wait_for(app._consume(), timeout=5)
        exit_app.assert_called_once_with()
        assert app.state.modal == Modal.CONFIRM_QUIT
