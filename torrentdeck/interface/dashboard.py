"""Textual application driving the reducer loop.

Textual only supplies input and a surface to paint on. Key, paste and timer
events are converted into :class:`InputEvent` objects or actions and pushed
into one queue; a single worker drains it through the reducer, so effects
run one at a time and the state is only ever touched from that worker.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, ClassVar

from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Static

from torrentdeck.interface import actions as act
from torrentdeck.interface.effects import EffectRunner
from torrentdeck.interface.input import InputEvent, InputTranslator
from torrentdeck.interface.reducer import Reducer
from torrentdeck.interface.render import render_dialog, render_layout
from torrentdeck.interface.state import AppState

if TYPE_CHECKING:
    from torrentdeck.engine.base import TorrentEngine
    from torrentdeck.models import Config

logger = logging.getLogger(__name__)


class TorrentDeckApp(App):
    """Keyboard-driven terminal client for a torrent engine."""

    CSS = """
    Screen {
        layers: base overlay;
        align: center middle;
    }

    #screen {
        layer: base;
        width: 100%;
        height: 100%;
    }

    #dialog {
        layer: overlay;
        width: 80%;
        height: auto;
        max-height: 80%;
        display: none;
    }
    """

    ENABLE_COMMAND_PALETTE: ClassVar[bool] = False

    def __init__(self, engine: TorrentEngine, config: Config):
        """Initialize the application.

        Args:
            engine: Torrent engine the client drives
            config: Loaded configuration

        """
        super().__init__()
        self.config = config
        self.engine = engine
        self.state = AppState(download_dir=config.add.download_dir)
        self.runner = EffectRunner(
            engine,
            self.state,
            probe_attempts=config.add.probe_attempts,
            probe_retry_delay=config.add.probe_retry_delay,
        )
        self.reducer = Reducer(
            self.state,
            self.runner,
            translator=InputTranslator(config.ui.paste_debounce_ms),
            help_scroll_max=config.ui.help_scroll_max,
        )
        self._events: asyncio.Queue[InputEvent | act.Action] = asyncio.Queue()
        self._tick_pending = False

    def compose(self) -> ComposeResult:  # pragma: no cover
        yield Static(id="screen")
        yield Static(id="dialog")

    def on_mount(self) -> None:  # pragma: no cover
        self._paint()
        self.run_worker(self._consume(), name="reducer", exclusive=True)
        self._events.put_nowait(act.RefreshRequested())
        self.set_interval(self.config.ui.refresh_interval, self._tick)

    def _tick(self) -> None:
        # One pending tick at a time; a slow engine must not queue a backlog.
        if not self._tick_pending:
            self._tick_pending = True
            self._events.put_nowait(act.RefreshRequested(quiet=True))

    async def on_key(self, event: events.Key) -> None:  # pragma: no cover
        event.stop()
        event.prevent_default()
        char = event.character if event.is_printable else None
        self._events.put_nowait(InputEvent.press(event.key, char=char))

    async def on_paste(self, event: events.Paste) -> None:  # pragma: no cover
        event.stop()
        self._events.put_nowait(InputEvent.paste(event.text))

    def on_resize(self, _event: events.Resize) -> None:  # pragma: no cover
        self._paint()

    async def _consume(self) -> None:
        """Drain the event queue through the reducer until quit."""
        while True:
            item = await self._events.get()
            if isinstance(item, InputEvent):
                quit_requested = await self.reducer.handle_event(item)
            else:
                if isinstance(item, act.RefreshRequested) and item.quiet:
                    self._tick_pending = False
                quit_requested = await self.reducer.process([item])
            self._paint()
            if quit_requested:
                logger.info("Quit confirmed")
                self.exit()
                return

    def _paint(self) -> None:  # pragma: no cover
        snap = self.state.snapshot()
        self.query_one("#screen", Static).update(render_layout(snap))
        dialog = self.query_one("#dialog", Static)
        overlay = render_dialog(snap, height=max(5, self.size.height - 10))
        if overlay is None:
            dialog.display = False
        else:
            dialog.update(overlay)
            dialog.display = True


async def run_dashboard(engine: TorrentEngine, config: Config) -> None:
    """Run the interactive client until the user quits."""
    app = TorrentDeckApp(engine, config)
    await app.run_async()
