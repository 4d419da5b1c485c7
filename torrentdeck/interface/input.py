"""Translate terminal input events into reducer actions.

The translator is the only place that knows about keys. It looks at the
current modal to decide what a key means and returns zero or more actions;
it never touches engine state. The one piece of state it writes is the
paste debounce timestamp on :class:`~torrentdeck.interface.state.AppState`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

from torrentdeck.interface import actions as act
from torrentdeck.interface.state import AppState, FocusPanel, Modal, Mode, View


class EventKind(Enum):
    """Kind of raw terminal event."""

    PRESS = "press"
    REPEAT = "repeat"
    PASTE = "paste"
    RESIZE = "resize"
    OTHER = "other"


@dataclass(frozen=True)
class InputEvent:
    """A terminal event, decoupled from the UI toolkit.

    ``key`` uses Textual key names (``"up"``, ``"escape"``, ``"shift+tab"``,
    ``"a"``...). ``char`` is set for printable keys only. ``timestamp`` is a
    :func:`time.monotonic` reading.
    """

    kind: EventKind
    key: str = ""
    char: str | None = None
    text: str = ""
    timestamp: float = field(default_factory=time.monotonic)

    @classmethod
    def press(
        cls,
        key: str,
        char: str | None = None,
        timestamp: float | None = None,
        repeat: bool = False,
    ) -> InputEvent:
        """Build a key event; printable single-character keys get ``char``."""
        if char is None and len(key) == 1 and key.isprintable():
            char = key
        return cls(
            kind=EventKind.REPEAT if repeat else EventKind.PRESS,
            key=key,
            char=char,
            timestamp=time.monotonic() if timestamp is None else timestamp,
        )

    @classmethod
    def paste(cls, text: str, timestamp: float | None = None) -> InputEvent:
        return cls(
            kind=EventKind.PASTE,
            text=text,
            timestamp=time.monotonic() if timestamp is None else timestamp,
        )

    @property
    def is_char(self) -> bool:
        return self.char is not None and len(self.char) == 1 and self.char.isprintable()


ARROW_KEYS = frozenset({"up", "down", "left", "right"})
NAV_CHARS = frozenset("hjkl")

_NORMAL_KEYS: dict[str, act.Action] = {
    "f": act.ViewSet(View.TORRENTS),
    "i": act.ViewSet(View.INFO),
    "v": act.ViewSet(View.PEERS),
    "tab": act.FocusToggle(),
    "shift+tab": act.FocusToggle(),
    "question_mark": act.HelpOpen(),
    "?": act.HelpOpen(),
    "t": act.FocusSet(FocusPanel.TORRENTS),
    "g": act.FocusSet(FocusPanel.FILTERS),
    "p": act.TogglePauseRequested(),
    "a": act.StartAdd(),
    "d": act.ConfirmDeleteOpen(),
    "q": act.ConfirmQuitOpen(),
    "r": act.RefreshRequested(),
    **{str(n): act.SetFilter(n - 1) for n in range(1, 7)},
}

_TEXT_KEYS: dict[str, act.Action] = {
    "escape": act.InputCancel(),
    "enter": act.InputEnter(),
    "backspace": act.InputBackspace(),
    "delete": act.InputDelete(),
    "left": act.InputLeft(),
    "right": act.InputRight(),
    "home": act.InputHome(),
    "end": act.InputEnd(),
}

_PICKER_KEYS: dict[str, act.Action] = {
    "escape": act.FilePickerCancel(),
    "up": act.FilePickerUp(),
    "k": act.FilePickerUp(),
    "down": act.FilePickerDown(),
    "j": act.FilePickerDown(),
    "space": act.FilePickerToggle(),
    "a": act.FilePickerAll(),
    "n": act.FilePickerNone(),
    "enter": act.FilePickerConfirm(),
}

_YES_KEYS = frozenset({"left", "h", "y", "Y"})
_NO_KEYS = frozenset({"right", "l", "n", "N"})


class InputTranslator:
    """Map input events to actions according to the active modal."""

    def __init__(self, paste_debounce_ms: int = 200):
        """Initialize translator.

        Args:
            paste_debounce_ms: Character keys arriving closer together than
                this in normal mode are treated as paste noise

        """
        self.debounce = paste_debounce_ms / 1000.0

    def translate(self, state: AppState, event: InputEvent) -> list[act.Action]:
        """Return the actions produced by ``event``."""
        if event.kind == EventKind.PASTE:
            return self._translate_paste(state, event)
        if event.kind == EventKind.REPEAT:
            if not self._repeat_allowed(state, event):
                return []
        elif event.kind != EventKind.PRESS:
            return []

        if state.mode == Mode.NORMAL:
            if event.is_char:
                if event.char not in NAV_CHARS and self._is_paste_noise(
                    state, event.timestamp
                ):
                    return [act.PasteIgnored()]
            else:
                state.last_char_at = None

        return self._dispatch(state, event)

    def _translate_paste(self, state: AppState, event: InputEvent) -> list[act.Action]:
        if state.modal.is_text_entry:
            return [act.Paste(event.text)]
        state.last_char_at = event.timestamp
        return [act.PasteIgnored()]

    @staticmethod
    def _repeat_allowed(state: AppState, event: InputEvent) -> bool:
        if event.key in ARROW_KEYS:
            return True
        return state.modal.is_text_entry and event.is_char

    def _is_paste_noise(self, state: AppState, now: float) -> bool:
        last = state.last_char_at
        state.last_char_at = now
        return last is not None and now - last <= self.debounce

    def _dispatch(self, state: AppState, event: InputEvent) -> list[act.Action]:
        key = event.key
        modal = state.modal

        if modal == Modal.HELP:
            if key in ("question_mark", "?", "x", "escape"):
                return [act.HelpClose()]
            if key in ("up", "k"):
                return [act.HelpScroll(-1)]
            if key in ("down", "j"):
                return [act.HelpScroll(1)]
            return []

        if modal == Modal.ERROR:
            if key in ("x", "escape"):
                return [act.ErrorClear()]
            return []

        if modal == Modal.CONFIRM_DELETE:
            return self._confirm(
                key,
                act.ConfirmDeleteSelect,
                act.ConfirmDeleteCancel(),
                act.ConfirmDeleteConfirm(),
            )

        if modal == Modal.CONFIRM_QUIT:
            return self._confirm(
                key,
                act.ConfirmQuitSelect,
                act.ConfirmQuitCancel(),
                act.ConfirmQuitConfirm(),
            )

        if modal == Modal.NORMAL:
            if key in ("down", "j", "up", "k"):
                delta = 1 if key in ("down", "j") else -1
                if state.focus == FocusPanel.TORRENTS:
                    return [act.MoveSelection(delta)]
                return [act.MoveFilter(delta)]
            action = _NORMAL_KEYS.get(key)
            return [action] if action is not None else []

        if modal.is_text_entry:
            action = _TEXT_KEYS.get(key)
            if action is not None:
                return [action]
            if event.is_char:
                return [act.InputChar(event.char)]
            return []

        if modal == Modal.FILE_PICKER:
            action = _PICKER_KEYS.get(key)
            return [action] if action is not None else []

        return []

    @staticmethod
    def _confirm(key, select, cancel, confirm) -> list[act.Action]:
        if key in _YES_KEYS:
            return [select(True)]
        if key in _NO_KEYS:
            return [select(False)]
        if key == "escape":
            return [cancel]
        if key == "enter":
            return [confirm]
        return []
