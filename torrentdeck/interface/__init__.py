"""Interactive terminal: state, input translation, reducer and effects."""

from __future__ import annotations

from torrentdeck.interface.effects import EffectRunner
from torrentdeck.interface.input import EventKind, InputEvent, InputTranslator
from torrentdeck.interface.reducer import Reducer
from torrentdeck.interface.state import AppState, Dialog, Modal, Mode

__all__ = [
    "AppState",
    "Dialog",
    "EffectRunner",
    "EventKind",
    "InputEvent",
    "InputTranslator",
    "Modal",
    "Mode",
    "Reducer",
]
