"""Actions consumed by the reducer and the effects they can request.

Actions are small immutable records. Input translation produces them, the
reducer applies them in FIFO order, and effect results come back as more
actions appended to the same queue.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from torrentdeck.interface.state import FocusPanel, View


class Effect:
    """Base class for asynchronous work executed by the effect runner."""


@dataclass(frozen=True)
class Refresh(Effect):
    """Reload session stats and the torrent listing.

    A quiet refresh (the periodic tick) reports engine failures on the status
    line instead of raising the error dialog.
    """

    quiet: bool = False


@dataclass(frozen=True)
class TogglePause(Effect):
    pass


@dataclass(frozen=True)
class StopSelected(Effect):
    pass


@dataclass(frozen=True)
class DeleteSelectedFiles(Effect):
    pass


@dataclass(frozen=True)
class PreflightAdd(Effect):
    source: str


@dataclass(frozen=True)
class StartFilePicker(Effect):
    source: str
    output_folder: str


@dataclass(frozen=True)
class StartDownload(Effect):
    source: str
    output_folder: str
    only_files: tuple[int, ...] = field(default_factory=tuple)


class Action:
    """Base class for reducer actions."""


@dataclass(frozen=True)
class Paste(Action):
    text: str


@dataclass(frozen=True)
class PasteIgnored(Action):
    pass


@dataclass(frozen=True)
class HelpOpen(Action):
    pass


@dataclass(frozen=True)
class HelpClose(Action):
    pass


@dataclass(frozen=True)
class HelpScroll(Action):
    delta: int


@dataclass(frozen=True)
class ErrorClear(Action):
    pass


@dataclass(frozen=True)
class ConfirmDeleteOpen(Action):
    pass


@dataclass(frozen=True)
class ConfirmDeleteSelect(Action):
    choice: bool


@dataclass(frozen=True)
class ConfirmDeleteConfirm(Action):
    pass


@dataclass(frozen=True)
class ConfirmDeleteCancel(Action):
    pass


@dataclass(frozen=True)
class ConfirmQuitOpen(Action):
    pass


@dataclass(frozen=True)
class ConfirmQuitSelect(Action):
    choice: bool


@dataclass(frozen=True)
class ConfirmQuitConfirm(Action):
    pass


@dataclass(frozen=True)
class ConfirmQuitCancel(Action):
    pass


@dataclass(frozen=True)
class ViewSet(Action):
    view: View


@dataclass(frozen=True)
class FocusToggle(Action):
    pass


@dataclass(frozen=True)
class FocusSet(Action):
    panel: FocusPanel


@dataclass(frozen=True)
class MoveSelection(Action):
    delta: int


@dataclass(frozen=True)
class MoveFilter(Action):
    delta: int


@dataclass(frozen=True)
class SetFilter(Action):
    index: int


@dataclass(frozen=True)
class TogglePauseRequested(Action):
    pass


@dataclass(frozen=True)
class StartAdd(Action):
    pass


@dataclass(frozen=True)
class InputChar(Action):
    char: str


@dataclass(frozen=True)
class InputBackspace(Action):
    pass


@dataclass(frozen=True)
class InputDelete(Action):
    pass


@dataclass(frozen=True)
class InputLeft(Action):
    pass


@dataclass(frozen=True)
class InputRight(Action):
    pass


@dataclass(frozen=True)
class InputHome(Action):
    pass


@dataclass(frozen=True)
class InputEnd(Action):
    pass


@dataclass(frozen=True)
class InputEnter(Action):
    pass


@dataclass(frozen=True)
class InputCancel(Action):
    pass


@dataclass(frozen=True)
class FilePickerCancel(Action):
    pass


@dataclass(frozen=True)
class FilePickerUp(Action):
    pass


@dataclass(frozen=True)
class FilePickerDown(Action):
    pass


@dataclass(frozen=True)
class FilePickerToggle(Action):
    pass


@dataclass(frozen=True)
class FilePickerAll(Action):
    pass


@dataclass(frozen=True)
class FilePickerNone(Action):
    pass


@dataclass(frozen=True)
class FilePickerConfirm(Action):
    pass


@dataclass(frozen=True)
class RefreshRequested(Action):
    quiet: bool = False


@dataclass(frozen=True)
class RunEffect(Action):
    effect: Effect


@dataclass(frozen=True)
class PreflightAddResult(Action):
    source: str
