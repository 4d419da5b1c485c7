"""Application state for the interactive terminal.

``AppState`` is the single mutable record behind the UI. Only the reducer and
the effect runner write to it; the renderer reads :meth:`AppState.snapshot`.

The interaction context is one tagged variant, :class:`Modal`. The render
facing ``Mode`` and ``Dialog`` values are derived from it, so they always
agree.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from torrentdeck.models import SessionStats, TorrentStats, TorrentStatsState


class Mode(Enum):
    """Text/list interaction mode, drives which keys the translator maps."""

    NORMAL = "normal"
    ENTER_MAGNET = "enter_magnet"
    ENTER_DESTINATION = "enter_destination"
    FILE_PICKER = "file_picker"


class Dialog(Enum):
    """Modal overlay shown by the renderer."""

    NONE = "none"
    ADD_TORRENT = "add_torrent"
    CONFIRM_DELETE = "confirm_delete"
    CONFIRM_QUIT = "confirm_quit"
    HELP = "help"
    FILE_PICKER = "file_picker"
    ERROR = "error"


class Modal(Enum):
    """The single active interaction context."""

    NORMAL = (Mode.NORMAL, Dialog.NONE)
    ENTER_MAGNET = (Mode.ENTER_MAGNET, Dialog.ADD_TORRENT)
    ENTER_DESTINATION = (Mode.ENTER_DESTINATION, Dialog.ADD_TORRENT)
    FILE_PICKER = (Mode.FILE_PICKER, Dialog.FILE_PICKER)
    CONFIRM_DELETE = (Mode.NORMAL, Dialog.CONFIRM_DELETE)
    CONFIRM_QUIT = (Mode.NORMAL, Dialog.CONFIRM_QUIT)
    HELP = (Mode.NORMAL, Dialog.HELP)
    ERROR = (Mode.NORMAL, Dialog.ERROR)

    @property
    def mode(self) -> Mode:
        return self.value[0]

    @property
    def dialog(self) -> Dialog:
        return self.value[1]

    @property
    def is_text_entry(self) -> bool:
        return self.mode in (Mode.ENTER_MAGNET, Mode.ENTER_DESTINATION)


class View(Enum):
    """Content shown in the main panel."""

    TORRENTS = "torrents"
    PEERS = "peers"
    INFO = "info"


class FocusPanel(Enum):
    """Panel that receives up/down movement in normal mode."""

    FILTERS = "filters"
    TORRENTS = "torrents"


class FilterKind(Enum):
    """Torrent list filters, addressed by index in :data:`FILTERS`."""

    ALL = "All"
    DOWNLOADING = "Downloading"
    SEEDING = "Seeding"
    PAUSED = "Paused"
    STOPPED = "Stopped"
    ERROR = "Error"


FILTERS: tuple[FilterKind, ...] = (
    FilterKind.ALL,
    FilterKind.DOWNLOADING,
    FilterKind.SEEDING,
    FilterKind.PAUSED,
    FilterKind.STOPPED,
    FilterKind.ERROR,
)


@dataclass(frozen=True)
class TorrentRow:
    """Cached engine view of one torrent, replaced on every refresh."""

    id: int
    name: str
    info_hash: str | None
    output_folder: str
    stats: TorrentStats | None = None


@dataclass
class FileEntry:
    """One file offered by the file picker."""

    name: str
    length: int
    included: bool


@dataclass
class FilePickerState:
    """Staging area for the last step of the add-torrent wizard."""

    source: str
    output_folder: str
    files: list[FileEntry] = field(default_factory=list)
    cursor: int = 0

    def included_indices(self) -> list[int]:
        return [idx for idx, f in enumerate(self.files) if f.included]


def filter_match(row: TorrentRow, kind: FilterKind) -> bool:
    """Return whether ``row`` belongs in the list filtered by ``kind``."""
    stats = row.stats
    if stats is None:
        return kind in (FilterKind.ALL, FilterKind.STOPPED)
    is_live = stats.state == TorrentStatsState.LIVE
    if kind == FilterKind.ALL:
        return True
    if kind == FilterKind.DOWNLOADING:
        return is_live and not stats.finished
    if kind == FilterKind.SEEDING:
        return stats.finished or (
            stats.total_bytes > 0
            and stats.progress_bytes >= stats.total_bytes
            and is_live
        )
    if kind == FilterKind.PAUSED:
        return stats.state == TorrentStatsState.PAUSED
    if kind == FilterKind.STOPPED:
        return False
    return stats.state == TorrentStatsState.ERROR


class InputBuffer:
    """Single line text field with a cursor counted in characters."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.cursor = len(text)

    def __len__(self) -> int:
        return len(self.text)

    def set(self, text: str) -> None:
        """Replace the contents and put the cursor at the end."""
        self.text = text
        self.cursor = len(text)

    def clear(self) -> None:
        self.text = ""
        self.cursor = 0

    def take(self) -> str:
        """Return the trimmed contents and clear the buffer."""
        value = self.text.strip()
        self.clear()
        return value

    def insert(self, text: str) -> None:
        self.text = self.text[: self.cursor] + text + self.text[self.cursor :]
        self.cursor += len(text)

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
        self.cursor -= 1

    def delete(self) -> None:
        if self.cursor >= len(self.text):
            return
        self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]

    def left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def right(self) -> None:
        self.cursor = min(len(self.text), self.cursor + 1)

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.text)


@dataclass(frozen=True)
class StateSnapshot:
    """Read-only view of the state handed to the renderer once per frame."""

    mode: Mode
    dialog: Dialog
    view: View
    focus: FocusPanel
    active_filter: FilterKind
    filter_counts: dict[FilterKind, int]
    rows: tuple[TorrentRow, ...]
    selected_position: int | None
    selected_row: TorrentRow | None
    total_torrents: int
    session_stats: SessionStats | None
    input_text: str
    input_cursor: int
    file_picker: FilePickerState | None
    delete_choice: bool
    quit_choice: bool
    help_scroll: int
    status: str
    last_error: str | None
    download_dir: str


class AppState:
    """Single source of truth for the interactive client."""

    def __init__(self, download_dir: str) -> None:
        self.download_dir = download_dir
        self.modal = Modal.NORMAL
        self.torrents: list[TorrentRow] = []
        self.selected = 0
        self.session_stats: SessionStats | None = None
        self.input = InputBuffer()
        self.last_char_at: float | None = None
        self.status = "Ready"
        self.last_error: str | None = None
        self.file_picker: FilePickerState | None = None
        self.view = View.TORRENTS
        self.focus = FocusPanel.TORRENTS
        self.filter_index = 0
        self.delete_choice = False
        self.quit_choice = False
        self.pending_add_input: str | None = None
        self.help_scroll = 0

    @property
    def mode(self) -> Mode:
        return self.modal.mode

    @property
    def dialog(self) -> Dialog:
        return self.modal.dialog

    # -- modal bookkeeping -------------------------------------------------

    def open_modal(self, modal: Modal) -> None:
        """Enter ``modal``, resetting the dialog-local fields it owns."""
        if modal == Modal.CONFIRM_DELETE:
            self.delete_choice = False
        elif modal == Modal.CONFIRM_QUIT:
            self.quit_choice = False
        elif modal == Modal.HELP:
            self.help_scroll = 0
        self.modal = modal

    def close_modal(self) -> None:
        """Return to normal mode and drop every dialog-local field."""
        self.modal = Modal.NORMAL
        self.delete_choice = False
        self.quit_choice = False
        self.help_scroll = 0

    def set_error(self, err: object) -> None:
        """Collapse all transient state and raise the error dialog."""
        self.last_error = str(err)
        self.status = "Error"
        self.file_picker = None
        self.delete_choice = False
        self.quit_choice = False
        self.help_scroll = 0
        self.pending_add_input = None
        self.input.clear()
        self.last_char_at = None
        self.modal = Modal.ERROR

    def clear_error(self) -> None:
        self.last_error = None
        self.status = "Ready"
        self.modal = Modal.NORMAL

    # -- torrent list ------------------------------------------------------

    @property
    def selected_filter(self) -> FilterKind:
        if 0 <= self.filter_index < len(FILTERS):
            return FILTERS[self.filter_index]
        return FilterKind.ALL

    def filter_match(self, row: TorrentRow) -> bool:
        return filter_match(row, self.selected_filter)

    def filtered_indices(self) -> list[int]:
        return [idx for idx, row in enumerate(self.torrents) if self.filter_match(row)]

    def selected_torrent(self) -> TorrentRow | None:
        """The row commands act on; ``None`` when nothing visible is selected."""
        if 0 <= self.selected < len(self.torrents):
            row = self.torrents[self.selected]
            if self.filter_match(row):
                return row
        return None

    def ensure_selection_for_filter(self) -> None:
        """Move the selection onto a row that passes the active filter."""
        if not self.torrents:
            self.selected = 0
            return
        if self.selected < len(self.torrents) and self.filter_match(
            self.torrents[self.selected]
        ):
            return
        indices = self.filtered_indices()
        self.selected = indices[0] if indices else 0

    def move_selection(self, delta: int) -> None:
        indices = self.filtered_indices()
        if not indices:
            return
        try:
            current = indices.index(self.selected)
        except ValueError:
            current = 0
        target = max(0, min(current + delta, len(indices) - 1))
        self.selected = indices[target]

    def set_filter(self, index: int) -> None:
        self.filter_index = max(0, min(index, len(FILTERS) - 1))
        self.ensure_selection_for_filter()

    def replace_torrents(self, rows: list[TorrentRow]) -> None:
        """Swap in a fresh listing, keeping the selection on the same torrent."""
        previous = self.selected_torrent()
        if not rows:
            self.selected = 0
        elif previous is not None:
            position = next(
                (idx for idx, r in enumerate(rows) if r.id == previous.id), None
            )
            self.selected = (
                position if position is not None else min(self.selected, len(rows) - 1)
            )
        else:
            self.selected = min(self.selected, len(rows) - 1)
        self.torrents = rows
        self.ensure_selection_for_filter()

    def has_same_destination(self, info_hash: str, output_folder: str) -> bool:
        return any(
            row.info_hash == info_hash and row.output_folder == output_folder
            for row in self.torrents
        )

    # -- rendering ---------------------------------------------------------

    def snapshot(self) -> StateSnapshot:
        indices = self.filtered_indices()
        selected = self.selected_torrent()
        picker = None
        if self.file_picker is not None:
            picker = replace(
                self.file_picker,
                files=[replace(f) for f in self.file_picker.files],
            )
        return StateSnapshot(
            mode=self.mode,
            dialog=self.dialog,
            view=self.view,
            focus=self.focus,
            active_filter=self.selected_filter,
            filter_counts={
                kind: sum(1 for row in self.torrents if filter_match(row, kind))
                for kind in FILTERS
            },
            rows=tuple(self.torrents[idx] for idx in indices),
            selected_position=indices.index(self.selected)
            if selected is not None
            else None,
            selected_row=selected,
            total_torrents=len(self.torrents),
            session_stats=self.session_stats,
            input_text=self.input.text,
            input_cursor=self.input.cursor,
            file_picker=picker,
            delete_choice=self.delete_choice,
            quit_choice=self.quit_choice,
            help_scroll=self.help_scroll,
            status=self.status,
            last_error=self.last_error,
            download_dir=self.download_dir,
        )
