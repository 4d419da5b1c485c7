"""Reducer: applies actions to the application state.

Actions are drained from a FIFO queue until it is empty. Synchronous actions
mutate :class:`~torrentdeck.interface.state.AppState` directly; ``RunEffect``
awaits the effect runner and appends whatever it returns to the back of the
queue. Any :class:`~torrentdeck.utils.exceptions.TorrentDeckError` raised
along the way lands in the error dialog and discards the rest of the batch.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Callable, Iterable

from torrentdeck.interface import actions as act
from torrentdeck.interface.add_input import build_add_source
from torrentdeck.interface.input import InputEvent, InputTranslator
from torrentdeck.interface.state import FILTERS, FocusPanel, Modal
from torrentdeck.utils.exceptions import InputValidationError, TorrentDeckError

if TYPE_CHECKING:
    from torrentdeck.interface.effects import EffectRunner
    from torrentdeck.interface.state import AppState

logger = logging.getLogger(__name__)

ActionQueue = deque


class Reducer:
    """Drain action queues against the application state."""

    def __init__(
        self,
        state: AppState,
        runner: EffectRunner,
        translator: InputTranslator | None = None,
        help_scroll_max: int = 200,
    ):
        """Initialize reducer.

        Args:
            state: Application state to mutate
            runner: Effect runner awaited for ``RunEffect`` actions
            translator: Input translator used by :meth:`handle_event`
            help_scroll_max: Upper bound for the help dialog scroll offset

        """
        self.state = state
        self.runner = runner
        self.translator = translator or InputTranslator()
        self.help_scroll_max = help_scroll_max
        self._handlers: dict[type[act.Action], Callable] = {
            act.Paste: self._paste,
            act.PasteIgnored: self._paste_ignored,
            act.HelpOpen: self._help_open,
            act.HelpClose: self._close,
            act.HelpScroll: self._help_scroll,
            act.ErrorClear: self._error_clear,
            act.ConfirmDeleteOpen: self._confirm_delete_open,
            act.ConfirmDeleteSelect: self._confirm_delete_select,
            act.ConfirmDeleteConfirm: self._confirm_delete_confirm,
            act.ConfirmDeleteCancel: self._confirm_delete_cancel,
            act.ConfirmQuitOpen: self._confirm_quit_open,
            act.ConfirmQuitSelect: self._confirm_quit_select,
            act.ConfirmQuitConfirm: self._confirm_quit_confirm,
            act.ConfirmQuitCancel: self._confirm_quit_cancel,
            act.ViewSet: self._view_set,
            act.FocusToggle: self._focus_toggle,
            act.FocusSet: self._focus_set,
            act.MoveSelection: self._move_selection,
            act.MoveFilter: self._move_filter,
            act.SetFilter: self._set_filter,
            act.TogglePauseRequested: self._toggle_pause,
            act.StartAdd: self._start_add,
            act.InputChar: self._input_char,
            act.InputBackspace: lambda _a, _q: self.state.input.backspace(),
            act.InputDelete: lambda _a, _q: self.state.input.delete(),
            act.InputLeft: lambda _a, _q: self.state.input.left(),
            act.InputRight: lambda _a, _q: self.state.input.right(),
            act.InputHome: lambda _a, _q: self.state.input.home(),
            act.InputEnd: lambda _a, _q: self.state.input.end(),
            act.InputEnter: self._input_enter,
            act.InputCancel: self._input_cancel,
            act.FilePickerCancel: self._file_picker_cancel,
            act.FilePickerUp: self._file_picker_up,
            act.FilePickerDown: self._file_picker_down,
            act.FilePickerToggle: self._file_picker_toggle,
            act.FilePickerAll: self._file_picker_all,
            act.FilePickerNone: self._file_picker_none,
            act.FilePickerConfirm: self._file_picker_confirm,
            act.RefreshRequested: self._refresh,
            act.PreflightAddResult: self._preflight_add_result,
        }

    async def handle_event(self, event: InputEvent) -> bool:
        """Translate ``event`` and process the resulting actions."""
        return await self.process(self.translator.translate(self.state, event))

    async def process(self, actions: Iterable[act.Action]) -> bool:
        """Drain ``actions`` and everything they enqueue.

        Returns:
            ``True`` when the user confirmed quitting

        """
        queue: ActionQueue = deque(actions)
        while queue:
            action = queue.popleft()
            try:
                if await self.apply(action, queue):
                    return True
            except TorrentDeckError as e:
                logger.warning(
                    "%s failed: %s",
                    type(action).__name__,
                    e,
                    extra={"details": e.details},
                )
                self.state.set_error(e)
                queue.clear()
        return False

    async def apply(self, action: act.Action, queue: ActionQueue) -> bool | None:
        """Apply one action; ``True`` means quit."""
        if isinstance(action, act.RunEffect):
            queue.extend(await self.runner.run(action.effect))
            return None
        handler = self._handlers.get(type(action))
        if handler is None:
            msg = f"Unknown action: {type(action).__name__}"
            raise TypeError(msg)
        return handler(action, queue)

    # -- paste, help, errors -----------------------------------------------

    def _paste(self, action: act.Paste, _queue: ActionQueue) -> None:
        if not self.state.modal.is_text_entry:
            self.state.status = "Paste ignored"
            return
        text = action.text.replace("\r", "").replace("\n", "")
        self.state.input.set(text)

    def _paste_ignored(self, _action: act.PasteIgnored, _queue: ActionQueue) -> None:
        self.state.status = "Paste ignored"

    def _help_open(self, _action: act.HelpOpen, _queue: ActionQueue) -> None:
        self.state.open_modal(Modal.HELP)

    def _close(self, _action: act.Action, _queue: ActionQueue) -> None:
        self.state.close_modal()

    def _help_scroll(self, action: act.HelpScroll, _queue: ActionQueue) -> None:
        scroll = self.state.help_scroll + action.delta
        self.state.help_scroll = max(0, min(scroll, self.help_scroll_max))

    def _error_clear(self, _action: act.ErrorClear, _queue: ActionQueue) -> None:
        self.state.clear_error()

    # -- confirmation dialogs ----------------------------------------------

    def _confirm_delete_open(
        self, _action: act.ConfirmDeleteOpen, _queue: ActionQueue
    ) -> None:
        if self.state.selected_torrent() is not None:
            self.state.open_modal(Modal.CONFIRM_DELETE)

    def _confirm_delete_select(
        self, action: act.ConfirmDeleteSelect, _queue: ActionQueue
    ) -> None:
        self.state.delete_choice = action.choice

    def _confirm_delete_confirm(
        self, _action: act.ConfirmDeleteConfirm, queue: ActionQueue
    ) -> None:
        effect = (
            act.DeleteSelectedFiles() if self.state.delete_choice else act.StopSelected()
        )
        self.state.close_modal()
        queue.append(act.RunEffect(effect))

    def _confirm_delete_cancel(
        self, _action: act.ConfirmDeleteCancel, _queue: ActionQueue
    ) -> None:
        self.state.close_modal()
        self.state.status = "Delete cancelled"

    def _confirm_quit_open(self, _action: act.ConfirmQuitOpen, _queue: ActionQueue) -> None:
        self.state.open_modal(Modal.CONFIRM_QUIT)

    def _confirm_quit_select(
        self, action: act.ConfirmQuitSelect, _queue: ActionQueue
    ) -> None:
        self.state.quit_choice = action.choice

    def _confirm_quit_confirm(
        self, _action: act.ConfirmQuitConfirm, _queue: ActionQueue
    ) -> bool | None:
        if self.state.quit_choice:
            return True
        self.state.close_modal()
        self.state.status = "Quit cancelled"
        return None

    def _confirm_quit_cancel(
        self, _action: act.ConfirmQuitCancel, _queue: ActionQueue
    ) -> None:
        self.state.close_modal()
        self.state.status = "Quit cancelled"

    # -- navigation --------------------------------------------------------

    def _view_set(self, action: act.ViewSet, _queue: ActionQueue) -> None:
        self.state.view = action.view

    def _focus_toggle(self, _action: act.FocusToggle, _queue: ActionQueue) -> None:
        self.state.focus = (
            FocusPanel.TORRENTS
            if self.state.focus == FocusPanel.FILTERS
            else FocusPanel.FILTERS
        )

    def _focus_set(self, action: act.FocusSet, _queue: ActionQueue) -> None:
        self.state.focus = action.panel

    def _move_selection(self, action: act.MoveSelection, _queue: ActionQueue) -> None:
        self.state.move_selection(action.delta)

    def _move_filter(self, action: act.MoveFilter, _queue: ActionQueue) -> None:
        self.state.set_filter(self.state.filter_index + action.delta)

    def _set_filter(self, action: act.SetFilter, _queue: ActionQueue) -> None:
        self.state.set_filter(min(action.index, len(FILTERS) - 1))

    def _toggle_pause(
        self, _action: act.TogglePauseRequested, queue: ActionQueue
    ) -> None:
        queue.append(act.RunEffect(act.TogglePause()))

    def _refresh(self, action: act.RefreshRequested, queue: ActionQueue) -> None:
        queue.append(act.RunEffect(act.Refresh(quiet=action.quiet)))

    # -- add-torrent wizard ------------------------------------------------

    def _start_add(self, _action: act.StartAdd, _queue: ActionQueue) -> None:
        self.state.input.clear()
        self.state.pending_add_input = None
        self.state.open_modal(Modal.ENTER_MAGNET)
        self.state.status = "Paste magnet/URL/path and press Enter"

    def _input_char(self, action: act.InputChar, _queue: ActionQueue) -> None:
        self.state.input.insert(action.char)

    def _input_enter(self, _action: act.InputEnter, queue: ActionQueue) -> None:
        state = self.state
        value = state.input.take()
        if state.modal == Modal.ENTER_MAGNET:
            if not value:
                msg = "Magnet cannot be empty"
                raise InputValidationError(msg)
            build_add_source(value)
            state.status = "Checking torrent..."
            state.close_modal()
            queue.append(act.RunEffect(act.PreflightAdd(source=value)))
        elif state.modal == Modal.ENTER_DESTINATION:
            pending = state.pending_add_input
            state.pending_add_input = None
            if not pending:
                msg = "missing pending torrent input"
                raise InputValidationError(msg)
            state.status = "Fetching metadata..."
            state.last_error = None
            queue.append(
                act.RunEffect(
                    act.StartFilePicker(
                        source=pending,
                        output_folder=value or state.download_dir,
                    )
                )
            )

    def _input_cancel(self, _action: act.InputCancel, queue: ActionQueue) -> None:
        state = self.state
        if state.modal == Modal.ENTER_DESTINATION and state.pending_add_input:
            # Escape on the destination step keeps going with the default dir.
            pending = state.pending_add_input
            state.pending_add_input = None
            state.input.clear()
            state.status = "Fetching metadata..."
            state.last_error = None
            queue.append(
                act.RunEffect(
                    act.StartFilePicker(source=pending, output_folder=state.download_dir)
                )
            )
            return
        state.pending_add_input = None
        state.input.clear()
        state.close_modal()
        state.status = "Cancelled"

    def _preflight_add_result(
        self, action: act.PreflightAddResult, _queue: ActionQueue
    ) -> None:
        self.state.pending_add_input = action.source
        self.state.input.set(self.state.download_dir)
        self.state.open_modal(Modal.ENTER_DESTINATION)
        self.state.status = "Set download dir for this torrent"

    # -- file picker -------------------------------------------------------

    def _file_picker_cancel(
        self, _action: act.FilePickerCancel, _queue: ActionQueue
    ) -> None:
        self.state.file_picker = None
        self.state.close_modal()
        self.state.status = "Cancelled file selection"

    def _file_picker_up(self, _action: act.FilePickerUp, _queue: ActionQueue) -> None:
        picker = self.state.file_picker
        if picker is not None:
            picker.cursor = max(0, picker.cursor - 1)

    def _file_picker_down(self, _action: act.FilePickerDown, _queue: ActionQueue) -> None:
        picker = self.state.file_picker
        if picker is not None and picker.files:
            picker.cursor = min(picker.cursor + 1, len(picker.files) - 1)

    def _file_picker_toggle(
        self, _action: act.FilePickerToggle, _queue: ActionQueue
    ) -> None:
        picker = self.state.file_picker
        if picker is not None and 0 <= picker.cursor < len(picker.files):
            entry = picker.files[picker.cursor]
            entry.included = not entry.included

    def _file_picker_all(self, _action: act.FilePickerAll, _queue: ActionQueue) -> None:
        self._include_all(True)

    def _file_picker_none(self, _action: act.FilePickerNone, _queue: ActionQueue) -> None:
        self._include_all(False)

    def _include_all(self, included: bool) -> None:
        if self.state.file_picker is not None:
            for entry in self.state.file_picker.files:
                entry.included = included

    def _file_picker_confirm(
        self, _action: act.FilePickerConfirm, queue: ActionQueue
    ) -> None:
        picker = self.state.file_picker
        if picker is None:
            return
        queue.append(
            act.RunEffect(
                act.StartDownload(
                    source=picker.source,
                    output_folder=picker.output_folder,
                    only_files=tuple(picker.included_indices()),
                )
            )
        )
        self.state.file_picker = None
        self.state.close_modal()
