"""Effect runner: the asynchronous half of the reducer loop.

Every effect is awaited to completion before the reducer takes the next
action, so an effect sees exactly the state left by the actions before it.
Effects return follow-up actions; failures propagate as
:class:`~torrentdeck.utils.exceptions.TorrentDeckError` for the reducer to
turn into the error dialog.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable

from torrentdeck.engine.base import AddSource, AddTorrentOptions
from torrentdeck.interface import actions as act
from torrentdeck.interface.add_input import (
    build_add_source,
    build_picker,
    derive_folder_name,
    to_row,
)
from torrentdeck.interface.state import Modal
from torrentdeck.models import AddTorrentResponse, TorrentStatsState
from torrentdeck.utils.exceptions import (
    DestinationError,
    DuplicateTorrentError,
    EngineError,
    InputValidationError,
    SelectionMismatchError,
)
from torrentdeck.utils.logging_config import LoggingContext

if TYPE_CHECKING:
    from torrentdeck.engine.base import TorrentEngine
    from torrentdeck.interface.state import AppState

logger = logging.getLogger(__name__)

LIST_FILES = "error listing files"


class EffectRunner:
    """Execute effects against the engine and the application state."""

    def __init__(
        self,
        engine: TorrentEngine,
        state: AppState,
        probe_attempts: int = 3,
        probe_retry_delay: float = 0.5,
    ):
        """Initialize effect runner.

        Args:
            engine: Torrent engine the effects talk to
            state: Application state, shared with the reducer
            probe_attempts: Metadata probe attempts before the file picker
                gives up
            probe_retry_delay: Seconds to wait between probe attempts

        """
        self.engine = engine
        self.state = state
        self.probe_attempts = max(1, probe_attempts)
        self.probe_retry_delay = probe_retry_delay
        self._handlers: dict[
            type[act.Effect], Callable[..., Awaitable[list[act.Action]]]
        ] = {
            act.Refresh: self._refresh,
            act.TogglePause: self._toggle_pause,
            act.StopSelected: self._stop_selected,
            act.DeleteSelectedFiles: self._delete_selected_files,
            act.PreflightAdd: self._preflight_add,
            act.StartFilePicker: self._start_file_picker,
            act.StartDownload: self._start_download,
        }

    async def run(self, effect: act.Effect) -> list[act.Action]:
        """Execute ``effect`` and return the actions it produces."""
        handler = self._handlers.get(type(effect))
        if handler is None:
            msg = f"Unknown effect: {type(effect).__name__}"
            raise TypeError(msg)
        with LoggingContext(f"effect {type(effect).__name__}", logger=logger):
            return await handler(effect)

    # -- listing -----------------------------------------------------------

    async def _refresh(self, effect: act.Refresh) -> list[act.Action]:
        try:
            await self.refresh()
        except EngineError as e:
            if not effect.quiet:
                raise
            logger.warning("Periodic refresh failed: %s", e)
            self.state.status = f"Engine unreachable: {e.message}"
        return []

    async def refresh(self) -> None:
        """Reload session stats and rows, keeping the selected torrent."""
        stats = await self.engine.session_stats()
        listed = await self.engine.list_torrents(with_stats=True)
        rows = [row for row in (to_row(t) for t in listed) if row is not None]
        self.state.session_stats = stats
        self.state.replace_torrents(rows)

    # -- commands on the selected torrent ----------------------------------

    async def _toggle_pause(self, _effect: act.TogglePause) -> list[act.Action]:
        row = self.state.selected_torrent()
        if row is None or row.stats is None:
            return []
        state = row.stats.state
        if state == TorrentStatsState.PAUSED:
            await self.engine.action_start(row.id)
            self.state.status = "Resumed"
        elif state in (TorrentStatsState.LIVE, TorrentStatsState.INITIALIZING):
            await self.engine.action_pause(row.id)
            self.state.status = "Paused"
        else:
            self.state.status = "Cannot pause: torrent error"
            return []
        logger.info("%s torrent %s", self.state.status, row.id)
        return [act.RefreshRequested()]

    async def _stop_selected(self, _effect: act.StopSelected) -> list[act.Action]:
        row = self.state.selected_torrent()
        if row is None:
            return []
        await self.engine.action_forget(row.id)
        logger.info("Forgot torrent %s (%s)", row.id, row.name)
        self.state.status = "Stopped (forgotten)"
        return [act.RefreshRequested()]

    async def _delete_selected_files(
        self, _effect: act.DeleteSelectedFiles
    ) -> list[act.Action]:
        row = self.state.selected_torrent()
        if row is None:
            return []
        await self.engine.action_delete(row.id)
        logger.info("Deleted torrent %s (%s) and its files", row.id, row.name)
        self.state.status = "Deleted torrent and files"
        return [act.RefreshRequested()]

    # -- add-torrent wizard ------------------------------------------------

    async def _preflight_add(self, effect: act.PreflightAdd) -> list[act.Action]:
        source = build_add_source(effect.source)
        response = await self.engine.add_torrent(
            source,
            AddTorrentOptions(list_only=True, output_folder=self.state.download_dir),
        )
        listed = await self.engine.list_torrents(with_stats=False)
        if any(t.info_hash == response.info_hash for t in listed):
            msg = "Torrent already added; duplicate locations are not supported"
            raise DuplicateTorrentError(msg, details={"info_hash": response.info_hash})
        return [act.PreflightAddResult(source=effect.source)]

    async def _probe(self, source: AddSource, output_folder: str) -> AddTorrentResponse:
        """List the torrent's files, retrying while metadata is not ready."""
        last_error: EngineError | None = None
        for attempt in range(self.probe_attempts):
            if attempt > 0:
                logger.debug(
                    "Metadata probe attempt %d/%d (retrying after %.1fs)",
                    attempt + 1,
                    self.probe_attempts,
                    self.probe_retry_delay,
                )
                await asyncio.sleep(self.probe_retry_delay)
            try:
                return await self.engine.add_torrent(
                    source,
                    AddTorrentOptions(list_only=True, output_folder=output_folder),
                )
            except EngineError as e:
                logger.debug(
                    "Metadata probe failed (attempt %d/%d): %s",
                    attempt + 1,
                    self.probe_attempts,
                    e,
                )
                last_error = e

        if last_error is not None and last_error.operation == LIST_FILES:
            raise last_error
        raise EngineError(
            str(last_error),
            details={"attempts": self.probe_attempts},
            operation=LIST_FILES,
        ) from last_error

    def _resolve_destination(self, base: str, response: AddTorrentResponse) -> Path:
        folder_name = derive_folder_name(response)
        destination = Path(base) / folder_name
        if self.state.has_same_destination(response.info_hash, str(destination)):
            msg = "Torrent already added for this download directory"
            raise DuplicateTorrentError(
                msg, details={"output_folder": str(destination)}
            )
        if self._path_exists(destination):
            destination = Path(base) / f"{folder_name}-{response.info_hash[:8]}"
            if self._path_exists(destination):
                msg = "Destination folder already exists"
                raise DuplicateTorrentError(
                    msg, details={"output_folder": str(destination)}
                )
        return destination

    @staticmethod
    def _path_exists(path: Path) -> bool:
        try:
            return path.exists()
        except (OSError, ValueError) as e:
            msg = f"invalid download folder: {e}"
            raise DestinationError(msg, details={"path": str(path)}) from e

    async def _start_file_picker(
        self, effect: act.StartFilePicker
    ) -> list[act.Action]:
        source = build_add_source(effect.source)
        response = await self._probe(source, effect.output_folder)
        destination = self._resolve_destination(effect.output_folder, response)
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"failed to create download folder: {e}"
            raise DestinationError(msg, details={"path": str(destination)}) from e

        logger.info(
            "Staging %s into %s (%d files)",
            response.info_hash,
            destination,
            len(response.files),
        )
        self.state.file_picker = build_picker(effect.source, str(destination), response)
        self.state.input.clear()
        self.state.open_modal(Modal.FILE_PICKER)
        self.state.status = "Select files and press Enter"
        return []

    async def _start_download(self, effect: act.StartDownload) -> list[act.Action]:
        self.state.status = "Starting download..."
        self.state.last_error = None
        if not effect.only_files:
            msg = "No files selected"
            raise InputValidationError(msg)

        expected = set(effect.only_files)
        source = build_add_source(effect.source)
        response = await self.engine.add_torrent(
            source,
            AddTorrentOptions(
                output_folder=effect.output_folder,
                only_files=list(effect.only_files),
                overwrite=True,
                paused=True,
            ),
        )
        if response.id is None:
            msg = "torrent was not added"
            raise EngineError(msg, details={"info_hash": response.info_hash})
        torrent_id = response.id

        try:
            details = await self.engine.torrent_details(torrent_id)
        except EngineError as e:
            msg = f"error verifying file selection: {e}"
            raise EngineError(msg, details={"id": torrent_id}) from e
        if details.files is None:
            msg = "torrent details missing files"
            raise EngineError(msg, details={"id": torrent_id})

        actual = details.included_indices()
        if actual != expected:
            await self._remove_unverified(torrent_id, expected, actual)

        await self.engine.action_start(torrent_id)
        logger.info(
            "Added torrent %s (%s) with %d files into %s",
            torrent_id,
            response.info_hash,
            len(expected),
            effect.output_folder,
        )
        self.state.file_picker = None
        if self.state.modal == Modal.FILE_PICKER:
            self.state.close_modal()
        self.state.status = "Torrent added"
        return [act.RefreshRequested()]

    async def _remove_unverified(
        self, torrent_id: int, expected: set[int], actual: set[int]
    ) -> None:
        """Delete a torrent whose file selection was not applied, then fail."""
        details: dict[str, object] = {
            "id": torrent_id,
            "expected": sorted(expected),
            "actual": sorted(actual),
        }
        logger.warning(
            "Engine ignored file selection for torrent %s: expected %s, got %s",
            torrent_id,
            details["expected"],
            details["actual"],
        )
        try:
            await self.engine.action_delete(torrent_id)
        except EngineError as e:
            logger.warning("Could not remove torrent %s: %s", torrent_id, e)
            details["cleanup_error"] = str(e)
        msg = "File selection was not honored; torrent was removed"
        raise SelectionMismatchError(msg, details=details)
