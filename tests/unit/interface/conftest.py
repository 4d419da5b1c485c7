"""Fixtures for the interactive terminal tests: an in-memory engine and state."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from torrentdeck.engine.base import AddSource, AddTorrentOptions
from torrentdeck.interface.effects import EffectRunner
from torrentdeck.interface.input import InputTranslator
from torrentdeck.interface.reducer import Reducer
from torrentdeck.interface.state import AppState, TorrentRow
from torrentdeck.models import (
    AddTorrentResponse,
    EngineFile,
    SessionStats,
    TorrentDetails,
    TorrentStats,
    TorrentStatsState,
)
from torrentdeck.utils.exceptions import EngineError

MAGNET = "magnet:?xt=urn:btih:0123456789abcdef0123456789abcdef01234567&dn=ubuntu"
INFO_HASH = "0123456789abcdef0123456789abcdef01234567"


@dataclass
class TorrentMetadata:
    """What the fake engine knows about a magnet or .torrent payload."""

    info_hash: str
    name: str | None
    files: list[tuple[str, int]]


@dataclass
class FakeEngine:
    """Deterministic in-memory stand-in for the torrent engine."""

    metadata: dict[str | bytes, TorrentMetadata] = field(default_factory=dict)
    torrents: dict[int, TorrentDetails] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    probe_failures: int = 0
    ignore_selection: bool = False
    fail_delete: bool = False
    fail_list: bool = False
    next_id: int = 1

    def register(
        self,
        key: str | bytes = MAGNET,
        info_hash: str = INFO_HASH,
        name: str | None = "ubuntu",
        files: list[tuple[str, int]] | None = None,
    ) -> TorrentMetadata:
        meta = TorrentMetadata(
            info_hash=info_hash,
            name=name,
            files=files if files is not None else [("a.iso", 100), ("b.txt", 10)],
        )
        self.metadata[key] = meta
        return meta

    def seed(
        self,
        info_hash: str = INFO_HASH,
        name: str = "existing",
        output_folder: str = "/downloads/existing",
        state: TorrentStatsState = TorrentStatsState.LIVE,
        finished: bool = False,
    ) -> int:
        torrent_id = self.next_id
        self.next_id += 1
        self.torrents[torrent_id] = TorrentDetails(
            id=torrent_id,
            info_hash=info_hash,
            name=name,
            output_folder=output_folder,
            files=[EngineFile(name="f", length=1)],
            stats=TorrentStats(state=state, total_bytes=1, finished=finished),
        )
        return torrent_id

    def _lookup(self, source: AddSource) -> TorrentMetadata:
        key = source.url if source.is_url else source.data
        try:
            return self.metadata[key]
        except KeyError:
            msg = "unknown torrent"
            raise EngineError(msg, operation="error listing files") from None

    async def list_torrents(self, with_stats: bool = True) -> list[TorrentDetails]:
        self.calls.append(("list_torrents", with_stats))
        if self.fail_list:
            msg = "connection refused"
            raise EngineError(msg, operation="error listing torrents")
        if with_stats:
            return list(self.torrents.values())
        return [t.model_copy(update={"stats": None}) for t in self.torrents.values()]

    async def session_stats(self) -> SessionStats:
        self.calls.append(("session_stats",))
        if self.fail_list:
            msg = "connection refused"
            raise EngineError(msg, operation="error reading session stats")
        return SessionStats()

    async def add_torrent(
        self, source: AddSource, options: AddTorrentOptions
    ) -> AddTorrentResponse:
        self.calls.append(("add_torrent", options))
        meta = self._lookup(source)
        if options.list_only:
            if self.probe_failures > 0:
                self.probe_failures -= 1
                msg = "metadata not ready"
                raise EngineError(msg, operation="error listing files")
            details = TorrentDetails(
                info_hash=meta.info_hash,
                name=meta.name,
                output_folder=options.output_folder or "",
                files=[EngineFile(name=n, length=size) for n, size in meta.files],
            )
            return AddTorrentResponse(
                details=details, output_folder=options.output_folder or ""
            )

        only = set(options.only_files or range(len(meta.files)))
        if self.ignore_selection:
            only = set(range(len(meta.files)))
        torrent_id = self.next_id
        self.next_id += 1
        details = TorrentDetails(
            id=torrent_id,
            info_hash=meta.info_hash,
            name=meta.name,
            output_folder=options.output_folder or "",
            files=[
                EngineFile(name=n, length=size, included=idx in only)
                for idx, (n, size) in enumerate(meta.files)
            ],
            stats=TorrentStats(
                state=TorrentStatsState.PAUSED if options.paused else TorrentStatsState.LIVE
            ),
        )
        self.torrents[torrent_id] = details
        return AddTorrentResponse(
            id=torrent_id, details=details, output_folder=details.output_folder
        )

    async def torrent_details(self, torrent_id: int) -> TorrentDetails:
        self.calls.append(("torrent_details", torrent_id))
        try:
            return self.torrents[torrent_id]
        except KeyError:
            msg = "torrent not found"
            raise EngineError(msg, operation="error reading torrent details") from None

    def _set_state(self, torrent_id: int, state: TorrentStatsState) -> None:
        details = self.torrents[torrent_id]
        stats = (details.stats or TorrentStats(state=state)).model_copy(
            update={"state": state}
        )
        self.torrents[torrent_id] = details.model_copy(update={"stats": stats})

    async def action_pause(self, torrent_id: int) -> None:
        self.calls.append(("pause", torrent_id))
        self._set_state(torrent_id, TorrentStatsState.PAUSED)

    async def action_start(self, torrent_id: int) -> None:
        self.calls.append(("start", torrent_id))
        self._set_state(torrent_id, TorrentStatsState.LIVE)

    async def action_forget(self, torrent_id: int) -> None:
        self.calls.append(("forget", torrent_id))
        self.torrents.pop(torrent_id, None)

    async def action_delete(self, torrent_id: int) -> None:
        self.calls.append(("delete", torrent_id))
        if self.fail_delete:
            msg = "permission denied"
            raise EngineError(msg, operation="error deleting torrent and files")
        self.torrents.pop(torrent_id, None)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


def _make_row(
    torrent_id: int,
    state: TorrentStatsState | None = TorrentStatsState.LIVE,
    finished: bool = False,
    progress: int = 0,
    total: int = 100,
    info_hash: str | None = None,
    output_folder: str = "/downloads",
) -> TorrentRow:
    stats = None
    if state is not None:
        stats = TorrentStats(
            state=state,
            finished=finished,
            progress_bytes=progress,
            total_bytes=total,
        )
    return TorrentRow(
        id=torrent_id,
        name=f"torrent-{torrent_id}",
        info_hash=info_hash or f"{torrent_id:040x}",
        output_folder=output_folder,
        stats=stats,
    )


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def download_dir(tmp_path):
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def state(download_dir) -> AppState:
    return AppState(download_dir=str(download_dir))


@pytest.fixture
def runner(engine, state) -> EffectRunner:
    return EffectRunner(engine, state, probe_attempts=3, probe_retry_delay=0)


@pytest.fixture
def reducer(state, runner) -> Reducer:
    return Reducer(state, runner, translator=InputTranslator(paste_debounce_ms=200))


@pytest.fixture
def make_row():
    """Factory for cached torrent rows."""
    return _make_row


@pytest.fixture
def magnet(engine) -> str:
    """A magnet the fake engine can resolve (two files: a.iso, b.txt)."""
    engine.register(MAGNET)
    return MAGNET
