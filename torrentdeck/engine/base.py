"""Interface of the torrent engine collaborator.

The engine owns the protocol, scheduling, disk I/O and persistence; the client
only lists, probes, adds and drives torrents through this interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from torrentdeck.models import AddTorrentResponse, SessionStats, TorrentDetails


@dataclass(frozen=True)
class AddSource:
    """What to add: a magnet/HTTP URL or the bytes of a .torrent file."""

    url: str | None = None
    data: bytes | None = None

    def __post_init__(self) -> None:
        if (self.url is None) == (self.data is None):
            msg = "AddSource needs exactly one of url or data"
            raise ValueError(msg)

    @classmethod
    def from_url(cls, url: str) -> AddSource:
        return cls(url=url)

    @classmethod
    def from_bytes(cls, data: bytes) -> AddSource:
        return cls(data=data)

    @property
    def is_url(self) -> bool:
        return self.url is not None


@dataclass
class AddTorrentOptions:
    """Options accepted by :meth:`TorrentEngine.add_torrent`."""

    list_only: bool = False
    output_folder: str | None = None
    only_files: list[int] | None = None
    overwrite: bool = False
    paused: bool = False


@runtime_checkable
class TorrentEngine(Protocol):
    """Operations the client consumes from the engine."""

    async def list_torrents(self, with_stats: bool = True) -> list[TorrentDetails]:
        """List every tracked torrent, optionally with live statistics."""
        ...

    async def session_stats(self) -> SessionStats:
        """Return the session-wide statistics snapshot."""
        ...

    async def add_torrent(
        self, source: AddSource, options: AddTorrentOptions
    ) -> AddTorrentResponse:
        """Add (or, with ``list_only``, only probe) a torrent."""
        ...

    async def torrent_details(self, torrent_id: int) -> TorrentDetails:
        """Return details, including the file list, for one torrent."""
        ...

    async def action_pause(self, torrent_id: int) -> None: ...

    async def action_start(self, torrent_id: int) -> None: ...

    async def action_forget(self, torrent_id: int) -> None:
        """Stop tracking the torrent, keeping its files."""
        ...

    async def action_delete(self, torrent_id: int) -> None:
        """Stop tracking the torrent and delete its files."""
        ...
