"""Torrent engine collaborator: interface and HTTP client."""

from __future__ import annotations

from torrentdeck.engine.base import AddSource, AddTorrentOptions, TorrentEngine
from torrentdeck.engine.http_client import HttpTorrentEngine

__all__ = [
    "AddSource",
    "AddTorrentOptions",
    "HttpTorrentEngine",
    "TorrentEngine",
]
