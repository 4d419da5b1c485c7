"""torrentdeck - a keyboard-driven terminal client for a torrent engine."""

from __future__ import annotations

__version__ = "0.1.0"
