"""Helpers for the add-torrent wizard and for turning engine data into rows."""

from __future__ import annotations

import logging
import unicodedata
from pathlib import Path

from torrentdeck.engine.base import AddSource
from torrentdeck.interface.state import FileEntry, FilePickerState, TorrentRow
from torrentdeck.models import AddTorrentResponse, TorrentDetails
from torrentdeck.utils.exceptions import FileSystemError, InputValidationError

logger = logging.getLogger(__name__)

URL_PREFIXES = ("magnet:", "http://", "https://")
DEFAULT_FOLDER_NAME = "download"


def _is_noise(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch) == "Cc"


def build_add_source(value: str) -> AddSource:
    """Classify user input as a URL or a local .torrent file.

    URLs are compacted (whitespace and control characters removed, since
    pasted magnets frequently wrap). Anything else must name an existing
    file, whose bytes are read.

    Raises:
        InputValidationError: Input is neither a URL nor an existing path
        FileSystemError: The .torrent file could not be read

    """
    trimmed = value.strip()
    cleaned = "".join(ch for ch in trimmed if not _is_noise(ch))
    if cleaned.startswith(URL_PREFIXES):
        return AddSource.from_url(cleaned)

    msg = "Input must be a magnet, URL, or an existing .torrent file path"
    if not trimmed:
        raise InputValidationError(msg, details={"input": trimmed})
    try:
        path = Path(trimmed).expanduser()
        exists = path.exists()
    except (OSError, RuntimeError, ValueError) as e:
        # expanduser fails on an unknown ~user; stat fails on over-long names
        raise InputValidationError(msg, details={"input": trimmed, "error": str(e)}) from e

    if exists:
        try:
            return AddSource.from_bytes(path.read_bytes())
        except OSError as e:
            msg = f"failed to read .torrent file: {e}"
            raise FileSystemError(msg, details={"path": str(path)}) from e

    raise InputValidationError(msg, details={"input": trimmed})


def sanitize_path_component(value: str) -> str:
    """Make ``value`` safe to use as a single directory name."""
    return value.replace("/", "-").replace("\\", "-").strip()


def derive_folder_name(response: AddTorrentResponse) -> str:
    """Pick the leaf folder for a torrent: its name, else its first file."""
    name = (response.name or "").strip()
    if not name and response.files:
        name = response.files[0].name.strip()
    return sanitize_path_component(name) or DEFAULT_FOLDER_NAME


def build_picker(
    source: str, output_folder: str, response: AddTorrentResponse
) -> FilePickerState:
    """Build the file picker from a probe, keeping the engine's defaults."""
    files = [
        FileEntry(name=f.name, length=f.length, included=f.included)
        for f in response.files
    ]
    return FilePickerState(source=source, output_folder=output_folder, files=files)


def to_row(details: TorrentDetails) -> TorrentRow | None:
    """Convert listed engine details to a row; ``None`` without an id."""
    if details.id is None:
        logger.debug("Skipping torrent %s without id", details.info_hash)
        return None
    return TorrentRow(
        id=details.id,
        name=details.name or details.info_hash,
        info_hash=details.info_hash,
        output_folder=details.output_folder,
        stats=details.stats,
    )
