"""Pydantic models for torrentdeck.

Provides validated configuration models and the wire models returned by the
torrent engine.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


def default_download_dir() -> str:
    """Return the user's download directory, or the working directory."""
    downloads = Path.home() / "Downloads"
    if downloads.is_dir():
        return str(downloads)
    return str(Path.cwd())


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------------------------------------------------------------------------
# Engine wire models
# ---------------------------------------------------------------------------


class TorrentStatsState(str, Enum):
    """Lifecycle state reported by the engine for a torrent."""

    INITIALIZING = "initializing"
    LIVE = "live"
    PAUSED = "paused"
    ERROR = "error"


class PeerStats(BaseModel):
    """Peer counters for one torrent or for the whole session."""

    queued: int = Field(default=0, ge=0)
    connecting: int = Field(default=0, ge=0)
    live: int = Field(default=0, ge=0)
    seen: int = Field(default=0, ge=0)
    dead: int = Field(default=0, ge=0)
    not_needed: int = Field(default=0, ge=0)


class Speed(BaseModel):
    """Transfer speed as reported by the engine."""

    mbps: float = Field(default=0.0, ge=0.0, description="Speed in MiB/s")
    human_readable: str | None = Field(default=None)


class LiveSnapshot(BaseModel):
    """Snapshot of a live torrent's swarm."""

    peer_stats: PeerStats = Field(default_factory=PeerStats)


class LiveStats(BaseModel):
    """Extra statistics only present while a torrent is live."""

    snapshot: LiveSnapshot | None = None
    download_speed: Speed | None = None
    upload_speed: Speed | None = None


class TorrentStats(BaseModel):
    """Per-torrent statistics."""

    state: TorrentStatsState = Field(..., description="Torrent lifecycle state")
    error: str | None = Field(default=None, description="Engine error message")
    progress_bytes: int = Field(default=0, ge=0)
    uploaded_bytes: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)
    finished: bool = Field(default=False)
    live: LiveStats | None = Field(default=None)

    @property
    def progress(self) -> float:
        """Completed fraction in ``[0, 1]``."""
        if self.total_bytes <= 0:
            return 0.0
        return min(1.0, self.progress_bytes / self.total_bytes)

    @property
    def peers(self) -> PeerStats:
        """Peer counters, zeroed when the torrent is not live."""
        if self.live and self.live.snapshot:
            return self.live.snapshot.peer_stats
        return PeerStats()

    @property
    def download_mbps(self) -> float:
        if self.live and self.live.download_speed:
            return self.live.download_speed.mbps
        return 0.0

    @property
    def upload_mbps(self) -> float:
        if self.live and self.live.upload_speed:
            return self.live.upload_speed.mbps
        return 0.0


class EngineFile(BaseModel):
    """A file inside a torrent."""

    name: str = Field(..., description="File name (relative path)")
    length: int = Field(default=0, ge=0, description="File length in bytes")
    included: bool = Field(default=True, description="Selected for download")
    components: list[str] = Field(default_factory=list)


class TorrentDetails(BaseModel):
    """Engine view of a single torrent."""

    id: int | None = Field(default=None, description="Engine assigned id")
    info_hash: str = Field(..., description="Hex info hash")
    name: str | None = Field(default=None)
    output_folder: str = Field(default="")
    files: list[EngineFile] | None = Field(default=None)
    stats: TorrentStats | None = Field(default=None)

    def included_indices(self) -> set[int]:
        """Indices of the files the engine will download."""
        return {idx for idx, f in enumerate(self.files or []) if f.included}


class AddTorrentResponse(BaseModel):
    """Response of an add (or list-only probe) call."""

    id: int | None = Field(default=None)
    details: TorrentDetails
    output_folder: str = Field(default="")

    @property
    def info_hash(self) -> str:
        return self.details.info_hash

    @property
    def name(self) -> str | None:
        return self.details.name

    @property
    def files(self) -> list[EngineFile]:
        return self.details.files or []


class SessionCounters(BaseModel):
    """Session-wide byte counters."""

    fetched_bytes: int = Field(default=0, ge=0)
    uploaded_bytes: int = Field(default=0, ge=0)


class SessionStats(BaseModel):
    """Session-wide statistics snapshot."""

    counters: SessionCounters = Field(default_factory=SessionCounters)
    peers: PeerStats = Field(default_factory=PeerStats)
    download_speed: Speed = Field(default_factory=Speed)
    upload_speed: Speed = Field(default_factory=Speed)
    uptime_seconds: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class EngineConfig(BaseModel):
    """Torrent engine connection configuration."""

    url: str = Field(
        default="http://127.0.0.1:3030",
        description="Base URL of the engine HTTP API",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        le=600.0,
        description="Per-request timeout in seconds",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            msg = "engine url must start with http:// or https://"
            raise ValueError(msg)
        return v.rstrip("/")


class UIConfig(BaseModel):
    """Interactive terminal configuration."""

    refresh_interval: float = Field(
        default=0.5,
        ge=0.1,
        le=60.0,
        description="Seconds between periodic engine refreshes",
    )
    paste_debounce_ms: int = Field(
        default=200,
        ge=0,
        le=5000,
        description="Character keys closer than this in normal mode are paste noise",
    )
    help_scroll_max: int = Field(
        default=200,
        ge=0,
        description="Upper bound for the help dialog scroll offset",
    )


class AddConfig(BaseModel):
    """Add-torrent wizard configuration."""

    download_dir: str = Field(
        default_factory=default_download_dir,
        description="Default destination offered by the wizard",
    )
    probe_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Metadata probe attempts before giving up",
    )
    probe_retry_delay: float = Field(
        default=0.5,
        ge=0.0,
        le=30.0,
        description="Seconds between metadata probe attempts",
    )

    @field_validator("download_dir")
    @classmethod
    def expand_download_dir(cls, v: str) -> str:
        """Expand ``~`` in the configured directory."""
        return str(Path(v).expanduser())


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=False, description="Use structured (JSON) logging"
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )


class Config(BaseModel):
    """Main configuration model."""

    engine: EngineConfig = Field(
        default_factory=EngineConfig,
        description="Engine connection configuration",
    )
    ui: UIConfig = Field(
        default_factory=UIConfig,
        description="Terminal UI configuration",
    )
    add: AddConfig = Field(
        default_factory=AddConfig,
        description="Add-torrent wizard configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
