"""HTTP client for an rqbit-compatible torrent engine.

Provides the :class:`~torrentdeck.engine.base.TorrentEngine` operations over
the engine's REST API.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from torrentdeck.engine.base import AddSource, AddTorrentOptions
from torrentdeck.models import AddTorrentResponse, SessionStats, TorrentDetails
from torrentdeck.utils.exceptions import EngineError, EngineUnavailableError

logger = logging.getLogger(__name__)


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


class HttpTorrentEngine:
    """Torrent engine reached over HTTP."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        """Initialize HTTP engine client.

        Args:
            base_url: Base URL of the engine API (e.g. ``http://127.0.0.1:3030``)
            timeout: Request timeout in seconds

        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HttpTorrentEngine:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Create the HTTP session on first use, or after it was closed."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        params: dict[str, str] | None = None,
        data: bytes | str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send one request and decode its JSON body.

        Raises:
            EngineUnavailableError: The engine refused the connection
            EngineError: Timeout, transport failure or non-2xx response

        """
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, url, params)
        try:
            async with session.request(
                method, url, params=params, data=data, headers=headers
            ) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    raise EngineError(
                        self._error_message(body, resp.status),
                        details={"status": resp.status, "url": url, "body": body[:500]},
                        operation=operation,
                    )
        except aiohttp.ClientConnectorError as e:
            msg = f"engine unreachable at {self.base_url}"
            raise EngineUnavailableError(
                msg, details={"url": url}, operation=operation
            ) from e
        except asyncio.TimeoutError as e:
            msg = "request timed out"
            raise EngineError(msg, details={"url": url}, operation=operation) from e
        except aiohttp.ClientError as e:
            raise EngineError(str(e), details={"url": url}, operation=operation) from e

        if not body:
            return None
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            msg = "engine returned invalid JSON"
            raise EngineError(
                msg, details={"url": url, "body": body[:500]}, operation=operation
            ) from e

    @staticmethod
    def _error_message(body: str, status: int) -> str:
        """Extract the engine's human readable error, if any."""
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            for key in ("human_readable", "error", "message"):
                if isinstance(payload.get(key), str):
                    return payload[key]
        return body.strip() or f"HTTP {status}"

    @staticmethod
    def _parse(model: type, payload: Any, operation: str) -> Any:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            msg = "unexpected response from engine"
            raise EngineError(
                msg, details={"errors": e.errors()}, operation=operation
            ) from e

    async def list_torrents(self, with_stats: bool = True) -> list[TorrentDetails]:
        """List torrents."""
        operation = "error listing torrents"
        payload = await self._request(
            "GET",
            "/torrents",
            operation,
            params={"with_stats": _bool_param(with_stats)},
        )
        items = (payload or {}).get("torrents", [])
        return [self._parse(TorrentDetails, item, operation) for item in items]

    async def session_stats(self) -> SessionStats:
        """Get the session statistics snapshot."""
        operation = "error reading session stats"
        payload = await self._request("GET", "/stats", operation)
        return self._parse(SessionStats, payload or {}, operation)

    async def add_torrent(
        self, source: AddSource, options: AddTorrentOptions
    ) -> AddTorrentResponse:
        """Add a torrent, or only list its files when ``options.list_only``."""
        operation = "error listing files" if options.list_only else "error adding torrent"
        params: dict[str, str] = {
            "overwrite": _bool_param(options.overwrite),
            "list_only": _bool_param(options.list_only),
            "paused": _bool_param(options.paused),
        }
        if options.output_folder:
            params["output_folder"] = options.output_folder
        if options.only_files is not None:
            params["only_files"] = ",".join(str(i) for i in options.only_files)

        if source.is_url:
            data: bytes | str = source.url or ""
            headers = {"Content-Type": "text/plain"}
        else:
            data = source.data or b""
            headers = {"Content-Type": "application/octet-stream"}

        payload = await self._request(
            "POST", "/torrents", operation, params=params, data=data, headers=headers
        )
        return self._parse(AddTorrentResponse, payload, operation)

    async def torrent_details(self, torrent_id: int) -> TorrentDetails:
        """Get details for one torrent."""
        operation = "error reading torrent details"
        payload = await self._request("GET", f"/torrents/{torrent_id}", operation)
        return self._parse(TorrentDetails, payload, operation)

    async def _action(self, torrent_id: int, action: str, operation: str) -> None:
        await self._request("POST", f"/torrents/{torrent_id}/{action}", operation)

    async def action_pause(self, torrent_id: int) -> None:
        await self._action(torrent_id, "pause", "error pausing torrent")

    async def action_start(self, torrent_id: int) -> None:
        await self._action(torrent_id, "start", "error starting torrent")

    async def action_forget(self, torrent_id: int) -> None:
        await self._action(torrent_id, "forget", "error stopping torrent")

    async def action_delete(self, torrent_id: int) -> None:
        await self._action(torrent_id, "delete", "error deleting torrent and files")
