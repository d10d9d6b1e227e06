"""
Renderers put playlist entries on the screen.

The rotation engine only talks to the `Renderer` interface. `HeadlessRenderer` is the
default for kiosks driven by an external browser or for monitoring: it logs what would
be shown and probes uploaded media over HTTP so that broken files are skipped the same
way a real player would skip them.
"""
import abc
import asyncio
import logging
from urllib.parse import urljoin

import httpx

from wallify.display.errors import MediaLoadError
from wallify.schemas.playlist import PlaylistEntry

logger = logging.getLogger(__name__)


class Renderer(abc.ABC):

    @abc.abstractmethod
    async def show(self, entry: PlaylistEntry) -> None:
        """Load and display an entry. Raises MediaLoadError if it cannot be shown."""

    async def wait_media_end(self, entry: PlaylistEntry) -> None:
        """Return when a video entry finishes playing. Raises MediaLoadError on playback failure."""
        await asyncio.sleep(entry.duration_seconds)

    @abc.abstractmethod
    async def show_placeholder(self) -> None:
        """Shown while there is nothing to play."""

    async def show_notice(self, message: str, seconds: float) -> None:
        """Transient message; must not block for `seconds`."""

    async def show_status(self, status: str, message: str) -> None:
        """Connection status indicator."""

    async def reset(self) -> None:
        """Tear down the whole presentation context before a hard resync."""


class HeadlessRenderer(Renderer):

    def __init__(self, http: httpx.AsyncClient, server_url: str):
        self.http = http
        self.server_url = server_url.rstrip("/") + "/"
        self.current: PlaylistEntry | None = None

    def media_url(self, entry: PlaylistEntry) -> str:
        return urljoin(self.server_url, entry.source_ref.lstrip("/"))

    async def show(self, entry: PlaylistEntry) -> None:
        if entry.kind != "url":
            await self._probe(entry)
        self.current = entry
        logger.info("Showing %s %s (%.1fs)", entry.kind, entry.source_ref, entry.duration_seconds)

    async def _probe(self, entry: PlaylistEntry) -> None:
        url = self.media_url(entry)
        try:
            resp = await self.http.head(url)
        except httpx.HTTPError as exc:
            raise MediaLoadError(entry.id, str(exc)) from exc
        if resp.status_code >= 400:
            raise MediaLoadError(entry.id, f"HTTP {resp.status_code} for {url}")

    async def show_placeholder(self) -> None:
        self.current = None
        logger.info("No content scheduled, showing placeholder")

    async def show_notice(self, message: str, seconds: float) -> None:
        logger.warning("Notice (%.0fs): %s", seconds, message)

    async def show_status(self, status: str, message: str) -> None:
        logger.info("Status %s: %s", status, message)

    async def reset(self) -> None:
        self.current = None
        logger.info("Presentation reset")
