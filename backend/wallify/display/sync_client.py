"""
Sync client — keeps one display in step with the content server.

  bootstrap   fetch (version, playlist) with exponential backoff (1s doubling, capped);
              after `bootstrap_attempts` failures the status turns OFFLINE and retries
              continue at the capped interval forever
  poll        GET /version every `poll_interval` seconds, one request at a time
  fetch       on a version change, GET /current-playlist in a separate task; a fetch
              that is overtaken by a newer one is discarded when it lands, never applied
  adopt       hand the playlist to the rotation engine only when its content differs
              from what is on screen; "soft" mode swaps in place, "hard" mode reloads

Network failures are never raised out of the client; they only change the status.
"""
import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable

import httpx

from wallify.display.errors import SyncError
from wallify.display.rotation_engine import RotationEngine
from wallify.schemas.playlist import PlaylistEntry, PlaylistResponse, VersionResponse

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class ClientStatus(str, enum.Enum):
    CONNECTING = "connecting"
    RETRYING = "retrying"
    ONLINE = "online"
    OFFLINE = "offline"


class SyncMode(str, enum.Enum):
    SOFT = "soft"
    HARD = "hard"


def backoff_delay(attempt: int, initial: float = 1.0, maximum: float = 10.0) -> float:
    """Delay before retry number `attempt` (1-based): initial, 2x, 4x, ... capped at maximum."""
    return min(initial * (2 ** (attempt - 1)), maximum)


class SyncClient:

    def __init__(
        self,
        engine: RotationEngine,
        http: httpx.AsyncClient,
        poll_interval: float = 5.0,
        bootstrap_attempts: int = 10,
        backoff_initial: float = 1.0,
        backoff_max: float = 10.0,
        sync_mode: SyncMode | str = SyncMode.SOFT,
        on_status: Callable[[ClientStatus, str], Awaitable[None]] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.engine = engine
        self.http = http
        self.poll_interval = poll_interval
        self.bootstrap_attempts = bootstrap_attempts
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.sync_mode = SyncMode(sync_mode)
        self.on_status = on_status
        self._sleep = sleep

        self.status = ClientStatus.CONNECTING
        self.adopted_version: int | None = None
        self.latest_version: int | None = None
        self.displayed: list[PlaylistEntry] = []

        self._failures = 0
        self._poll_in_flight = False
        self._fetch_generation = 0
        self._fetch_target: int | None = None
        self._fetch_tasks: set[asyncio.Task] = set()

    # ── Lifecycle ────────────────────────────────────────────────────────────

    async def run(self) -> None:
        await self.bootstrap()
        while True:
            await self._sleep(self._next_poll_delay())
            await self.poll_once()

    async def close(self) -> None:
        tasks = list(self._fetch_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def bootstrap(self) -> None:
        await self._set_status(ClientStatus.CONNECTING, "Connecting to server...")
        attempt = 0
        while True:
            try:
                payload = await self.fetch_playlist()
            except (httpx.HTTPError, SyncError) as exc:
                attempt += 1
                logger.warning("Bootstrap attempt %d failed: %s", attempt, exc)
                if attempt < self.bootstrap_attempts:
                    delay = backoff_delay(attempt, self.backoff_initial, self.backoff_max)
                    await self._set_status(
                        ClientStatus.RETRYING,
                        f"Retrying connection... ({attempt}/{self.bootstrap_attempts})",
                    )
                else:
                    delay = self.backoff_max
                    await self._set_status(
                        ClientStatus.OFFLINE, "Failed to connect to server. Please check server status."
                    )
                await self._sleep(delay)
                continue

            self.latest_version = payload.version
            await self._adopt(payload, initial=True)
            self._failures = 0
            await self._set_status(ClientStatus.ONLINE, "Connected")
            return

    # ── Steady state ─────────────────────────────────────────────────────────

    async def poll_once(self) -> None:
        if self._poll_in_flight:
            logger.debug("Poll already in flight, skipping")
            return
        self._poll_in_flight = True
        try:
            version = await self.fetch_version()
        except (httpx.HTTPError, SyncError) as exc:
            await self._record_failure(exc)
            return
        finally:
            self._poll_in_flight = False

        if self._failures:
            logger.info("Server reachable again after %d failed polls", self._failures)
            self._failures = 0
            await self._set_status(ClientStatus.ONLINE, "Connected")

        if self.latest_version is not None and version < self.latest_version:
            logger.warning(
                "Server version went backwards (v%d -> v%d), following the server", self.latest_version, version
            )
        # The server is authoritative, even after a restore to an older version
        self.latest_version = version

        if version == self.adopted_version or version == self._fetch_target:
            return
        logger.info("Version changed (%s -> %d), fetching playlist", self.adopted_version, version)
        self._start_fetch(version)

    def _start_fetch(self, version: int) -> None:
        self._fetch_generation += 1
        self._fetch_target = version
        task = asyncio.create_task(self._fetch_and_apply(self._fetch_generation))
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)

    async def _fetch_and_apply(self, generation: int) -> None:
        try:
            payload = await self.fetch_playlist()
        except (httpx.HTTPError, SyncError) as exc:
            if generation != self._fetch_generation:
                logger.debug("Superseded playlist fetch failed: %s", exc)
                return
            # Let the next poll start a fresh fetch
            self._fetch_target = None
            await self._record_failure(exc)
            return

        if generation != self._fetch_generation:
            logger.debug("Discarding superseded playlist fetch (v%d)", payload.version)
            return
        self._fetch_target = None

        if payload.version == self.adopted_version:
            return
        self.latest_version = payload.version
        await self._adopt(payload)

    async def _adopt(self, payload: PlaylistResponse, initial: bool = False) -> None:
        self.adopted_version = payload.version
        if not initial and payload.playlist == self.displayed:
            logger.debug("v%d has the same playlist, nothing to swap", payload.version)
            return

        self.displayed = list(payload.playlist)
        if initial or self.sync_mode == SyncMode.HARD:
            await self.engine.reload(payload.playlist)
        else:
            await self.engine.swap(payload.playlist)
        logger.info("Adopted playlist v%d (%d entries)", payload.version, len(payload.playlist))

    # ── HTTP ─────────────────────────────────────────────────────────────────

    async def fetch_version(self) -> int:
        resp = await self.http.get("/version", headers=NO_CACHE_HEADERS, params=self._cache_buster())
        resp.raise_for_status()
        try:
            return VersionResponse.model_validate(resp.json()).version
        except ValueError as exc:
            raise SyncError(f"Malformed version response: {exc}") from exc

    async def fetch_playlist(self) -> PlaylistResponse:
        resp = await self.http.get("/current-playlist", headers=NO_CACHE_HEADERS, params=self._cache_buster())
        resp.raise_for_status()
        try:
            return PlaylistResponse.model_validate(resp.json())
        except ValueError as exc:
            raise SyncError(f"Malformed playlist response: {exc}") from exc

    @staticmethod
    def _cache_buster() -> dict:
        return {"t": str(int(time.time() * 1000))}

    # ── Status ───────────────────────────────────────────────────────────────

    async def _record_failure(self, exc: Exception) -> None:
        self._failures += 1
        logger.warning("Sync failed (%d in a row): %s", self._failures, exc)
        if self._failures >= self.bootstrap_attempts:
            await self._set_status(ClientStatus.OFFLINE, "Server unreachable")
        else:
            await self._set_status(ClientStatus.RETRYING, f"Connection error ({self._failures})")

    def _next_poll_delay(self) -> float:
        if not self._failures:
            return self.poll_interval
        return max(self.poll_interval, backoff_delay(self._failures, self.backoff_initial, self.backoff_max))

    async def _set_status(self, status: ClientStatus, message: str) -> None:
        changed = status != self.status
        self.status = status
        if self.on_status is not None and (changed or status != ClientStatus.ONLINE):
            await self.on_status(status, message)
