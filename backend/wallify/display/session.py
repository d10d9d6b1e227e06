"""A display session wires the renderer, rotation engine and sync client together."""
import asyncio
import logging

import httpx

from wallify.config import Settings, settings as default_settings
from wallify.display.renderer import HeadlessRenderer, Renderer
from wallify.display.rotation_engine import RotationEngine
from wallify.display.sync_client import ClientStatus, SyncClient

logger = logging.getLogger(__name__)


class DisplaySession:

    def __init__(
        self,
        config: Settings | None = None,
        renderer: Renderer | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        self.config = config or default_settings
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=self.config.display_api_url,
            timeout=self.config.DISPLAY_REQUEST_TIMEOUT,
        )
        self.renderer = renderer or HeadlessRenderer(self.http, self.config.DISPLAY_SERVER_URL)
        self.engine = RotationEngine(
            self.renderer,
            swap_policy=self.config.DISPLAY_SWAP_POLICY,
            error_notice_seconds=self.config.DISPLAY_ERROR_NOTICE_SECONDS,
            error_retry_seconds=self.config.DISPLAY_ERROR_RETRY_SECONDS,
        )
        self.sync = SyncClient(
            self.engine,
            self.http,
            poll_interval=self.config.DISPLAY_POLL_INTERVAL,
            bootstrap_attempts=self.config.DISPLAY_BOOTSTRAP_ATTEMPTS,
            backoff_initial=self.config.DISPLAY_BACKOFF_INITIAL,
            backoff_max=self.config.DISPLAY_BACKOFF_MAX,
            sync_mode=self.config.DISPLAY_SYNC_MODE,
            on_status=self._on_status,
        )

    async def _on_status(self, status: ClientStatus, message: str) -> None:
        await self.renderer.show_status(status.value, message)

    async def run(self) -> None:
        """Run until cancelled. Connection problems never end the session."""
        logger.info("Display session starting against %s", self.config.display_api_url)
        try:
            await self.sync.run()
        finally:
            await self.close()

    async def close(self) -> None:
        await self.sync.close()
        await self.engine.stop()
        if self._owns_http:
            await self.http.aclose()
        logger.info("Display session stopped")


async def run_display(config: Settings | None = None) -> None:
    session = DisplaySession(config)
    try:
        await session.run()
    except asyncio.CancelledError:
        logger.info("Display session cancelled")
        raise
