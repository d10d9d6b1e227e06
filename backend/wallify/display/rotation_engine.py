"""
Rotation engine — cycles a display through its playlist.

States:
  IDLE           — empty playlist, placeholder on screen
  TRANSITIONING  — an entry is being loaded (or the engine is backing off after errors)
  SHOWING        — playlist[index] is on screen and its advance trigger is armed

Entering SHOWING arms exactly one advance trigger: a timer of `duration_seconds` for
images and pages, or the renderer's media-end signal for videos. The trigger is a single
task handle that is replaced on every transition; a trigger that fires after being
superseded is ignored by comparing generations.

A new playlist is adopted with either
  swap()    — keeps the current item on screen when it is still present
              (resume-nearest) or restarts at index 0 (reset-to-start)
  reload()  — resets the renderer and always restarts at index 0
"""
import asyncio
import enum
import logging
from collections.abc import Sequence

from wallify.display.errors import MediaLoadError
from wallify.display.renderer import Renderer
from wallify.schemas.playlist import PlaylistEntry

logger = logging.getLogger(__name__)


class RotationState(str, enum.Enum):
    IDLE = "idle"
    TRANSITIONING = "transitioning"
    SHOWING = "showing"


class SwapPolicy(str, enum.Enum):
    RESET_TO_START = "reset-to-start"
    RESUME_NEAREST = "resume-nearest"


class RotationEngine:

    def __init__(
        self,
        renderer: Renderer,
        swap_policy: SwapPolicy | str = SwapPolicy.RESUME_NEAREST,
        error_notice_seconds: float = 3.0,
        error_retry_seconds: float = 5.0,
    ):
        self.renderer = renderer
        self.swap_policy = SwapPolicy(swap_policy)
        self.error_notice_seconds = error_notice_seconds
        self.error_retry_seconds = error_retry_seconds

        self.playlist: list[PlaylistEntry] = []
        self.index = 0
        self.state = RotationState.IDLE

        self._lock = asyncio.Lock()
        self._trigger: asyncio.Task | None = None
        self._generation = 0
        self._consecutive_failures = 0

    @property
    def current(self) -> PlaylistEntry | None:
        if self.state != RotationState.SHOWING or not self.playlist:
            return None
        return self.playlist[self.index]

    def snapshot(self) -> tuple[RotationState, int, PlaylistEntry | None]:
        return self.state, self.index, self.current

    # ── Public transitions ───────────────────────────────────────────────────

    async def reload(self, playlist: Sequence[PlaylistEntry]) -> None:
        """Hard resync: reset the presentation context and start from the first entry."""
        async with self._lock:
            self._cancel_trigger()
            self._generation += 1
            await self.renderer.reset()
            self.playlist = list(playlist)
            self._consecutive_failures = 0
            logger.info("Reloaded playlist with %d entries", len(self.playlist))
            await self._enter(0)

    start = reload

    async def swap(self, playlist: Sequence[PlaylistEntry]) -> None:
        """Soft swap according to the configured swap policy."""
        async with self._lock:
            current = self.current
            self.playlist = list(playlist)
            self._consecutive_failures = 0

            if current is not None and self.swap_policy == SwapPolicy.RESUME_NEAREST:
                new_index = next((i for i, e in enumerate(self.playlist) if e.id == current.id), None)
                if new_index is not None:
                    if self.playlist[new_index] == current:
                        # Still on screen, trigger keeps running
                        self.index = new_index
                        logger.info("Swapped playlist, resuming %s at index %d", current.id, new_index)
                        return
                    logger.info("Swapped playlist, %s changed and is reloaded at index %d", current.id, new_index)
                    await self._enter(new_index)
                    return

            logger.info("Swapped playlist with %d entries, starting from the top", len(self.playlist))
            await self._enter(0)

    async def advance(self) -> None:
        async with self._lock:
            await self._enter(self.index + 1)

    async def report_error(self, entry_id: str, reason: str = "") -> None:
        """Called by renderers that detect a failure after show() returned."""
        async with self._lock:
            entry = self.current
            if entry is None or entry.id != entry_id:
                logger.debug("Ignoring error report for %s, no longer on screen", entry_id)
                return
            self._cancel_trigger()
            self._trigger = asyncio.create_task(
                self._skip_after_error(self._generation, entry, MediaLoadError(entry_id, reason))
            )

    async def stop(self) -> None:
        async with self._lock:
            trigger = self._trigger
            self._cancel_trigger()
            self._generation += 1
            self.state = RotationState.IDLE
        if trigger is not None and trigger is not asyncio.current_task():
            await asyncio.gather(trigger, return_exceptions=True)

    # ── Internals (lock held by caller) ──────────────────────────────────────

    def _cancel_trigger(self) -> None:
        trigger, self._trigger = self._trigger, None
        # A trigger that is advancing the rotation is the caller itself and finishes on its own
        if trigger is not None and trigger is not asyncio.current_task():
            trigger.cancel()

    async def _enter(self, index: int) -> None:
        self._cancel_trigger()
        self._generation += 1
        generation = self._generation

        if not self.playlist:
            self.index = 0
            self.state = RotationState.IDLE
            await self.renderer.show_placeholder()
            return

        self.index = index % len(self.playlist)
        entry = self.playlist[self.index]
        self.state = RotationState.TRANSITIONING

        try:
            await self.renderer.show(entry)
        except MediaLoadError as exc:
            self._trigger = asyncio.create_task(self._skip_after_error(generation, entry, exc))
            return

        self.state = RotationState.SHOWING
        self._trigger = asyncio.create_task(self._run_trigger(generation, entry))

    # ── Triggers ─────────────────────────────────────────────────────────────

    async def _run_trigger(self, generation: int, entry: PlaylistEntry) -> None:
        try:
            if entry.kind == "video":
                # Media end is authoritative, duration is advisory
                await self.renderer.wait_media_end(entry)
            else:
                await asyncio.sleep(entry.duration_seconds)
        except MediaLoadError as exc:
            await self._skip_after_error(generation, entry, exc)
            return

        async with self._lock:
            if generation != self._generation:
                return
            # A completed entry ends the failure streak
            self._consecutive_failures = 0
            await self._enter(self.index + 1)

    async def _skip_after_error(self, generation: int, entry: PlaylistEntry, exc: MediaLoadError) -> None:
        async with self._lock:
            if generation != self._generation:
                return
            self._consecutive_failures += 1
            logger.warning("Skipping %s: %s", entry.id, exc)
            await self.renderer.show_notice(f"Error loading {entry.source_ref}", self.error_notice_seconds)
            exhausted = self._consecutive_failures >= len(self.playlist)

        if exhausted:
            # Every entry failed in a row; wait instead of spinning through them
            logger.warning(
                "All %d entries failed to load, retrying in %.0fs",
                len(self.playlist), self.error_retry_seconds,
            )
            await self.renderer.show_placeholder()
            await asyncio.sleep(self.error_retry_seconds)

        async with self._lock:
            if generation != self._generation:
                return
            if exhausted:
                self._consecutive_failures = 0
            await self._enter(self.index + 1)
