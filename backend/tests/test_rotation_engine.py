import asyncio

import pytest

from wallify.display.errors import MediaLoadError
from wallify.display.renderer import Renderer
from wallify.display.rotation_engine import RotationEngine, RotationState, SwapPolicy
from wallify.schemas.playlist import PlaylistEntry


def image(entry_id: str, duration: float = 10) -> PlaylistEntry:
    return PlaylistEntry(id=entry_id, kind="image", source_ref=f"/uploads/{entry_id}.png", duration_seconds=duration)


def video(entry_id: str, duration: float = 0.01) -> PlaylistEntry:
    return PlaylistEntry(id=entry_id, kind="video", source_ref=f"/uploads/{entry_id}.mp4", duration_seconds=duration)


class RecordingRenderer(Renderer):
    def __init__(self, failing: set[str] | None = None, failing_playback: set[str] | None = None):
        self.failing = failing or set()
        self.failing_playback = failing_playback or set()
        self.shown: list[str] = []
        self.placeholders = 0
        self.notices: list[str] = []
        self.resets = 0
        self.media_end: dict[str, asyncio.Event] = {}

    async def show(self, entry: PlaylistEntry) -> None:
        self.shown.append(entry.id)
        if entry.id in self.failing:
            raise MediaLoadError(entry.id, "broken file")

    async def wait_media_end(self, entry: PlaylistEntry) -> None:
        if entry.id in self.failing_playback:
            raise MediaLoadError(entry.id, "decoder error")
        event = self.media_end[entry.id] = asyncio.Event()
        await event.wait()

    def finish(self, entry_id: str) -> None:
        self.media_end[entry_id].set()

    async def show_placeholder(self) -> None:
        self.placeholders += 1

    async def show_notice(self, message: str, seconds: float) -> None:
        self.notices.append(message)

    async def reset(self) -> None:
        self.resets += 1


async def wait_for(condition, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_empty_playlist_is_idle():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([])

    assert engine.state == RotationState.IDLE
    assert engine.current is None
    assert renderer.placeholders == 1
    await engine.stop()


@pytest.mark.asyncio
async def test_start_shows_first_entry():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a"), image("b")])

    assert engine.state == RotationState.SHOWING
    assert engine.current.id == "a"
    assert renderer.shown == ["a"]
    assert renderer.resets == 1
    await engine.stop()


@pytest.mark.asyncio
async def test_images_advance_after_duration_and_wrap():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a", 0.02), image("b", 0.02)])

    await wait_for(lambda: len(renderer.shown) >= 3)
    assert renderer.shown[:3] == ["a", "b", "a"]
    await engine.stop()


@pytest.mark.asyncio
async def test_entry_stays_on_screen_for_its_duration():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a", 0.2), image("b")])

    await asyncio.sleep(0.05)
    assert engine.current.id == "a"
    await wait_for(lambda: renderer.shown == ["a", "b"])
    await engine.stop()


@pytest.mark.asyncio
async def test_video_waits_for_media_end_not_duration():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([video("v", duration=0.01), image("b")])

    await asyncio.sleep(0.05)
    assert engine.current.id == "v"

    renderer.finish("v")
    await wait_for(lambda: engine.current is not None and engine.current.id == "b")
    await engine.stop()


@pytest.mark.asyncio
async def test_load_error_skips_immediately():
    renderer = RecordingRenderer(failing={"x"})
    engine = RotationEngine(renderer)
    await engine.start([video("x"), image("y", 3)])

    await wait_for(lambda: engine.current is not None and engine.current.id == "y", timeout=0.5)
    assert renderer.shown == ["x", "y"]
    assert renderer.notices == ["Error loading /uploads/x.mp4"]
    await engine.stop()


@pytest.mark.asyncio
async def test_reported_playback_error_skips_current_entry():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([video("x"), image("y", 3)])
    assert engine.current.id == "x"

    await engine.report_error("x", "decode error")
    await wait_for(lambda: engine.current is not None and engine.current.id == "y", timeout=0.5)
    await engine.stop()


@pytest.mark.asyncio
async def test_error_report_for_other_entry_is_ignored():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a"), image("b")])

    await engine.report_error("b")
    await asyncio.sleep(0.02)
    assert engine.current.id == "a"
    assert renderer.notices == []
    await engine.stop()


@pytest.mark.asyncio
async def test_all_entries_failing_does_not_spin():
    renderer = RecordingRenderer(failing={"a", "b"})
    engine = RotationEngine(renderer, error_retry_seconds=10)
    await engine.start([image("a"), image("b")])

    await wait_for(lambda: renderer.placeholders == 1)
    await asyncio.sleep(0.05)
    assert renderer.shown == ["a", "b"]
    assert engine.current is None
    await engine.stop()


@pytest.mark.asyncio
async def test_all_entries_failing_during_playback_does_not_spin():
    renderer = RecordingRenderer(failing_playback={"x", "y"})
    engine = RotationEngine(renderer, error_retry_seconds=5)
    await engine.start([video("x"), video("y")])

    await asyncio.sleep(0.2)
    assert renderer.shown == ["x", "y"]
    assert renderer.placeholders == 1
    await engine.stop()


@pytest.mark.asyncio
async def test_completed_entry_resets_failure_streak():
    renderer = RecordingRenderer(failing_playback={"x"})
    engine = RotationEngine(renderer, error_retry_seconds=5)
    await engine.start([video("x"), image("b", 0.02)])

    # x fails, b plays to its end, x fails again: never two failures in a row
    await wait_for(lambda: len(renderer.shown) >= 4)
    assert renderer.shown[:4] == ["x", "b", "x", "b"]
    assert renderer.placeholders == 0
    await engine.stop()


@pytest.mark.asyncio
async def test_resume_nearest_keeps_current_entry():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer, swap_policy=SwapPolicy.RESUME_NEAREST)
    await engine.start([image("a"), image("b")])

    await engine.swap([image("c"), image("a")])

    assert engine.current.id == "a"
    assert engine.index == 1
    assert renderer.shown == ["a"]  # not reloaded
    await engine.stop()


@pytest.mark.asyncio
async def test_resume_nearest_keeps_advancing_on_schedule():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer, swap_policy=SwapPolicy.RESUME_NEAREST)
    await engine.start([image("a", 0.1), image("b")])

    await asyncio.sleep(0.05)
    await engine.swap([image("a", 0.1), image("c")])

    # The running trigger was kept, so "a" does not get a fresh 0.1s
    await wait_for(lambda: renderer.shown == ["a", "c"], timeout=0.2)
    await engine.stop()


@pytest.mark.asyncio
async def test_resume_nearest_reloads_changed_entry():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a", 10), image("b")])

    await engine.swap([image("b"), image("a", 20)])

    assert engine.index == 1
    assert engine.current.duration_seconds == 20
    assert renderer.shown == ["a", "a"]
    await engine.stop()


@pytest.mark.asyncio
async def test_resume_nearest_restarts_when_current_is_gone():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a"), image("b")])

    await engine.swap([image("c"), image("d")])

    assert engine.current.id == "c"
    assert renderer.shown == ["a", "c"]
    await engine.stop()


@pytest.mark.asyncio
async def test_reset_to_start_policy():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer, swap_policy="reset-to-start")
    await engine.start([image("a"), image("b")])
    await engine.advance()
    assert engine.current.id == "b"

    await engine.swap([image("a"), image("b")])

    assert engine.current.id == "a"
    assert renderer.shown == ["a", "b", "a"]
    await engine.stop()


@pytest.mark.asyncio
async def test_swap_to_empty_goes_idle():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a")])

    await engine.swap([])

    assert engine.state == RotationState.IDLE
    assert renderer.placeholders == 1
    await engine.stop()


@pytest.mark.asyncio
async def test_reload_resets_renderer_and_starts_over():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a"), image("b")])
    await engine.advance()

    await engine.reload([image("a"), image("b")])

    assert renderer.resets == 2
    assert engine.current.id == "a"
    await engine.stop()


@pytest.mark.asyncio
async def test_only_one_trigger_is_armed():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    playlist = [image("a", 0.05), image("b", 10)]

    for _ in range(5):
        await engine.reload(playlist)
    await asyncio.sleep(0.15)

    assert renderer.shown == ["a"] * 5 + ["b"]
    await engine.stop()


@pytest.mark.asyncio
async def test_stop_cancels_pending_advance():
    renderer = RecordingRenderer()
    engine = RotationEngine(renderer)
    await engine.start([image("a", 0.02), image("b")])

    await engine.stop()
    await asyncio.sleep(0.05)

    assert renderer.shown == ["a"]
    assert engine.state == RotationState.IDLE
