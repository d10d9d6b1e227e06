import httpx
import pytest

from wallify.config import Settings
from wallify.display.errors import MediaLoadError
from wallify.display.renderer import HeadlessRenderer
from wallify.display.rotation_engine import RotationState
from wallify.display.session import DisplaySession
from wallify.display.sync_client import ClientStatus
from wallify.schemas.playlist import PlaylistEntry

PLAYLIST = {
    "version": 4,
    "playlist": [
        {"id": "1", "kind": "image", "source_ref": "/uploads/one.png", "duration_seconds": 10},
        {"id": "2", "kind": "url", "source_ref": "https://example.com/", "duration_seconds": 30},
    ],
}


def server(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/v1/current-playlist":
        return httpx.Response(200, json=PLAYLIST)
    if request.url.path == "/api/v1/version":
        return httpx.Response(200, json={"version": PLAYLIST["version"]})
    if request.url.path == "/uploads/one.png":
        return httpx.Response(200)
    return httpx.Response(404)


def test_poll_interval_is_clamped():
    assert Settings(DISPLAY_POLL_INTERVAL=1).DISPLAY_POLL_INTERVAL == 3
    assert Settings(DISPLAY_POLL_INTERVAL=30).DISPLAY_POLL_INTERVAL == 5
    assert Settings(DISPLAY_POLL_INTERVAL=4).DISPLAY_POLL_INTERVAL == 4


def test_invalid_sync_mode_is_rejected():
    with pytest.raises(ValueError):
        Settings(DISPLAY_SYNC_MODE="eventually")


def test_display_api_url():
    assert Settings(DISPLAY_SERVER_URL="http://signage.local:8000/").display_api_url == (
        "http://signage.local:8000/api/v1"
    )


@pytest.mark.asyncio
async def test_session_bootstraps_into_rotation():
    config = Settings(DISPLAY_SERVER_URL="http://signage.test")
    http = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url=config.display_api_url)
    session = DisplaySession(config, http=http)

    await session.sync.bootstrap()

    assert session.sync.status == ClientStatus.ONLINE
    assert session.engine.state == RotationState.SHOWING
    assert session.engine.current.id == "1"
    assert session.renderer.current.source_ref == "/uploads/one.png"

    await session.close()
    assert session.engine.state == RotationState.IDLE
    await http.aclose()


@pytest.mark.asyncio
async def test_headless_renderer_probes_uploads():
    http = httpx.AsyncClient(transport=httpx.MockTransport(server))
    renderer = HeadlessRenderer(http, "http://signage.test")

    good = PlaylistEntry(id="1", kind="image", source_ref="/uploads/one.png", duration_seconds=5)
    missing = PlaylistEntry(id="2", kind="video", source_ref="/uploads/gone.mp4", duration_seconds=5)
    page = PlaylistEntry(id="3", kind="url", source_ref="https://example.com/", duration_seconds=5)

    assert renderer.media_url(good) == "http://signage.test/uploads/one.png"
    await renderer.show(good)
    assert renderer.current == good

    with pytest.raises(MediaLoadError):
        await renderer.show(missing)

    # Pages are not probed, the browser decides whether they load
    await renderer.show(page)
    assert renderer.current == page
    await http.aclose()
