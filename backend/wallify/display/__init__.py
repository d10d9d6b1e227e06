from wallify.display.errors import DisplayError, MediaLoadError, SyncError
from wallify.display.renderer import HeadlessRenderer, Renderer
from wallify.display.rotation_engine import RotationEngine, RotationState, SwapPolicy
from wallify.display.session import DisplaySession, run_display
from wallify.display.sync_client import ClientStatus, SyncClient, SyncMode

__all__ = [
    "ClientStatus",
    "DisplayError",
    "DisplaySession",
    "HeadlessRenderer",
    "MediaLoadError",
    "Renderer",
    "RotationEngine",
    "RotationState",
    "SwapPolicy",
    "SyncClient",
    "SyncError",
    "SyncMode",
    "run_display",
]
