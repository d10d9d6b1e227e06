from typing import Literal

from pydantic import BaseModel, ConfigDict


class PlaylistEntry(BaseModel):
    """Read-only projection of an asset used for playback."""

    model_config = ConfigDict(frozen=True)

    id: str
    kind: Literal["image", "video", "url"]
    source_ref: str
    duration_seconds: float


class VersionResponse(BaseModel):
    version: int


class PlaylistResponse(BaseModel):
    version: int
    playlist: list[PlaylistEntry]
