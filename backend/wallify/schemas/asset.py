import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class AssetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | str
    name: str
    kind: str
    source_ref: str
    content_type: str | None = None
    duration_seconds: float
    enabled: bool
    order_index: int
    created_at: datetime | None = None


class AssetListResponse(BaseModel):
    assets: list[AssetResponse]
    total: int


class UrlAssetCreate(BaseModel):
    url: HttpUrl
    name: str = Field("Web URL", max_length=500)
    duration: float | None = Field(None, gt=0)


class ReorderRequest(BaseModel):
    asset_id: uuid.UUID
    direction: Literal["up", "down"]
