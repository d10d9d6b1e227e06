# Schemas package
from wallify.schemas.asset import AssetListResponse, AssetResponse, ReorderRequest, UrlAssetCreate
from wallify.schemas.playlist import PlaylistEntry, PlaylistResponse, VersionResponse
from wallify.schemas.schedule import RuleCreate, RuleResponse

__all__ = [
    "AssetListResponse",
    "AssetResponse",
    "ReorderRequest",
    "UrlAssetCreate",
    "PlaylistEntry",
    "PlaylistResponse",
    "VersionResponse",
    "RuleCreate",
    "RuleResponse",
]
