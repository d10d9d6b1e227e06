"""
Asset storage — the CRUD side of the content store.

Every mutation here advances the content version in the same session, so the caller's
commit publishes the new state and its version together.
"""
import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wallify.config import settings
from wallify.core.exceptions import BadRequestError, NotFoundError
from wallify.models.asset import Asset, AssetKind
from wallify.services.storage_service import file_extension, generate_asset_key, upload_file
from wallify.services.version_service import VersionTracker

logger = logging.getLogger(__name__)


async def _next_order_index(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(Asset.id)))
    return result.scalar() or 0


async def _ordered_assets(db: AsyncSession) -> list[Asset]:
    result = await db.execute(select(Asset).order_by(Asset.order_index, Asset.created_at))
    return list(result.scalars().all())


def _renumber(assets: list[Asset]) -> None:
    for i, asset in enumerate(assets):
        asset.order_index = i


async def create_upload_asset(
    db: AsyncSession,
    original_filename: str,
    file_data: bytes,
    content_type: str,
    duration: float | None = None,
) -> Asset:
    ext = file_extension(original_filename)
    if ext not in settings.ALLOWED_UPLOAD_EXTENSIONS:
        raise BadRequestError("Invalid file type")
    if len(file_data) > settings.MAX_UPLOAD_BYTES:
        raise BadRequestError("File too large")

    kind = AssetKind.VIDEO if content_type.startswith("video") else AssetKind.IMAGE
    key = generate_asset_key(original_filename)
    await upload_file(file_data, key)

    asset = Asset(
        name=original_filename,
        kind=kind.value,
        source_ref=key,
        content_type=content_type,
        duration_seconds=duration or settings.DEFAULT_IMAGE_DURATION,
        enabled=True,
        order_index=await _next_order_index(db),
    )
    db.add(asset)
    await db.flush()
    await VersionTracker(db).bump()
    await db.refresh(asset)

    logger.info("Asset '%s' uploaded as %s (%s, %.1fs)", asset.name, key, kind.value, asset.duration_seconds)
    return asset


async def create_url_asset(
    db: AsyncSession, url: str, name: str, duration: float | None = None
) -> Asset:
    asset = Asset(
        name=name,
        kind=AssetKind.URL.value,
        source_ref=url,
        duration_seconds=duration or settings.DEFAULT_URL_DURATION,
        enabled=True,
        order_index=await _next_order_index(db),
    )
    db.add(asset)
    await db.flush()
    await VersionTracker(db).bump()
    await db.refresh(asset)
    logger.info("URL asset '%s' added for %s", name, url)
    return asset


async def get_asset(db: AsyncSession, asset_id: uuid.UUID) -> Asset:
    result = await db.execute(select(Asset).where(Asset.id == asset_id))
    asset = result.scalar_one_or_none()
    if not asset:
        raise NotFoundError(f"Asset {asset_id} not found")
    return asset


async def list_assets(db: AsyncSession) -> tuple[list[Asset], int]:
    assets = await _ordered_assets(db)
    return assets, len(assets)


async def toggle_asset(db: AsyncSession, asset_id: uuid.UUID) -> Asset:
    asset = await get_asset(db, asset_id)
    asset.enabled = not asset.enabled
    await db.flush()
    await VersionTracker(db).bump()
    await db.refresh(asset)
    logger.info("Asset '%s' %s", asset.name, "enabled" if asset.enabled else "disabled")
    return asset


async def move_asset(db: AsyncSession, asset_id: uuid.UUID, direction: str) -> list[Asset]:
    """Swap an asset with its neighbour and renumber the whole list densely."""
    assets = await _ordered_assets(db)
    index = next((i for i, a in enumerate(assets) if a.id == asset_id), None)
    if index is None:
        raise NotFoundError(f"Asset {asset_id} not found")

    new_index = index - 1 if direction == "up" else index + 1
    if new_index < 0 or new_index >= len(assets):
        raise BadRequestError("Cannot move asset")

    assets[index], assets[new_index] = assets[new_index], assets[index]
    _renumber(assets)
    await db.flush()
    await VersionTracker(db).bump()
    return assets


async def delete_asset(db: AsyncSession, asset_id: uuid.UUID) -> str | None:
    """Delete the row and return the stored file key. The caller removes the file once committed."""
    asset = await get_asset(db, asset_id)
    key = asset.source_ref if asset.is_upload else None

    await db.delete(asset)
    await db.flush()
    _renumber(await _ordered_assets(db))
    await db.flush()
    await VersionTracker(db).bump()

    # Rules pointing at this asset are left in place; the resolver drops them
    logger.info("Asset %s deleted", asset_id)
    return key
