import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from wallify.core.exceptions import NotFoundError
from wallify.db.session import get_db
from wallify.schemas.asset import AssetListResponse, AssetResponse, ReorderRequest, UrlAssetCreate
from wallify.services.asset_service import (
    create_upload_asset,
    create_url_asset,
    delete_asset,
    get_asset,
    list_assets,
    move_asset,
    toggle_asset,
)
from wallify.services.storage_service import delete_file, file_path

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])


@router.get("", response_model=AssetListResponse)
async def list_assets_endpoint(db: AsyncSession = Depends(get_db)):
    assets, total = await list_assets(db)
    return AssetListResponse(assets=assets, total=total)


@router.post("/upload", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
async def upload_asset(
    file: UploadFile = File(...),
    duration: float | None = Form(None, gt=0),
    db: AsyncSession = Depends(get_db),
):
    file_data = await file.read()
    asset = await create_upload_asset(
        db,
        original_filename=file.filename or "upload",
        file_data=file_data,
        content_type=file.content_type or "application/octet-stream",
        duration=duration,
    )
    await db.commit()
    return asset


@router.post("/url", response_model=AssetResponse, status_code=status.HTTP_201_CREATED)
async def add_url_asset(body: UrlAssetCreate, db: AsyncSession = Depends(get_db)):
    asset = await create_url_asset(db, url=str(body.url), name=body.name, duration=body.duration)
    await db.commit()
    return asset


@router.post("/reorder", response_model=AssetListResponse)
async def reorder_asset(body: ReorderRequest, db: AsyncSession = Depends(get_db)):
    assets = await move_asset(db, body.asset_id, body.direction)
    await db.commit()
    return AssetListResponse(assets=assets, total=len(assets))


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset_endpoint(asset_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await get_asset(db, asset_id)


@router.get("/{asset_id}/download")
async def download_asset(asset_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    asset = await get_asset(db, asset_id)
    if not asset.is_upload:
        raise NotFoundError("URL assets have no stored file")
    return FileResponse(file_path(asset.source_ref), media_type=asset.content_type, filename=asset.name)


@router.patch("/{asset_id}/toggle", response_model=AssetResponse)
async def toggle_asset_endpoint(asset_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    asset = await toggle_asset(db, asset_id)
    await db.commit()
    return asset


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset_endpoint(asset_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    key = await delete_asset(db, asset_id)
    await db.commit()
    if key:
        await delete_file(key)
