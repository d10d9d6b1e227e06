import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from wallify.config import settings
from wallify.core.middleware import setup_middleware

logger = logging.getLogger(__name__)

_tables_created = False


async def ensure_tables():
    """Create DB tables if they haven't been created yet, and seed the version row."""
    global _tables_created
    if _tables_created:
        return
    try:
        from wallify.db.engine import engine, async_session_factory
        from wallify.db.base import Base
        from wallify.services.version_service import VersionTracker
        import wallify.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with async_session_factory() as db:
            await VersionTracker(db).ensure_row()
            await db.commit()

        _tables_created = True
    except Exception as e:
        logger.warning("Table creation skipped: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await ensure_tables()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Wallify API",
        version="0.1.0",
        description="Digital signage content server",
        debug=settings.APP_DEBUG,
        lifespan=lifespan,
    )

    setup_middleware(app)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    from wallify.api.v1 import router as api_v1_router
    app.include_router(api_v1_router, prefix="/api/v1")

    # Uploaded media, loaded by display clients through PlaylistEntry.source_ref
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    return app


app = create_app()
