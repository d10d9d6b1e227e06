import os
import tempfile
from collections.abc import AsyncIterator

# Uploads go to a throwaway directory; must be set before wallify.config is imported
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="wallify-uploads-"))
os.environ.setdefault("APP_DEBUG", "false")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wallify.db.base import Base
from wallify.db.session import get_db
from wallify.main import create_app
from wallify.services.version_service import VersionTracker

# Use SQLite for testing (no PostgreSQL needed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# SQLite compatibility: compile PostgreSQL types to SQLite equivalents
from sqlalchemy.dialects.postgresql import UUID as PG_UUID, JSONB


@event.listens_for(engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _register_sqlite_compilers():
    """Register SQLite-compatible compilers for PG types."""
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_UUID, "sqlite")
    def compile_uuid(type_, compiler, **kw):
        return "VARCHAR(36)"

    @compiles(JSONB, "sqlite")
    def compile_jsonb(type_, compiler, **kw):
        return "TEXT"


_register_sqlite_compilers()


@pytest_asyncio.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    # Import all models
    import wallify.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        await VersionTracker(session).ensure_row()
        await session.commit()
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

