import logging
import os
import uuid

from wallify.config import settings

logger = logging.getLogger(__name__)


def upload_dir() -> str:
    return os.path.abspath(settings.UPLOAD_DIR)


def file_path(key: str) -> str:
    # Keys are generated by us, but never let one escape the upload directory
    return os.path.join(upload_dir(), os.path.basename(key))


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def generate_asset_key(filename: str) -> str:
    ext = file_extension(filename)
    return f"{uuid.uuid4()}.{ext}" if ext else str(uuid.uuid4())


async def upload_file(file_data: bytes, key: str) -> str:
    path = file_path(key)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(file_data)
    logger.info("Stored upload %s (%d bytes)", key, len(file_data))
    return key


async def delete_file(key: str) -> None:
    path = file_path(key)
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.debug("Upload %s already gone", key)
