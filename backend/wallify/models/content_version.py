from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from wallify.db.base import Base, TimestampMixin

CONTENT_VERSION_ROW_ID = 1


class ContentVersion(TimestampMixin, Base):
    """Single-row table holding the version of the combined asset + schedule state."""

    __tablename__ = "content_version"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=CONTENT_VERSION_ROW_ID)
    version: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
