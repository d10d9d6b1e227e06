import enum

from sqlalchemy import Boolean, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from wallify.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AssetKind(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    URL = "url"


class Asset(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "assets"

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    # image | video | url

    # Stored filename for uploads, absolute URL for url assets
    source_ref: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    duration_seconds: Mapped[float] = mapped_column(Float, default=10, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Dense and unique; renumbered after every structural change
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)

    @property
    def is_upload(self) -> bool:
        return self.kind != AssetKind.URL.value

    @property
    def playback_ref(self) -> str:
        """Reference a display client loads: the public upload path, or the page URL."""
        if self.is_upload:
            return f"/uploads/{self.source_ref}"
        return self.source_ref
