import uuid

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ResourceCategory(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "resource_categories"

    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Resource(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "resources"

    # exactly one of category_id / sponsor_id is set
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("resource_categories.id", ondelete="CASCADE"), nullable=True, index=True
    )
    sponsor_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("sponsors.id", ondelete="CASCADE"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
