import uuid

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Sponsor(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "sponsors"

    company_name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    passcode_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
