import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from portal.models.base import Base, TimestampMixin


class MemberInfo(Base, TimestampMixin):
    __tablename__ = "member_info"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    major: Mapped[str | None] = mapped_column(String(200), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    internship: Mapped[str | None] = mapped_column(String(300), nullable=True)
    contact_me: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    profile_photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    # pledge, inducted or alumni
    rank: Mapped[str | None] = mapped_column(String(20), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
