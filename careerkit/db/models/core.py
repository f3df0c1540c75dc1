"""SQLAlchemy models for the account store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from careerkit.db.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
        CheckConstraint("ai_generations_used >= 0", name="ck_users_ai_generations_used"),
        CheckConstraint("exports_used >= 0", name="ck_users_exports_used"),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str | None] = mapped_column(String(64))
    first_name: Mapped[str | None] = mapped_column(String(64))
    last_name: Mapped[str | None] = mapped_column(String(64))
    # Plain string so values outside the catalog still load and fail closed.
    subscription_status: Mapped[str] = mapped_column(String(32), default="free", nullable=False)
    ai_generations_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    exports_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


__all__ = ["User"]
