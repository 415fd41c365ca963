# storefront/models/refresh_token.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base_class import Base


def as_utc(value: datetime) -> datetime:
    # SQLite devolve datetime naive; tudo é gravado em UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    token: Mapped[str] = mapped_column(String(500), unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_by_ip: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_by_ip: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    replaced_by_token: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    def is_expired_at(self, now: datetime) -> bool:
        return as_utc(now) >= as_utc(self.expires_at)

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return not self.is_revoked and not self.is_expired
