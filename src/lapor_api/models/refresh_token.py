"""Issued refresh tokens with revocation and expiry flags.

Rows are created at login, read at refresh time and flipped to revoked at
logout. Expired and revoked rows are removed by ``lapor-api tokens purge``.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from lapor_api.models.base import Base, UUIDMixin, utcnow


class RefreshToken(Base, UUIDMixin):
    """A persisted refresh token, looked up by its full signed string."""

    __tablename__ = "refresh_tokens"

    token: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
