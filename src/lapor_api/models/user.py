"""User model for authentication and role-based access control.

Admins are identified by ``username`` and citizens (warga) by ``nik``; the
two identity columns are mutually exclusive. The role is persisted so that
every verification path can re-derive it from storage.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from lapor_api.core.enums import UserRole
from lapor_api.models.base import Base, UUIDMixin, utcnow


class User(Base, UUIDMixin):
    """Credential record of an admin or a citizen."""

    __tablename__ = "users"

    username: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True, index=True)
    nik: Mapped[str | None] = mapped_column(String(16), unique=True, nullable=True, index=True)
    nama: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    divisi: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "(username IS NOT NULL AND nik IS NULL AND role = 'admin') "
            "OR (nik IS NOT NULL AND username IS NULL AND role = 'warga')",
            name="ck_users_single_identity",
        ),
    )

    @property
    def identity(self) -> str:
        """The login identity: username for admins, nik for citizens."""
        if self.role == UserRole.ADMIN:
            return self.username or ""
        return self.nik or ""
