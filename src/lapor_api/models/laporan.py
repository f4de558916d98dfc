"""Laporan model: a complaint submitted by a citizen.

Created only by an authenticated citizen with status ``pending``; mutated
only through admin status transitions.
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from lapor_api.core.enums import LaporanStatus, LaporanTipe
from lapor_api.models.base import Base, TimestampMixin, UUIDMixin


class Laporan(Base, UUIDMixin, TimestampMixin):
    """A citizen report.

    Attributes:
        title: Short summary of the complaint.
        description: Full complaint text.
        tipe: Visibility (publik, private, anonim).
        divisi: Optional handling division.
        status: Lifecycle status.
        created_by: Reporting citizen; NULL for anonymous reports.
        reporter_hash: Client-computed identity hash for anonymous reports.
    """

    __tablename__ = "laporan"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tipe: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LaporanTipe.PUBLIK.value,
        server_default=LaporanTipe.PUBLIK.value,
    )
    divisi: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LaporanStatus.PENDING.value,
        server_default=LaporanStatus.PENDING.value,
    )
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reporter_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_laporan_created_at", "created_at"),
        Index("ix_laporan_created_by", "created_by"),
        Index("ix_laporan_tipe", "tipe"),
    )
