"""Pydantic v2 schemas for report (laporan) operations."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LaporanCreateRequest(BaseModel):
    """Request body for creating a report.

    Any ``status`` submitted by the client is ignored; new reports are
    always pending.
    """

    title: str | None = None
    description: str | None = None
    tipe: str | None = None
    divisi: str | None = None
    user_nik_hash: str | None = Field(
        default=None,
        validation_alias=AliasChoices("userNikHash", "user_nik_hash"),
    )


class LaporanStatusUpdateRequest(BaseModel):
    """Request body for an admin status transition."""

    status: str | None = None


class LaporanResponse(BaseModel):
    """A report as seen by admins and by its author."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    tipe: str
    divisi: str | None = None
    status: str
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class PublicLaporanResponse(BaseModel):
    """A public report; carries no reference to its author."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    divisi: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime


class PaginatedLaporanResponse(BaseModel):
    """Page of public reports with pagination metadata."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[PublicLaporanResponse]
    page: int
    limit: int
    total_items: int = Field(alias="totalItems")
    total_pages: int = Field(alias="totalPages")
