"""Report (laporan) service -- creation by citizens, review by admins."""

import math
import uuid
from datetime import UTC, datetime

from loguru import logger
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lapor_api.core.enums import LaporanStatus, LaporanTipe, enum_values
from lapor_api.lib.validation import (
    REPORTER_HASH_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    require_fields,
    validate_divisi,
    validate_length,
)
from lapor_api.models.laporan import Laporan
from lapor_api.models.user import User
from lapor_api.schemas.laporan import LaporanCreateRequest

_OWN_TIPES = (LaporanTipe.PUBLIK.value, LaporanTipe.PRIVATE.value)


class LaporanNotFoundError(LookupError):
    """Raised when a report id does not exist."""


async def create_laporan(session: AsyncSession, user: User, request: LaporanCreateRequest) -> Laporan:
    """Create a report on behalf of a citizen.

    The status is always ``pending`` regardless of the request. Anonymous
    reports store the client-supplied identity hash instead of the user id.

    Args:
        session: Database session.
        user: The authenticated citizen.
        request: Report data.

    Returns:
        The created Laporan.

    Raises:
        ValueError: If title or description is missing, the title or
            identity hash is too long, tipe or divisi is not recognised, or an
            anonymous report lacks its identity hash.
    """
    title = (request.title or "").strip()
    description = (request.description or "").strip()
    require_fields(
        {"title": title, "description": description},
        {"title": "Title", "description": "description"},
    )
    validate_length(title, "Title", TITLE_MAX_LENGTH)

    tipe = (request.tipe or LaporanTipe.PUBLIK.value).strip()
    if tipe not in enum_values(LaporanTipe):
        msg = f"Tipe must be one of: {', '.join(enum_values(LaporanTipe))}"
        raise ValueError(msg)

    divisi = (request.divisi or "").strip() or None
    if divisi is not None:
        validate_divisi(divisi)

    created_by: uuid.UUID | None = user.id
    reporter_hash: str | None = None
    if tipe == LaporanTipe.ANONIM:
        reporter_hash = (request.user_nik_hash or "").strip()
        if not reporter_hash:
            msg = "userNikHash is required for anonymous reports"
            raise ValueError(msg)
        validate_length(reporter_hash, "userNikHash", REPORTER_HASH_MAX_LENGTH)
        created_by = None

    laporan = Laporan(
        title=title,
        description=description,
        tipe=tipe,
        divisi=divisi,
        status=LaporanStatus.PENDING.value,
        created_by=created_by,
        reporter_hash=reporter_hash,
    )
    session.add(laporan)
    await session.commit()
    await session.refresh(laporan)

    if tipe == LaporanTipe.ANONIM:
        logger.info(f"Created anonymous laporan {laporan.id}")
    else:
        logger.info(f"Created laporan {laporan.id} by warga {user.nik}")
    return laporan


async def list_laporan(session: AsyncSession) -> list[Laporan]:
    """Return every report, newest first.

    Args:
        session: Database session.

    Returns:
        All reports ordered by creation time descending.
    """
    result = await session.execute(select(Laporan).order_by(Laporan.created_at.desc()))
    reports = list(result.scalars().all())
    logger.info(f"Listed {len(reports)} laporan")
    return reports


async def list_public_laporan(session: AsyncSession, page: int = 1, limit: int = 10) -> tuple[list[Laporan], int, int]:
    """Return one page of public reports, newest first.

    Args:
        session: Database session.
        page: Page number (1-based).
        limit: Items per page.

    Returns:
        Tuple of (reports, total items, total pages).
    """
    public = Laporan.tipe == LaporanTipe.PUBLIK.value
    count_result = await session.execute(select(func.count(Laporan.id)).where(public))
    total = count_result.scalar_one()

    offset = (page - 1) * limit
    result = await session.execute(
        select(Laporan).where(public).order_by(Laporan.created_at.desc()).offset(offset).limit(limit)
    )
    reports = list(result.scalars().all())
    total_pages = math.ceil(total / limit) if total else 0
    return reports, total, total_pages


async def list_my_laporan(session: AsyncSession, user: User, user_hash: str | None = None) -> list[Laporan]:
    """Return a citizen's own reports, newest first.

    Public and private reports are matched by author; anonymous reports are
    matched by the identity hash the citizen supplies, since they carry no
    user reference.

    Args:
        session: Database session.
        user: The authenticated citizen.
        user_hash: Optional identity hash used for anonymous reports.

    Returns:
        The matching reports.
    """
    own = and_(Laporan.created_by == user.id, Laporan.tipe.in_(_OWN_TIPES))
    condition = own
    if user_hash:
        condition = or_(own, and_(Laporan.reporter_hash == user_hash, Laporan.tipe == LaporanTipe.ANONIM.value))
    result = await session.execute(select(Laporan).where(condition).order_by(Laporan.created_at.desc()))
    return list(result.scalars().all())


async def get_laporan(session: AsyncSession, laporan_id: uuid.UUID) -> Laporan | None:
    """Get a report by ID."""
    result = await session.execute(select(Laporan).where(Laporan.id == laporan_id))
    return result.scalar_one_or_none()


async def update_status(session: AsyncSession, laporan_id: uuid.UUID, status: str | None) -> Laporan:
    """Move a report to a new status.

    Args:
        session: Database session.
        laporan_id: Target report.
        status: New status value.

    Returns:
        The updated Laporan.

    Raises:
        ValueError: If the status is missing or not one of the known values.
        LaporanNotFoundError: If the report does not exist.
    """
    if not status:
        msg = "Status is required"
        raise ValueError(msg)
    if status not in enum_values(LaporanStatus):
        msg = f"Invalid status. Must be one of: {', '.join(enum_values(LaporanStatus))}"
        raise ValueError(msg)

    laporan = await get_laporan(session, laporan_id)
    if laporan is None:
        msg = f"Laporan {laporan_id} not found"
        raise LaporanNotFoundError(msg)

    laporan.status = status
    laporan.updated_at = datetime.now(UTC)
    await session.commit()
    await session.refresh(laporan)
    logger.info(f"Updated laporan {laporan_id} status to {status}")
    return laporan
