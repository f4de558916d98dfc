"""Report (laporan) API endpoints.

Citizens create reports and read their own; admins list every report and
move reports between statuses. Public reports are readable without auth.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from lapor_api.core.dependencies import get_async_session, require_admin, require_warga
from lapor_api.models.user import User
from lapor_api.schemas.common import ErrorResponse, PaginationParams
from lapor_api.schemas.laporan import (
    LaporanCreateRequest,
    LaporanResponse,
    LaporanStatusUpdateRequest,
    PaginatedLaporanResponse,
    PublicLaporanResponse,
)
from lapor_api.services.laporan_service import (
    LaporanNotFoundError,
    create_laporan,
    list_laporan,
    list_my_laporan,
    list_public_laporan,
    update_status,
)

laporan_router = APIRouter(
    prefix="/laporan",
    tags=["laporan"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)


@laporan_router.get("", response_model=list[LaporanResponse])
async def list_all_laporan(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _admin: Annotated[User, Depends(require_admin)],
) -> list[LaporanResponse]:
    """List every report, newest first.

    Requires admin authentication.
    """
    try:
        reports = await list_laporan(session)
    except Exception as e:
        logger.error(f"Unexpected error listing laporan: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch laporan",
        ) from e
    return [LaporanResponse.model_validate(r) for r in reports]


@laporan_router.post("", response_model=LaporanResponse, status_code=status.HTTP_201_CREATED)
async def create_laporan_endpoint(
    body: LaporanCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_warga)],
) -> LaporanResponse:
    """Submit a new report.

    Requires citizen authentication. The report always starts as pending.
    """
    try:
        laporan = await create_laporan(session, current_user, body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Unexpected error creating laporan: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create laporan",
        ) from e
    return LaporanResponse.model_validate(laporan)


@laporan_router.get("/public", response_model=PaginatedLaporanResponse)
async def list_public(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    pagination: Annotated[PaginationParams, Depends()],
) -> PaginatedLaporanResponse:
    """List public reports with pagination (no authentication required)."""
    try:
        reports, total, total_pages = await list_public_laporan(session, pagination.page, pagination.limit)
    except Exception as e:
        logger.error(f"Unexpected error listing public laporan: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch public laporan",
        ) from e
    return PaginatedLaporanResponse(
        data=[PublicLaporanResponse.model_validate(r) for r in reports],
        page=pagination.page,
        limit=pagination.limit,
        total_items=total,
        total_pages=total_pages,
    )


@laporan_router.get("/my", response_model=list[LaporanResponse])
async def list_mine(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_warga)],
    user_hash: Annotated[str | None, Query(description="Identity hash used for anonymous reports")] = None,
) -> list[LaporanResponse]:
    """List the authenticated citizen's own reports."""
    try:
        reports = await list_my_laporan(session, current_user, user_hash)
    except Exception as e:
        logger.error(f"Unexpected error listing laporan of {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch laporan",
        ) from e
    return [LaporanResponse.model_validate(r) for r in reports]


@laporan_router.put(
    "/{laporan_id}/status",
    response_model=LaporanResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_laporan_status(
    laporan_id: uuid.UUID,
    body: LaporanStatusUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_admin)],
) -> LaporanResponse:
    """Move a report to a new status.

    Requires admin authentication.
    """
    try:
        laporan = await update_status(session, laporan_id, body.status)
    except LaporanNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Laporan not found") from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Unexpected error updating laporan {laporan_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update laporan status",
        ) from e
    logger.info(f"Admin {current_user.username} set laporan {laporan_id} to {laporan.status}")
    return LaporanResponse.model_validate(laporan)
