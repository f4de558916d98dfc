"""Authentication API endpoints.

POST /auth/register, POST /auth/register-user, POST /auth/login,
POST /auth/login-user, GET /auth/verify, POST /auth/verify-password,
POST /auth/refresh, POST /auth/logout.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from lapor_api.core.config import Settings, get_settings
from lapor_api.core.dependencies import get_async_session, get_current_user, require_warga
from lapor_api.models.user import User
from lapor_api.schemas.auth import (
    AdminLoginRequest,
    AdminRegisterRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterResponse,
    UserResponse,
    VerifyPasswordRequest,
    VerifyPasswordResponse,
    VerifyResponse,
    WargaLoginRequest,
    WargaRegisterRequest,
)
from lapor_api.schemas.common import ErrorResponse, MessageResponse
from lapor_api.services import auth_service
from lapor_api.services.auth_service import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenNotFoundError,
)

router = APIRouter(prefix="/auth", tags=["auth"], responses={400: {"model": ErrorResponse}})


def _internal_error(action: str, exc: Exception) -> HTTPException:
    logger.error(f"Unexpected error during {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(
    body: AdminRegisterRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> RegisterResponse:
    """Register a new admin."""
    logger.info(f"Admin registration attempt: {body.username}")
    try:
        user = await auth_service.register_admin(session, body)
    except DuplicateIdentityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        raise _internal_error("register admin", e) from e
    return RegisterResponse(message="Admin registered successfully", user=UserResponse.model_validate(user))


@router.post("/register-user", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_warga(
    body: WargaRegisterRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> RegisterResponse:
    """Register a new citizen."""
    logger.info(f"Warga registration attempt: {body.nik}")
    try:
        user = await auth_service.register_warga(session, body)
    except DuplicateIdentityError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        raise _internal_error("register user", e) from e
    return RegisterResponse(message="User registered successfully", user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
async def login_admin(
    body: AdminLoginRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """Authenticate an admin and return JWT tokens."""
    logger.info(f"Admin login attempt: {body.username}")
    try:
        user = await auth_service.authenticate_admin(session, body.username, body.password)
        return await auth_service.issue_tokens(session, user, settings)
    except InvalidCredentialsError as e:
        logger.warning(f"Admin login failed: {body.username}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        raise _internal_error("login", e) from e


@router.post("/login-user", response_model=LoginResponse)
async def login_warga(
    body: WargaLoginRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """Authenticate a citizen and return JWT tokens."""
    logger.info(f"Warga login attempt: {body.nik}")
    try:
        user = await auth_service.authenticate_warga(session, body.nik, body.password)
        return await auth_service.issue_tokens(session, user, settings)
    except InvalidCredentialsError as e:
        logger.warning(f"Warga login failed: {body.nik}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        raise _internal_error("login", e) from e


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    current_user: Annotated[User, Depends(get_current_user)],
) -> VerifyResponse:
    """Verify the bearer token and return its user."""
    return VerifyResponse(user=UserResponse.model_validate(current_user))


@router.post("/verify-password", response_model=VerifyPasswordResponse)
async def verify_password(
    body: VerifyPasswordRequest,
    current_user: Annotated[User, Depends(require_warga)],
) -> VerifyPasswordResponse:
    """Re-check the authenticated citizen's password without issuing tokens.

    Used before submitting an anonymous report.
    """
    try:
        auth_service.verify_password_for_user(current_user, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return VerifyPasswordResponse()


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(
    body: RefreshRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RefreshResponse:
    """Mint a new access token from a refresh token."""
    try:
        return await auth_service.refresh_access_token(session, body.refresh_token, settings)
    except InvalidTokenError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        raise _internal_error("refresh token", e) from e


@router.post("/logout", response_model=MessageResponse)
async def logout(
    body: RefreshRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> MessageResponse:
    """Revoke a refresh token."""
    try:
        await auth_service.revoke_refresh_token(session, body.refresh_token)
    except RefreshTokenNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except Exception as e:
        raise _internal_error("logout", e) from e
    return MessageResponse(message="Logout successful")
