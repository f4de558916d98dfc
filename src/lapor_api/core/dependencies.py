"""FastAPI dependency injection for database sessions, auth, and access control.

Provides get_async_session, get_current_user, and the role-gating
factory used by the admin-only and citizen-only routes.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lapor_api.core.config import Settings, get_settings
from lapor_api.core.database import get_session_factory
from lapor_api.core.enums import UserRole
from lapor_api.models.user import User
from lapor_api.services.auth_service import InvalidTokenError, verify_access_token

BEARER_PREFIX = "Bearer "

_ROLE_LABELS = {UserRole.ADMIN.value: "Admin", UserRole.WARGA.value: "Warga"}


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


def get_bearer_token(authorization: Annotated[str | None, Header()] = None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        HTTPException: 401 if the header is absent or not a Bearer credential.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return authorization[len(BEARER_PREFIX) :].strip()


async def get_current_user(
    token: Annotated[str, Depends(get_bearer_token)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Verify the bearer token and return the authenticated user.

    Args:
        token: The JWT bearer token.
        session: The database session.
        settings: Application settings.

    Returns:
        The authenticated User model instance.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or its user no
            longer exists.
        HTTPException: 500 if the user lookup fails.
    """
    try:
        return await verify_access_token(session, token, settings)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except SQLAlchemyError as e:
        logger.error(f"Token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from e


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific user roles.

    Args:
        *roles: Allowed role names ("admin", "warga").

    Returns:
        A FastAPI dependency function that validates the user's role.
    """
    label = " or ".join(_ROLE_LABELS.get(r, r) for r in roles)

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. {label} only.",
            )
        return current_user

    return role_checker


require_admin = require_role(UserRole.ADMIN.value)
require_warga = require_role(UserRole.WARGA.value)
