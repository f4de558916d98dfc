"""Authentication and user management service.

Handles admin and citizen registration, login, access-token verification,
refresh and logout. Every check round-trips to the database; roles are
read from the stored user row, never from token claims alone.
"""

import uuid
from datetime import UTC, datetime
from functools import cache

import jwt
from loguru import logger
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lapor_api.core.config import Settings
from lapor_api.core.enums import UserRole
from lapor_api.core.security import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from lapor_api.lib.validation import (
    EMAIL_MAX_LENGTH,
    NAMA_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    require_fields,
    validate_divisi,
    validate_email_address,
    validate_length,
    validate_nik,
    validate_password,
)
from lapor_api.models.refresh_token import RefreshToken
from lapor_api.models.user import User
from lapor_api.schemas.auth import (
    AdminRegisterRequest,
    LoginResponse,
    RefreshResponse,
    UserResponse,
    WargaRegisterRequest,
)

INVALID_CREDENTIALS = "Invalid credentials"


class DuplicateIdentityError(ValueError):
    """Raised when a username, NIK or email is already registered."""


class InvalidCredentialsError(ValueError):
    """Raised when an identity/password pair does not match a user."""


class InvalidTokenError(ValueError):
    """Raised when an access or refresh token fails verification."""


class RefreshTokenNotFoundError(LookupError):
    """Raised when a refresh token string is not in the store."""


@cache
def _dummy_hash() -> str:
    """Hash compared against when the identity does not exist, so unknown
    users cost the same bcrypt round as a wrong password."""
    return hash_password(uuid.uuid4().hex)


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_admin(session: AsyncSession, request: AdminRegisterRequest) -> User:
    """Register a new admin.

    Validation order: presence, format (username length, divisi, email),
    password policy, uniqueness of username and email.

    Args:
        session: The database session.
        request: Admin registration data.

    Returns:
        The created User.

    Raises:
        ValueError: If a field is missing or malformed, or the password
            breaks the policy.
        DuplicateIdentityError: If the username or email already exists.
    """
    username = (request.username or "").strip()
    email = (request.email or "").strip()
    password = request.password or ""
    require_fields(
        {"username": username, "email": email, "password": password},
        {"username": "Username", "email": "email", "password": "password"},
    )

    validate_length(username, "Username", USERNAME_MAX_LENGTH)
    divisi = (request.divisi or "").strip() or None
    if divisi is not None:
        validate_divisi(divisi)
    email = validate_email_address(email)
    validate_length(email, "Email", EMAIL_MAX_LENGTH)
    validate_password(password)

    existing = await session.execute(
        select(User.id).where(or_(User.username == username, User.email == email)).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        msg = "Username or email already exists"
        raise DuplicateIdentityError(msg)

    user = User(
        username=username,
        email=email,
        divisi=divisi,
        hashed_password=hash_password(password),
        role=UserRole.ADMIN.value,
    )
    await _insert_user(session, user, "Username or email already exists")
    logger.info(f"Registered admin {username}")
    return user


async def register_warga(session: AsyncSession, request: WargaRegisterRequest) -> User:
    """Register a new citizen.

    Validation order: presence, format (NIK, nama length, email),
    password policy, uniqueness of NIK and email.

    Args:
        session: The database session.
        request: Citizen registration data.

    Returns:
        The created User.

    Raises:
        ValueError: If a field is missing or malformed, or the password
            breaks the policy.
        DuplicateIdentityError: If the NIK or email already exists.
    """
    nik = (request.nik or "").strip()
    nama = (request.nama or "").strip()
    email = (request.email or "").strip()
    password = request.password or ""
    require_fields(
        {"nik": nik, "nama": nama, "email": email, "password": password},
        {"nik": "NIK", "nama": "nama", "email": "email", "password": "password"},
    )

    validate_nik(nik)
    validate_length(nama, "Nama", NAMA_MAX_LENGTH)
    email = validate_email_address(email)
    validate_length(email, "Email", EMAIL_MAX_LENGTH)
    validate_password(password)

    existing = await session.execute(select(User.id).where(or_(User.nik == nik, User.email == email)).limit(1))
    if existing.scalar_one_or_none() is not None:
        msg = "NIK or email already exists"
        raise DuplicateIdentityError(msg)

    user = User(
        nik=nik,
        nama=nama,
        email=email,
        hashed_password=hash_password(password),
        role=UserRole.WARGA.value,
    )
    await _insert_user(session, user, "NIK or email already exists")
    logger.info(f"Registered warga {nik} (id: {user.id})")
    return user


async def _insert_user(session: AsyncSession, user: User, conflict_message: str) -> None:
    """Persist a new user, mapping a concurrent unique violation to a conflict."""
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise DuplicateIdentityError(conflict_message) from None
    await session.refresh(user)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_admin(session: AsyncSession, username: str | None, password: str | None) -> User:
    """Authenticate an admin by username and password.

    Raises:
        ValueError: If username or password is missing.
        InvalidCredentialsError: For an unknown username or a wrong password
            alike.
    """
    if not username or not password:
        msg = "Username and password are required"
        raise ValueError(msg)
    result = await session.execute(
        select(User).where(User.username == username, User.role == UserRole.ADMIN.value)
    )
    return _check_password(result.scalar_one_or_none(), password)


async def authenticate_warga(session: AsyncSession, nik: str | None, password: str | None) -> User:
    """Authenticate a citizen by NIK and password.

    Raises:
        ValueError: If NIK or password is missing.
        InvalidCredentialsError: For an unknown NIK or a wrong password alike.
    """
    if not nik or not password:
        msg = "NIK and password are required"
        raise ValueError(msg)
    result = await session.execute(select(User).where(User.nik == nik, User.role == UserRole.WARGA.value))
    return _check_password(result.scalar_one_or_none(), password)


def _check_password(user: User | None, password: str) -> User:
    if user is None:
        verify_password(password, _dummy_hash())
        raise InvalidCredentialsError(INVALID_CREDENTIALS)
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError(INVALID_CREDENTIALS)
    return user


def verify_password_for_user(user: User, password: str | None) -> None:
    """Re-check the password of an already authenticated user.

    Raises:
        ValueError: If the password is missing.
        InvalidCredentialsError: If the password does not match.
    """
    if not password:
        msg = "Password is required"
        raise ValueError(msg)
    if not verify_password(password, user.hashed_password):
        logger.warning(f"Password re-check failed for {user.role} {user.identity}")
        msg = "Invalid password"
        raise InvalidCredentialsError(msg)
    logger.info(f"Password re-check succeeded for {user.role} {user.identity}")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def _display_claims(user: User) -> dict[str, str]:
    """Display fields embedded in access tokens, by role."""
    if user.role == UserRole.ADMIN:
        claims = {"username": user.username, "divisi": user.divisi}
    else:
        claims = {"nik": user.nik, "nama": user.nama}
    return {k: v for k, v in claims.items() if v is not None}


def create_user_access_token(user: User, settings: Settings) -> str:
    """Sign an access token for a user with its stored role."""
    return create_access_token(
        subject=str(user.id),
        role=user.role,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=settings.jwt_access_expiry,
        claims=_display_claims(user),
    )


async def issue_tokens(session: AsyncSession, user: User, settings: Settings) -> LoginResponse:
    """Issue an access/refresh token pair and persist the refresh token.

    Args:
        session: The database session.
        user: The authenticated user.
        settings: Application settings.

    Returns:
        Login response with both tokens and a user summary.
    """
    access_token = create_user_access_token(user, settings)
    refresh_token = create_refresh_token(
        subject=str(user.id),
        secret_key=settings.jwt_refresh_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_delta=settings.jwt_refresh_expiry,
    )
    session.add(
        RefreshToken(
            token=refresh_token,
            user_id=user.id,
            expires_at=datetime.now(UTC) + settings.jwt_refresh_expiry,
            revoked=False,
        )
    )
    await session.commit()
    logger.info(f"Issued tokens for {user.role} {user.identity}")
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int(settings.jwt_access_expiry.total_seconds()),
        user=UserResponse.model_validate(user),
    )


def _subject_id(payload: dict) -> uuid.UUID:
    try:
        return uuid.UUID(str(payload["sub"]))
    except (KeyError, ValueError) as e:
        msg = "Invalid token"
        raise InvalidTokenError(msg) from e


async def verify_access_token(session: AsyncSession, token: str, settings: Settings) -> User:
    """Verify an access token and return its still-existing user.

    The role claim must match the role stored for the user.

    Args:
        session: The database session.
        token: The bearer token string.
        settings: Application settings.

    Returns:
        The verified User.

    Raises:
        InvalidTokenError: "Token expired", "Invalid token" or "User not found".
    """
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except jwt.ExpiredSignatureError as e:
        msg = "Token expired"
        raise InvalidTokenError(msg) from e
    except jwt.InvalidTokenError as e:
        msg = "Invalid token"
        raise InvalidTokenError(msg) from e

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        msg = "Invalid token"
        raise InvalidTokenError(msg)

    user = await get_user(session, _subject_id(payload))
    if user is None:
        msg = "User not found"
        raise InvalidTokenError(msg)
    if payload.get("role") != user.role:
        logger.warning(f"Role claim mismatch for user {user.id}: token={payload.get('role')} stored={user.role}")
        msg = "Invalid token"
        raise InvalidTokenError(msg)
    return user


async def refresh_access_token(
    session: AsyncSession,
    refresh_token_str: str | None,
    settings: Settings,
) -> RefreshResponse:
    """Mint a new access token from a stored, unrevoked refresh token.

    The refresh token is not rotated and stays usable until it expires or
    is revoked.

    Args:
        session: The database session.
        refresh_token_str: The refresh token string.
        settings: Application settings.

    Returns:
        New access token and user summary.

    Raises:
        ValueError: If the refresh token is missing.
        InvalidTokenError: If the token fails verification, is unknown,
            revoked or past its stored expiry, or its user no longer exists.
    """
    if not refresh_token_str:
        msg = "Refresh token is required"
        raise ValueError(msg)

    try:
        payload = decode_token(refresh_token_str, settings.jwt_refresh_secret_key, settings.jwt_algorithm)
    except jwt.InvalidTokenError as e:
        msg = "Invalid refresh token"
        raise InvalidTokenError(msg) from e

    if payload.get("type") != REFRESH_TOKEN_TYPE:
        msg = "Invalid refresh token"
        raise InvalidTokenError(msg)
    user_id = _subject_id(payload)

    result = await session.execute(select(RefreshToken).where(RefreshToken.token == refresh_token_str))
    stored = result.scalar_one_or_none()
    if stored is None or stored.user_id != user_id:
        msg = "Refresh token not recognized"
        raise InvalidTokenError(msg)
    if stored.revoked:
        msg = "Refresh token has been revoked"
        raise InvalidTokenError(msg)
    if _as_utc(stored.expires_at) <= datetime.now(UTC):
        msg = "Refresh token has expired"
        raise InvalidTokenError(msg)

    user = await get_user(session, stored.user_id)
    if user is None:
        msg = "User not found"
        raise InvalidTokenError(msg)

    logger.info(f"Refreshed access token for {user.role} {user.identity}")
    return RefreshResponse(
        access_token=create_user_access_token(user, settings),
        expires_in=int(settings.jwt_access_expiry.total_seconds()),
        user=UserResponse.model_validate(user),
    )


async def revoke_refresh_token(session: AsyncSession, refresh_token_str: str | None) -> None:
    """Revoke a refresh token (logout).

    Access tokens already issued stay valid until they expire.

    Raises:
        ValueError: If the refresh token is missing.
        RefreshTokenNotFoundError: If the token string is not stored.
    """
    if not refresh_token_str:
        msg = "Refresh token is required"
        raise ValueError(msg)

    result = await session.execute(select(RefreshToken).where(RefreshToken.token == refresh_token_str))
    stored = result.scalar_one_or_none()
    if stored is None:
        msg = "Refresh token not found"
        raise RefreshTokenNotFoundError(msg)

    stored.revoked = True
    await session.commit()
    logger.info(f"Revoked refresh token {stored.id} of user {stored.user_id}")


async def purge_refresh_tokens(session: AsyncSession, now: datetime | None = None) -> int:
    """Delete revoked and expired refresh token rows.

    Args:
        session: The database session.
        now: Reference time; defaults to the current UTC time.

    Returns:
        Number of rows deleted.
    """
    cutoff = now or datetime.now(UTC)
    result = await session.execute(
        delete(RefreshToken).where(or_(RefreshToken.revoked.is_(True), RefreshToken.expires_at <= cutoff))
    )
    await session.commit()
    removed = result.rowcount or 0
    logger.info(f"Purged {removed} revoked or expired refresh tokens")
    return removed


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Get a user by ID.

    Args:
        session: The database session.
        user_id: The UUID of the user to retrieve.

    Returns:
        The User if found, None otherwise.
    """
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def list_users(session: AsyncSession, role: str | None = None) -> list[User]:
    """List users ordered by creation time, optionally filtered by role."""
    query = select(User).order_by(User.created_at)
    if role is not None:
        query = query.where(User.role == role)
    result = await session.execute(query)
    return list(result.scalars().all())
