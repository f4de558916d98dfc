"""Tests for the authentication service module."""

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lapor_api.core.config import Settings
from lapor_api.core.security import create_access_token, create_refresh_token, decode_token, verify_password
from lapor_api.models.refresh_token import RefreshToken
from lapor_api.models.user import User
from lapor_api.schemas.auth import AdminRegisterRequest, WargaRegisterRequest
from lapor_api.services.auth_service import (
    INVALID_CREDENTIALS,
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidTokenError,
    RefreshTokenNotFoundError,
    authenticate_admin,
    authenticate_warga,
    issue_tokens,
    list_users,
    purge_refresh_tokens,
    refresh_access_token,
    register_admin,
    register_warga,
    revoke_refresh_token,
    verify_access_token,
    verify_password_for_user,
)

ADMIN_PASSWORD = "Adm1n#Bersih"
WARGA_PASSWORD = "Warga#2024ok"


def _admin_request(**overrides: object) -> AdminRegisterRequest:
    data = {
        "username": "admin.sehat",
        "email": "admin.sehat@lapor.go.id",
        "password": "Sehat#2024ok",
        "divisi": "kesehatan",
    }
    data.update(overrides)
    return AdminRegisterRequest(**data)


def _warga_request(**overrides: object) -> WargaRegisterRequest:
    data = {
        "nik": "3201123456780002",
        "nama": "Budi Santoso",
        "email": "budi@mail.id",
        "password": "Budi#2024ok",
    }
    data.update(overrides)
    return WargaRegisterRequest(**data)


async def _user_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(User.id)))
    return result.scalar_one()


class TestRegisterAdmin:
    """Tests for register_admin."""

    @pytest.mark.asyncio
    async def test_creates_admin(self, async_session: AsyncSession) -> None:
        user = await register_admin(async_session, _admin_request())

        assert user.id is not None
        assert user.role == "admin"
        assert user.username == "admin.sehat"
        assert user.nik is None
        assert user.divisi == "kesehatan"
        assert user.hashed_password != "Sehat#2024ok"
        assert verify_password("Sehat#2024ok", user.hashed_password)

    @pytest.mark.asyncio
    async def test_divisi_optional(self, async_session: AsyncSession) -> None:
        user = await register_admin(async_session, _admin_request(divisi=None))
        assert user.divisi is None

    @pytest.mark.asyncio
    async def test_missing_fields(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Username, email, and password are required"):
            await register_admin(async_session, _admin_request(email=None))

    @pytest.mark.asyncio
    async def test_invalid_divisi(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Invalid divisi"):
            await register_admin(async_session, _admin_request(divisi="keuangan"))

    @pytest.mark.asyncio
    async def test_overlong_username_creates_no_row(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Username must be at most 100 characters"):
            await register_admin(async_session, _admin_request(username="a" * 101))
        assert await _user_count(async_session) == 0

    @pytest.mark.asyncio
    async def test_weak_password_creates_no_row(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Password must contain"):
            await register_admin(async_session, _admin_request(password="password"))
        assert await _user_count(async_session) == 0

    @pytest.mark.asyncio
    async def test_presence_checked_before_format(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="are required"):
            await register_admin(async_session, _admin_request(password="", divisi="keuangan"))

    @pytest.mark.asyncio
    async def test_duplicate_username(self, async_session: AsyncSession, admin_user: User) -> None:
        with pytest.raises(DuplicateIdentityError, match="Username or email already exists"):
            await register_admin(async_session, _admin_request(username=admin_user.username))
        assert await _user_count(async_session) == 1

    @pytest.mark.asyncio
    async def test_duplicate_email(self, async_session: AsyncSession, admin_user: User) -> None:
        with pytest.raises(DuplicateIdentityError):
            await register_admin(async_session, _admin_request(email=admin_user.email))

    @pytest.mark.asyncio
    async def test_concurrent_insert_maps_to_conflict(self) -> None:
        session = AsyncMock()
        session.add = MagicMock()
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        session.execute.return_value = result
        session.commit.side_effect = IntegrityError("INSERT", {}, Exception("unique"))

        with pytest.raises(DuplicateIdentityError):
            await register_admin(session, _admin_request())
        session.rollback.assert_awaited_once()


class TestRegisterWarga:
    """Tests for register_warga."""

    @pytest.mark.asyncio
    async def test_creates_warga(self, async_session: AsyncSession) -> None:
        user = await register_warga(async_session, _warga_request())

        assert user.role == "warga"
        assert user.nik == "3201123456780002"
        assert user.nama == "Budi Santoso"
        assert user.username is None

    @pytest.mark.asyncio
    async def test_missing_nama(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="NIK, nama, email, and password are required"):
            await register_warga(async_session, _warga_request(nama=" "))

    @pytest.mark.asyncio
    async def test_invalid_nik(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="NIK must be exactly 16 digits"):
            await register_warga(async_session, _warga_request(nik="12345"))

    @pytest.mark.asyncio
    async def test_overlong_nama(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Nama must be at most 255 characters"):
            await register_warga(async_session, _warga_request(nama="Budi " * 52))
        assert await _user_count(async_session) == 0

    @pytest.mark.asyncio
    async def test_invalid_email(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Invalid email address"):
            await register_warga(async_session, _warga_request(email="budi-at-mail"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("password", ["BUDI#2024OK", "budi#2024ok", "Budi#budiok", "Budi2024ok", "Bu#1"])
    async def test_password_policy(self, async_session: AsyncSession, password: str) -> None:
        with pytest.raises(ValueError, match="Password must contain"):
            await register_warga(async_session, _warga_request(password=password))
        assert await _user_count(async_session) == 0

    @pytest.mark.asyncio
    async def test_duplicate_nik(self, async_session: AsyncSession, warga_user: User) -> None:
        with pytest.raises(DuplicateIdentityError, match="NIK or email already exists"):
            await register_warga(async_session, _warga_request(nik=warga_user.nik))
        assert await _user_count(async_session) == 1

    @pytest.mark.asyncio
    async def test_email_shared_across_roles_rejected(self, async_session: AsyncSession, admin_user: User) -> None:
        with pytest.raises(DuplicateIdentityError):
            await register_warga(async_session, _warga_request(email=admin_user.email))


class TestAuthenticate:
    """Tests for authenticate_admin and authenticate_warga."""

    @pytest.mark.asyncio
    async def test_admin_valid_credentials(self, async_session: AsyncSession, admin_user: User) -> None:
        user = await authenticate_admin(async_session, admin_user.username, ADMIN_PASSWORD)
        assert user.id == admin_user.id

    @pytest.mark.asyncio
    async def test_warga_valid_credentials(self, async_session: AsyncSession, warga_user: User) -> None:
        user = await authenticate_warga(async_session, warga_user.nik, WARGA_PASSWORD)
        assert user.id == warga_user.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_indistinguishable(
        self, async_session: AsyncSession, admin_user: User
    ) -> None:
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await authenticate_admin(async_session, admin_user.username, "Wrong#Pass1")
        with pytest.raises(InvalidCredentialsError) as unknown_user:
            await authenticate_admin(async_session, "nobody", "Wrong#Pass1")
        assert str(wrong_password.value) == str(unknown_user.value) == INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_unknown_user_still_runs_hash_check(self, async_session: AsyncSession) -> None:
        with (
            patch("lapor_api.services.auth_service.verify_password", return_value=False) as mock_verify,
            pytest.raises(InvalidCredentialsError),
        ):
            await authenticate_warga(async_session, "3201999999999999", "Wrong#Pass1")
        mock_verify.assert_called_once()

    @pytest.mark.asyncio
    async def test_warga_cannot_login_as_admin(self, async_session: AsyncSession, warga_user: User) -> None:
        with pytest.raises(InvalidCredentialsError):
            await authenticate_admin(async_session, warga_user.nik, WARGA_PASSWORD)

    @pytest.mark.asyncio
    async def test_missing_fields(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Username and password are required"):
            await authenticate_admin(async_session, "admin", None)
        with pytest.raises(ValueError, match="NIK and password are required"):
            await authenticate_warga(async_session, None, "x")


class TestVerifyPasswordForUser:
    """Tests for verify_password_for_user."""

    @pytest.mark.asyncio
    async def test_correct_password(self, warga_user: User) -> None:
        verify_password_for_user(warga_user, WARGA_PASSWORD)

    @pytest.mark.asyncio
    async def test_wrong_password(self, warga_user: User) -> None:
        with pytest.raises(InvalidCredentialsError, match="Invalid password"):
            verify_password_for_user(warga_user, "Wrong#Pass1")

    @pytest.mark.asyncio
    async def test_missing_password(self, warga_user: User) -> None:
        with pytest.raises(ValueError, match="Password is required"):
            verify_password_for_user(warga_user, "")


class TestIssueTokens:
    """Tests for issue_tokens."""

    @pytest.mark.asyncio
    async def test_access_token_carries_role_and_display_fields(
        self, async_session: AsyncSession, warga_user: User, settings: Settings
    ) -> None:
        tokens = await issue_tokens(async_session, warga_user, settings)
        payload = decode_token(tokens.access_token, settings.jwt_secret_key)

        assert payload["sub"] == str(warga_user.id)
        assert payload["role"] == "warga"
        assert payload["nik"] == warga_user.nik
        assert payload["nama"] == warga_user.nama
        assert tokens.expires_in == 15 * 60
        assert tokens.user.role == "warga"

    @pytest.mark.asyncio
    async def test_admin_token_role(self, async_session: AsyncSession, admin_user: User, settings: Settings) -> None:
        tokens = await issue_tokens(async_session, admin_user, settings)
        payload = decode_token(tokens.access_token, settings.jwt_secret_key)
        assert payload["role"] == "admin"
        assert payload["username"] == admin_user.username
        assert payload["divisi"] == "kebersihan"

    @pytest.mark.asyncio
    async def test_refresh_token_persisted(
        self, async_session: AsyncSession, warga_user: User, settings: Settings
    ) -> None:
        before = datetime.now(UTC)
        tokens = await issue_tokens(async_session, warga_user, settings)

        result = await async_session.execute(select(RefreshToken).where(RefreshToken.token == tokens.refresh_token))
        stored = result.scalar_one()
        assert stored.user_id == warga_user.id
        assert stored.revoked is False
        expires_at = stored.expires_at.replace(tzinfo=UTC) if stored.expires_at.tzinfo is None else stored.expires_at
        assert before + timedelta(days=7) - timedelta(seconds=5) <= expires_at <= before + timedelta(days=7, seconds=5)

    @pytest.mark.asyncio
    async def test_user_summary_excludes_hash(
        self, async_session: AsyncSession, warga_user: User, settings: Settings
    ) -> None:
        tokens = await issue_tokens(async_session, warga_user, settings)
        assert "hashed_password" not in tokens.user.model_dump()


class TestVerifyAccessToken:
    """Tests for verify_access_token."""

    @pytest.mark.asyncio
    async def test_valid_token(
        self, async_session: AsyncSession, warga_user: User, warga_token: str, settings: Settings
    ) -> None:
        user = await verify_access_token(async_session, warga_token, settings)
        assert user.id == warga_user.id

    @pytest.mark.asyncio
    async def test_expired_token(self, async_session: AsyncSession, warga_user: User, settings: Settings) -> None:
        token = create_access_token(
            str(warga_user.id), "warga", settings.jwt_secret_key, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(InvalidTokenError, match="Token expired"):
            await verify_access_token(async_session, token, settings)

    @pytest.mark.asyncio
    async def test_bad_signature(self, async_session: AsyncSession, warga_user: User, settings: Settings) -> None:
        token = create_access_token(str(warga_user.id), "warga", settings.jwt_refresh_secret_key)
        with pytest.raises(InvalidTokenError, match="Invalid token"):
            await verify_access_token(async_session, token, settings)

    @pytest.mark.asyncio
    async def test_refresh_token_not_accepted_as_access(
        self, async_session: AsyncSession, warga_user: User, settings: Settings
    ) -> None:
        token = create_refresh_token(str(warga_user.id), settings.jwt_secret_key)
        with pytest.raises(InvalidTokenError, match="Invalid token"):
            await verify_access_token(async_session, token, settings)

    @pytest.mark.asyncio
    async def test_deleted_user(self, async_session: AsyncSession, settings: Settings) -> None:
        token = create_access_token(str(uuid.uuid4()), "warga", settings.jwt_secret_key)
        with pytest.raises(InvalidTokenError, match="User not found"):
            await verify_access_token(async_session, token, settings)

    @pytest.mark.asyncio
    async def test_role_claim_must_match_stored_role(
        self, async_session: AsyncSession, warga_user: User, settings: Settings
    ) -> None:
        forged = create_access_token(str(warga_user.id), "admin", settings.jwt_secret_key)
        with pytest.raises(InvalidTokenError, match="Invalid token"):
            await verify_access_token(async_session, forged, settings)

    @pytest.mark.asyncio
    async def test_non_uuid_subject(self, async_session: AsyncSession, settings: Settings) -> None:
        token = create_access_token("not-a-uuid", "warga", settings.jwt_secret_key)
        with pytest.raises(InvalidTokenError, match="Invalid token"):
            await verify_access_token(async_session, token, settings)


class TestRefreshAccessToken:
    """Tests for refresh_access_token."""

    @pytest.mark.asyncio
    async def test_mints_new_access_token(
        self, async_session: AsyncSession, warga_user: User, warga_refresh_token: str, settings: Settings
    ) -> None:
        response = await refresh_access_token(async_session, warga_refresh_token, settings)
        payload = decode_token(response.access_token, settings.jwt_secret_key)
        assert payload["sub"] == str(warga_user.id)
        assert payload["role"] == "warga"
        assert response.user.nik == warga_user.nik

    @pytest.mark.asyncio
    async def test_refresh_token_reusable(
        self, async_session: AsyncSession, warga_refresh_token: str, settings: Settings
    ) -> None:
        await refresh_access_token(async_session, warga_refresh_token, settings)
        await refresh_access_token(async_session, warga_refresh_token, settings)

    @pytest.mark.asyncio
    async def test_missing_token(self, async_session: AsyncSession, settings: Settings) -> None:
        with pytest.raises(ValueError, match="Refresh token is required"):
            await refresh_access_token(async_session, None, settings)

    @pytest.mark.asyncio
    async def test_access_secret_signed_token_rejected(
        self, async_session: AsyncSession, warga_user: User, settings: Settings
    ) -> None:
        token = create_refresh_token(str(warga_user.id), settings.jwt_secret_key)
        with pytest.raises(InvalidTokenError, match="Invalid refresh token"):
            await refresh_access_token(async_session, token, settings)

    @pytest.mark.asyncio
    async def test_unknown_token(self, async_session: AsyncSession, warga_user: User, settings: Settings) -> None:
        token = create_refresh_token(str(warga_user.id), settings.jwt_refresh_secret_key)
        with pytest.raises(InvalidTokenError, match="Refresh token not recognized"):
            await refresh_access_token(async_session, token, settings)

    @pytest.mark.asyncio
    async def test_revoked_token(
        self, async_session: AsyncSession, warga_refresh_token: str, settings: Settings
    ) -> None:
        await revoke_refresh_token(async_session, warga_refresh_token)
        with pytest.raises(InvalidTokenError, match="Refresh token has been revoked"):
            await refresh_access_token(async_session, warga_refresh_token, settings)

    @pytest.mark.asyncio
    async def test_stored_expiry_enforced(
        self, async_session: AsyncSession, warga_refresh_token: str, settings: Settings
    ) -> None:
        result = await async_session.execute(select(RefreshToken).where(RefreshToken.token == warga_refresh_token))
        stored = result.scalar_one()
        stored.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        await async_session.commit()

        with pytest.raises(InvalidTokenError, match="Refresh token has expired"):
            await refresh_access_token(async_session, warga_refresh_token, settings)


class TestRevokeRefreshToken:
    """Tests for revoke_refresh_token."""

    @pytest.mark.asyncio
    async def test_marks_revoked(self, async_session: AsyncSession, warga_refresh_token: str) -> None:
        await revoke_refresh_token(async_session, warga_refresh_token)
        result = await async_session.execute(select(RefreshToken).where(RefreshToken.token == warga_refresh_token))
        assert result.scalar_one().revoked is True

    @pytest.mark.asyncio
    async def test_revoking_twice_is_allowed(self, async_session: AsyncSession, warga_refresh_token: str) -> None:
        await revoke_refresh_token(async_session, warga_refresh_token)
        await revoke_refresh_token(async_session, warga_refresh_token)

    @pytest.mark.asyncio
    async def test_unknown_token(self, async_session: AsyncSession) -> None:
        with pytest.raises(RefreshTokenNotFoundError, match="Refresh token not found"):
            await revoke_refresh_token(async_session, "not-a-stored-token")

    @pytest.mark.asyncio
    async def test_missing_token(self, async_session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="Refresh token is required"):
            await revoke_refresh_token(async_session, "")


class TestPurgeRefreshTokens:
    """Tests for purge_refresh_tokens."""

    @pytest.mark.asyncio
    async def test_removes_revoked_and_expired_only(
        self, async_session: AsyncSession, warga_user: User
    ) -> None:
        now = datetime.now(UTC)
        async_session.add_all(
            [
                RefreshToken(token="live", user_id=warga_user.id, expires_at=now + timedelta(days=1)),
                RefreshToken(token="revoked", user_id=warga_user.id, expires_at=now + timedelta(days=1), revoked=True),
                RefreshToken(token="expired", user_id=warga_user.id, expires_at=now - timedelta(days=1)),
            ]
        )
        await async_session.commit()

        removed = await purge_refresh_tokens(async_session, now=now)

        assert removed == 2
        result = await async_session.execute(select(RefreshToken.token))
        assert result.scalars().all() == ["live"]


class TestListUsers:
    """Tests for list_users."""

    @pytest.mark.asyncio
    async def test_lists_all(self, async_session: AsyncSession, admin_user: User, warga_user: User) -> None:
        users = await list_users(async_session)
        assert {u.id for u in users} == {admin_user.id, warga_user.id}

    @pytest.mark.asyncio
    async def test_filters_by_role(self, async_session: AsyncSession, admin_user: User, warga_user: User) -> None:
        users = await list_users(async_session, "warga")
        assert [u.id for u in users] == [warga_user.id]
