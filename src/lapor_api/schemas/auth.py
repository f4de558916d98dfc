"""Authentication and user Pydantic v2 schemas.

Request fields are optional at the schema level so the service can apply
its own validation order (presence, format, password policy, uniqueness)
and answer with 400 instead of a schema error.
"""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class AdminRegisterRequest(BaseModel):
    """Admin registration request."""

    username: str | None = None
    email: str | None = None
    password: str | None = None
    divisi: str | None = None


class WargaRegisterRequest(BaseModel):
    """Citizen registration request."""

    nik: str | None = None
    nama: str | None = None
    email: str | None = None
    password: str | None = None


class AdminLoginRequest(BaseModel):
    """Admin login request with username and password."""

    username: str | None = None
    password: str | None = None


class WargaLoginRequest(BaseModel):
    """Citizen login request with NIK and password."""

    nik: str | None = None
    password: str | None = None


class RefreshRequest(BaseModel):
    """Token refresh / logout request."""

    refresh_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("refreshToken", "refresh_token"),
    )


class VerifyPasswordRequest(BaseModel):
    """Password re-check request for the authenticated citizen."""

    password: str | None = None


class UserResponse(BaseModel):
    """User information response; the password hash is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str | None = None
    nik: str | None = None
    nama: str | None = None
    email: str
    divisi: str | None = None
    role: str
    created_at: datetime | None = None


class RegisterResponse(BaseModel):
    """Successful registration response."""

    message: str
    user: UserResponse


class LoginResponse(BaseModel):
    """JWT token pair response."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = "Login successful"
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
    token_type: str = Field(default="bearer", alias="tokenType")
    expires_in: int = Field(alias="expiresIn", description="Access token expiration in seconds")
    user: UserResponse


class RefreshResponse(BaseModel):
    """New access token minted from a refresh token."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    token_type: str = Field(default="bearer", alias="tokenType")
    expires_in: int = Field(alias="expiresIn", description="Access token expiration in seconds")
    user: UserResponse


class VerifyResponse(BaseModel):
    """Token verification result."""

    valid: bool = True
    user: UserResponse


class VerifyPasswordResponse(BaseModel):
    """Password re-check result."""

    valid: bool = True
    message: str = "Password verified successfully"
