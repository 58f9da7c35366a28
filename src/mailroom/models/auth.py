"""Pydantic models for the authentication endpoints."""

from pydantic import EmailStr, Field

from mailroom.models.common import ApiModel


class User(ApiModel):
    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    is_super_admin: bool = False


class LoginRequest(ApiModel):
    # The server's local strategy reads the email from the "username" field.
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(ApiModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str | None = None
    last_name: str | None = None
    invitation_token: str | None = None


class ResetPasswordRequest(ApiModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
