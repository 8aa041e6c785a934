"""Pydantic models for the identity domain."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class InvitationKey(BaseModel):
    """A pre-issued, single-use registration key. Its id is its only attribute."""

    id: UUID

    model_config = {"from_attributes": True, "frozen": True}


class User(BaseModel):
    """A registered user, as stored."""

    id: int
    email: EmailStr
    password_hash: str = Field(..., exclude=True, repr=False)
    key_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class ViewableUser(BaseModel):
    """Public projection of a user. Never carries the password hash."""

    id: int
    email: EmailStr

    model_config = {"from_attributes": True}


class TokenClaims(BaseModel):
    """Decoded payload of a session token."""

    sub: str = Field(..., description="Subject user id (decimal string)")
    email: str
    iss: str
    iat: int = Field(..., description="Issued-at, UNIX seconds")
    exp: int = Field(..., description="Expiry, UNIX seconds")

    model_config = {"frozen": True}

    @property
    def user_id(self) -> int:
        return int(self.sub)


class SignupRequest(BaseModel):
    """Request payload for POST /signup.

    email is a plain string on purpose: format errors are reported by the
    user directory as INVALID_EMAIL, not as a generic schema failure.
    """

    email: str
    password: str
    key: UUID


class LoginRequest(BaseModel):
    """Request payload for POST /login."""

    email: str
    password: str


class CheckKeyRequest(BaseModel):
    """Request payload for POST /keys."""

    key: UUID


class TokenResponse(BaseModel):
    """Successful signup/login response."""

    token: str
