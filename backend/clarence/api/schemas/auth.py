"""Authentication request/response schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clarence.core.constants import VerificationPurpose

PHONE_PATTERN = r"^\+[1-9]\d{7,14}$"


class PhoneRequest(BaseModel):
    """Request payload carrying just an E.164 phone number."""

    phone: str = Field(..., pattern=PHONE_PATTERN)


class CheckPhoneResponse(BaseModel):
    exists: bool
    message: str


class SendVerificationCodeRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    purpose: VerificationPurpose = VerificationPurpose.REGISTRATION


class SendVerificationCodeResponse(BaseModel):
    verification_id: str
    expires_at: datetime
    message: str


class VerifyCodeRequest(BaseModel):
    verification_id: str = Field(..., min_length=1)
    code: str = Field(..., pattern=r"^\d{6}$")


class VerifyCodeResponse(BaseModel):
    verified: bool
    verification_token: str
    expires_at: datetime


class RegisterRequest(BaseModel):
    verification_token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)
    email: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    """Request payload for login endpoint."""

    phone: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=1, max_length=256)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Access + refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., ge=1)


class UserResponse(BaseModel):
    """User profile returned by register, login and /auth/me."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    phone: str
    email: str | None
    first_name: str | None
    last_name: str | None
    account_status: str
    created_at: datetime
    last_login_at: datetime | None


class AuthResponse(TokenResponse):
    user: UserResponse


class ForgotPasswordResponse(BaseModel):
    reset_id: str
    expires_at: datetime
    message: str


class ResetPasswordRequest(BaseModel):
    reset_id: str = Field(..., min_length=1)
    code: str = Field(..., pattern=r"^\d{6}$")
    new_password: str = Field(..., min_length=8, max_length=128)


class MessageResponse(BaseModel):
    message: str
