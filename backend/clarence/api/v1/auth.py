"""Authentication endpoints: phone verification, registration, login, tokens, password reset."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from clarence.api.deps import get_auth_service, get_current_user
from clarence.api.schemas.auth import (
    AuthResponse,
    CheckPhoneResponse,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    PhoneRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendVerificationCodeRequest,
    SendVerificationCodeResponse,
    TokenResponse,
    UserResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from clarence.auth.service import AuthResult, AuthService
from clarence.db.models.user import User

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        expires_in=result.tokens.expires_in,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/check-phone", response_model=CheckPhoneResponse)
async def check_phone(
    payload: PhoneRequest,
    auth: AuthService = Depends(get_auth_service),
) -> CheckPhoneResponse:
    return CheckPhoneResponse(**await auth.check_phone(payload.phone))


@router.post("/send-verification-code", response_model=SendVerificationCodeResponse)
async def send_verification_code(
    payload: SendVerificationCodeRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SendVerificationCodeResponse:
    """Text a 6-digit code; limited to 3 per phone per hour."""
    return SendVerificationCodeResponse(
        **await auth.send_verification_code(payload.phone, payload.purpose)
    )


@router.post("/verify-code", response_model=VerifyCodeResponse)
async def verify_code(
    payload: VerifyCodeRequest,
    auth: AuthService = Depends(get_auth_service),
) -> VerifyCodeResponse:
    return VerifyCodeResponse(**await auth.verify_code(payload.verification_id, payload.code))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth.register(
        verification_token=payload.verification_token,
        password=payload.password,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return _auth_response(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Authenticate with phone + password and issue a token pair."""
    return _auth_response(await auth.login(payload.phone, payload.password))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    payload: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    tokens = await auth.refresh(payload.refresh_token)
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    payload: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.logout(payload.refresh_token)
    return MessageResponse(message="Logged out successfully")


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(
    payload: PhoneRequest,
    auth: AuthService = Depends(get_auth_service),
) -> ForgotPasswordResponse:
    return ForgotPasswordResponse(**await auth.forgot_password(payload.phone))


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    return MessageResponse(
        **await auth.reset_password(payload.reset_id, payload.code, payload.new_password)
    )


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated active user."""
    return UserResponse.model_validate(current_user)
