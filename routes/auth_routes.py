"""
Authentication routes under /api/auth.

POST /register         — create account, start session, send welcome email
POST /login            — start session
POST /logout           — end session
POST /send-verify-otp  — mail a verification code to the logged-in user
POST /verify-account   — consume the verification code
GET  /is-auth          — 200 when the session cookie is valid
POST /send-reset-otp   — mail a password reset code
POST /reset-password   — consume the reset code and set a new password
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from dependencies import get_auth_service, get_current_user_id, get_token_service
from schemas.dto.requests.auth import (
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendResetOtpRequest,
    VerifyAccountRequest,
)
from schemas.dto.responses.auth import AuthResponse, OtpSentResponse, UserDataResponse
from schemas.dto.responses.common import MessageResponse
from services.auth_service import AuthService
from services.otp_service import OtpResult
from services.token_service import TokenService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _otp_sent(result: OtpResult, message: str) -> OtpSentResponse:
    return OtpSentResponse(
        success=True,
        message=message if result.delivered else "code created but the email could not be sent",
        delivered=bool(result.delivered),
        expires_in=result.expires_in,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    user = await auth.register(body.name, body.email, body.password)
    tokens.set_cookie(response, tokens.issue(str(user.id)))
    return AuthResponse(success=True, user=UserDataResponse.from_user(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthResponse:
    user = await auth.login(body.email, body.password)
    tokens.set_cookie(response, tokens.issue(str(user.id)))
    return AuthResponse(success=True, user=UserDataResponse.from_user(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response, tokens: TokenService = Depends(get_token_service)
) -> MessageResponse:
    tokens.clear_cookie(response)
    return MessageResponse(success=True, message="logged out")


@router.post("/send-verify-otp", response_model=OtpSentResponse)
async def send_verify_otp(
    user_id: str = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> OtpSentResponse:
    result = await auth.send_verify_otp(user_id)
    return _otp_sent(result, "verification code sent to your email")


@router.post("/verify-account", response_model=MessageResponse)
async def verify_account(
    body: VerifyAccountRequest,
    user_id: str = Depends(get_current_user_id),
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth.verify_account(user_id, body.otp)
    return MessageResponse(success=True, message="email verified successfully")


@router.get("/is-auth", response_model=MessageResponse)
async def is_authenticated(user_id: str = Depends(get_current_user_id)) -> MessageResponse:
    return MessageResponse(success=True)


@router.post("/send-reset-otp", response_model=OtpSentResponse)
async def send_reset_otp(
    body: SendResetOtpRequest, auth: AuthService = Depends(get_auth_service)
) -> OtpSentResponse:
    result = await auth.send_reset_otp(body.email)
    return _otp_sent(result, "password reset code sent to your email")


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth.reset_password(body.email, body.otp, body.new_password)
    return MessageResponse(success=True, message="password has been reset successfully")
