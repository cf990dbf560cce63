"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Long-lived collaborators (Mongo database, email
provider) are created in the app lifespan and stored on app.state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import AuthenticationError
from infrastructure.email.protocol import EmailProvider
from repositories.user_repository import USERS_COLLECTION, UserRepository
from services.auth_service import AuthService
from services.otp_service import OtpService
from services.token_service import TokenService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_email_provider(request: Request) -> EmailProvider:
    return request.app.state.email_provider


async def get_user_repository(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db[USERS_COLLECTION])


def get_token_service(settings: AppSettings = Depends(get_settings)) -> TokenService:
    return TokenService(settings.jwt, production=settings.is_production)


def get_otp_service(
    users: UserRepository = Depends(get_user_repository),
    email_provider: EmailProvider = Depends(get_email_provider),
    settings: AppSettings = Depends(get_settings),
) -> OtpService:
    return OtpService(users, email_provider, settings.otp)


def get_auth_service(
    users: UserRepository = Depends(get_user_repository),
    otp: OtpService = Depends(get_otp_service),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> AuthService:
    return AuthService(users, otp, email_provider)


def get_current_user_id(
    request: Request, tokens: TokenService = Depends(get_token_service)
) -> str:
    """Resolve the logged-in user from the session cookie (or a Bearer header).

    Raises:
        AuthenticationError: no session, or the session token is invalid.
    """
    token: Optional[str] = request.cookies.get(tokens.cookie_name)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.lower().startswith("bearer "):
            token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise AuthenticationError("not authorized, login again")
    return tokens.verify(token)
