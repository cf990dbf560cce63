"""
Response DTOs for authentication endpoints.

UserDataResponse    — GET /api/user/data (200)
AuthResponse        — POST /api/auth/register (201), /login (200)
OtpSentResponse     — POST /api/auth/send-verify-otp, /send-reset-otp (200)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from schemas.models.user import UserDoc


class UserDataResponse(BaseModel):
    """Public profile of the logged-in user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    is_account_verified: bool

    @classmethod
    def from_user(cls, user: UserDoc) -> "UserDataResponse":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            is_account_verified=user.is_account_verified,
        )


class AuthResponse(BaseModel):
    """Response body for register and login; the session travels in a cookie."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    user: UserDataResponse


class OtpSentResponse(BaseModel):
    """Response body after an OTP has been issued.

    ``delivered`` is false when the email could not be sent; the code is
    still active and the client may ask for it to be resent.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    delivered: bool
    expires_in: int
