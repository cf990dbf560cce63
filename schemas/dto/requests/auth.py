"""
Request DTOs for authentication endpoints.

RegisterRequest        — POST /api/auth/register
LoginRequest           — POST /api/auth/login
VerifyAccountRequest   — POST /api/auth/verify-account
SendResetOtpRequest    — POST /api/auth/send-reset-otp
ResetPasswordRequest   — POST /api/auth/reset-password

Emails are stripped and lower-cased before they reach the service layer.
The browser client posts camelCase keys (``newPassword``); both spellings
are accepted.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalise_email(value: str) -> str:
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("invalid email address")
    return value


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: str
    password: str = Field(min_length=8, max_length=128)

    _email = field_validator("email")(_normalise_email)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    password: str = Field(min_length=1)

    _email = field_validator("email")(_normalise_email)


class VerifyAccountRequest(BaseModel):
    """Request body for POST /api/auth/verify-account.

    ``otp`` is the 6-digit code mailed to the account's address.
    """

    model_config = ConfigDict(populate_by_name=True)

    otp: str = Field(min_length=1)


class SendResetOtpRequest(BaseModel):
    """Request body for POST /api/auth/send-reset-otp."""

    model_config = ConfigDict(populate_by_name=True)

    email: str

    _email = field_validator("email")(_normalise_email)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/auth/reset-password."""

    model_config = ConfigDict(populate_by_name=True)

    email: str
    otp: str = Field(min_length=1)
    new_password: str = Field(alias="newPassword", min_length=8, max_length=128)

    _email = field_validator("email")(_normalise_email)
