"""
User document model.

Maps to the `users` MongoDB collection.

Each user carries at most one active OTP per purpose. An OtpRecord is stored
as a single embedded sub-document so that overwriting it is one field write
and two issuances can never interleave inside the record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator

from schemas.models.base import MongoBaseModel


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # pymongo returns naive datetimes unless tz_aware=True; stored values are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class OtpRecord(BaseModel):
    """An issued one-time code and the instant it stops being accepted."""

    code: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _normalise_expiry(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    name: str
    email: str
    password_hash: str
    is_account_verified: bool = False
    verify_otp: Optional[OtpRecord] = None
    reset_otp: Optional[OtpRecord] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
