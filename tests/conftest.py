"""
Shared test doubles.

FakeUserRepository keeps users in memory and mirrors the write semantics of
UserRepository: partial ``$set`` saves and conditional OTP consumption.
FakeEmailProvider records every message instead of sending it.
FakeClock is a settable "now" for the OTP service.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from schemas.models.user import UserDoc
from shared.crypto import hash_password


class FakeClock:
    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeUserRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, UserDoc] = {}
        self.writes: list[dict[str, Any]] = []

    def add(self, user: UserDoc) -> UserDoc:
        user.id = user.id or ObjectId()
        self.docs[user.id] = user.model_copy(deep=True)
        return user

    def stored(self, user_id: ObjectId) -> UserDoc:
        return self.docs[user_id]

    async def find_by_id(self, user_id: Union[str, ObjectId]) -> Optional[UserDoc]:
        if isinstance(user_id, str):
            if not ObjectId.is_valid(user_id):
                return None
            user_id = ObjectId(user_id)
        doc = self.docs.get(user_id)
        return doc.model_copy(deep=True) if doc else None

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        for doc in self.docs.values():
            if doc.email == email:
                return doc.model_copy(deep=True)
        return None

    async def insert(self, user: UserDoc) -> ObjectId:
        if any(doc.email == user.email for doc in self.docs.values()):
            raise DuplicateKeyError("E11000 duplicate key error")
        self.add(user)
        self.writes.append({"insert": user.email})
        return user.id

    async def save(self, user: UserDoc, *fields: str) -> bool:
        doc = self.docs.get(user.id)
        if doc is None:
            return False
        names = fields or tuple(UserDoc.model_fields)
        changes = {name: getattr(user, name) for name in names if name != "id"}
        self.docs[user.id] = doc.model_copy(update=changes, deep=True)
        self.writes.append(changes)
        return True

    async def consume_otp(
        self,
        user_id: ObjectId,
        otp_field: str,
        code: str,
        changes: Optional[dict[str, Any]] = None,
    ) -> bool:
        doc = self.docs.get(user_id)
        record = getattr(doc, otp_field) if doc else None
        if record is None or record.code != code:
            return False
        update = dict(changes or {})
        update[otp_field] = None
        self.docs[user_id] = doc.model_copy(update=update, deep=True)
        self.writes.append(update)
        return True


class FakeEmailProvider:
    def __init__(self, result: bool = True, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error
        self.sent: list[dict[str, Any]] = []

    async def _record(self, **message: Any) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return self.result

    async def send(self, to_email, to_name, subject, html_body, text_body=None) -> bool:
        return await self._record(kind="raw", email=to_email, subject=subject)

    async def send_verification_email(self, email, user_name, otp_code, expires_in_minutes):
        return await self._record(
            kind="verification", email=email, code=otp_code, minutes=expires_in_minutes
        )

    async def send_welcome_email(self, email, user_name):
        return await self._record(kind="welcome", email=email)

    async def send_password_reset_email(self, email, user_name, otp_code, expires_in_minutes):
        return await self._record(
            kind="reset", email=email, code=otp_code, minutes=expires_in_minutes
        )


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def email_provider():
    return FakeEmailProvider()


@pytest.fixture
def alice(user_repo):
    """An unverified user stored in the fake repository."""
    return user_repo.add(
        UserDoc(
            name="Alice",
            email="alice@example.com",
            password_hash=hash_password("old-password"),
        )
    )
