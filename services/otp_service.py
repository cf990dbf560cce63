"""
OTP lifecycle for account verification and password reset.

Each user holds at most one active code per purpose, stored on the user
document (``verify_otp`` / ``reset_otp``). The lifecycle of a field is:

    empty --issue--> issued --validate ok--> empty
                     issued --issue-------> issued (old code overwritten)

Expiry is not a stored state; it is checked when a code is validated.
Nothing in this module raises for an expected failure: every outcome is an
``OtpResult`` whose ``failure`` names the reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional

from pymongo.errors import PyMongoError

from config import OtpSettings
from infrastructure.email.protocol import EmailProvider
from repositories.user_repository import UserRepository
from schemas.models.user import OtpRecord, UserDoc
from shared.crypto import codes_match, hash_password
from shared.generators import generate_otp_code
from shared.logging import get_logger

log = get_logger(__name__)


class OtpPurpose(str, Enum):
    VERIFICATION = "verification"
    RESET = "reset"

    @property
    def field(self) -> str:
        """Name of the user document field holding this purpose's code."""
        return "verify_otp" if self is OtpPurpose.VERIFICATION else "reset_otp"


class OtpFailure(str, Enum):
    NOT_FOUND = "not_found"
    ALREADY_VERIFIED = "already_verified"
    NO_ACTIVE_OTP = "no_active_otp"
    INVALID_OTP = "invalid_otp"
    EXPIRED = "expired"
    DIRECTORY_UNAVAILABLE = "directory_unavailable"


@dataclass(frozen=True)
class OtpResult:
    """Outcome of an OTP operation.

    ``failure`` is None on success. ``delivered`` and ``expires_in``
    (seconds) are only set by issue(); ``delivered`` reports whether the
    notifier accepted the message, and the stored record is kept either way.
    """

    failure: Optional[OtpFailure] = None
    user: Optional[UserDoc] = None
    record: Optional[OtpRecord] = None
    delivered: Optional[bool] = None
    expires_in: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def fail(cls, failure: OtpFailure) -> "OtpResult":
        return cls(failure=failure)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpService:
    """Issues, validates and consumes one-time codes stored on user records."""

    def __init__(
        self,
        users: UserRepository,
        email_provider: EmailProvider,
        settings: OtpSettings,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._email = email_provider
        self._settings = settings
        self._clock = clock

    def window(self, purpose: OtpPurpose) -> timedelta:
        if purpose is OtpPurpose.VERIFICATION:
            return timedelta(seconds=self._settings.otp_verify_ttl_seconds)
        return timedelta(seconds=self._settings.otp_reset_ttl_seconds)

    async def _lookup(self, identity_or_email: str, purpose: OtpPurpose) -> Optional[UserDoc]:
        # Verification is requested by a logged-in user; reset by email address
        if purpose is OtpPurpose.VERIFICATION:
            return await self._users.find_by_id(identity_or_email)
        return await self._users.find_by_email(identity_or_email)

    async def issue(self, identity_or_email: str, purpose: OtpPurpose) -> OtpResult:
        """Generate a fresh code for *purpose*, persist it, then notify the user."""
        try:
            user = await self._lookup(identity_or_email, purpose)
            if user is None:
                log.warning("otp_issue_failed", reason="not_found", purpose=purpose.value)
                return OtpResult.fail(OtpFailure.NOT_FOUND)

            if purpose is OtpPurpose.VERIFICATION and user.is_account_verified:
                log.info("otp_issue_failed", reason="already_verified", user_id=str(user.id))
                return OtpResult.fail(OtpFailure.ALREADY_VERIFIED)

            window = self.window(purpose)
            record = OtpRecord(
                code=generate_otp_code(self._settings.otp_length),
                expires_at=self._clock() + window,
            )
            setattr(user, purpose.field, record)

            if not await self._users.save(user, purpose.field):
                log.warning("otp_issue_failed", reason="user_vanished", user_id=str(user.id))
                return OtpResult.fail(OtpFailure.NOT_FOUND)
        except PyMongoError as e:
            log.error(
                "otp_issue_failed",
                reason="directory_unavailable",
                purpose=purpose.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return OtpResult.fail(OtpFailure.DIRECTORY_UNAVAILABLE)

        log.info(
            "otp_issued",
            user_id=str(user.id),
            purpose=purpose.value,
            expires_at=record.expires_at.isoformat(),
        )

        delivered = await self._notify(user, purpose, record.code, window)
        return OtpResult(
            user=user,
            record=record,
            delivered=delivered,
            expires_in=int(window.total_seconds()),
        )

    async def _notify(
        self, user: UserDoc, purpose: OtpPurpose, code: str, window: timedelta
    ) -> bool:
        # The record is already persisted; delivery problems are reported, not reverted
        minutes = int(window.total_seconds() // 60)
        try:
            if purpose is OtpPurpose.VERIFICATION:
                sent = await self._email.send_verification_email(
                    user.email, user.name, code, minutes
                )
            else:
                sent = await self._email.send_password_reset_email(
                    user.email, user.name, code, minutes
                )
        except Exception as e:
            log.error(
                "otp_delivery_error",
                user_id=str(user.id),
                purpose=purpose.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if not sent:
            log.error("otp_delivery_failed", user_id=str(user.id), purpose=purpose.value)
        return bool(sent)

    def _check(
        self, user: Optional[UserDoc], purpose: OtpPurpose, supplied_code: str
    ) -> Optional[OtpFailure]:
        """Return the first failed precondition, or None when the code is acceptable."""
        if user is None:
            return OtpFailure.NOT_FOUND

        record: Optional[OtpRecord] = getattr(user, purpose.field)
        if record is None or not record.code:
            return OtpFailure.NO_ACTIVE_OTP
        if not codes_match(record.code, supplied_code):
            return OtpFailure.INVALID_OTP
        if record.is_expired(self._clock()):
            return OtpFailure.EXPIRED
        return None

    async def _consume(
        self,
        identity_or_email: str,
        purpose: OtpPurpose,
        supplied_code: str,
        changes: Callable[[UserDoc], dict],
    ) -> OtpResult:
        try:
            user = await self._lookup(identity_or_email, purpose)
            failure = self._check(user, purpose, supplied_code)
            if failure is not None:
                log.warning(
                    "otp_validation_failed",
                    reason=failure.value,
                    purpose=purpose.value,
                    user_id=str(user.id) if user else None,
                )
                return OtpResult.fail(failure)

            update = changes(user)
            consumed = await self._users.consume_otp(
                user.id, purpose.field, supplied_code, update
            )
        except PyMongoError as e:
            log.error(
                "otp_validation_failed",
                reason="directory_unavailable",
                purpose=purpose.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return OtpResult.fail(OtpFailure.DIRECTORY_UNAVAILABLE)

        if not consumed:
            # Another request consumed or replaced the code after we read it
            log.warning(
                "otp_validation_failed",
                reason=OtpFailure.NO_ACTIVE_OTP.value,
                purpose=purpose.value,
                user_id=str(user.id),
                raced=True,
            )
            return OtpResult.fail(OtpFailure.NO_ACTIVE_OTP)

        setattr(user, purpose.field, None)
        for key, value in update.items():
            setattr(user, key, value)

        log.info("otp_consumed", user_id=str(user.id), purpose=purpose.value)
        return OtpResult(user=user)

    async def validate(
        self, identity_or_email: str, purpose: OtpPurpose, supplied_code: str
    ) -> OtpResult:
        """Check *supplied_code* and consume it on success.

        Checks run in order and the first failure is reported: user exists,
        a code is active, the code matches exactly, the code has not expired.
        A successful verification also marks the account as verified.
        """

        def changes(user: UserDoc) -> dict:
            if purpose is OtpPurpose.VERIFICATION:
                return {"is_account_verified": True}
            return {}

        return await self._consume(identity_or_email, purpose, supplied_code, changes)

    async def complete_reset(self, email: str, otp: str, new_password: str) -> OtpResult:
        """Validate a reset code and replace the password hash in the same write.

        When the code is rejected nothing is written and the validation
        failure is returned unchanged.
        """

        def changes(user: UserDoc) -> dict:
            return {"password_hash": hash_password(new_password)}

        result = await self._consume(email, OtpPurpose.RESET, otp, changes)
        if result.ok:
            log.info("password_reset_completed", user_id=str(result.user.id))
        return result
