"""
Account flows: registration, login, email verification and password reset.

Route handlers call into AuthService and never touch the repository
directly. Typed OTP failures are translated into AppError subclasses here,
at the edge of the request layer.
"""

from __future__ import annotations

from pymongo.errors import DuplicateKeyError, PyMongoError

from errors import (
    AlreadyVerifiedError,
    AppError,
    AuthenticationError,
    ConflictError,
    InvalidOtpError,
    NoActiveOtpError,
    NotFoundError,
    OtpExpiredError,
    ServiceUnavailableError,
)
from infrastructure.email.protocol import EmailProvider
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from services.otp_service import OtpFailure, OtpPurpose, OtpResult, OtpService
from shared.crypto import hash_password, verify_password
from shared.logging import get_logger

log = get_logger(__name__)


def otp_failure_error(failure: OtpFailure) -> AppError:
    """Map an OTP failure onto the AppError the API reports for it."""
    if failure is OtpFailure.NOT_FOUND:
        return NotFoundError("user not found")
    if failure is OtpFailure.ALREADY_VERIFIED:
        return AlreadyVerifiedError("account already verified")
    if failure is OtpFailure.NO_ACTIVE_OTP:
        return NoActiveOtpError("no active code, request a new one", field="otp")
    if failure is OtpFailure.INVALID_OTP:
        return InvalidOtpError("invalid code", field="otp")
    if failure is OtpFailure.EXPIRED:
        return OtpExpiredError("code expired, request a new one", field="otp")
    return ServiceUnavailableError("user directory unavailable, try again later")


def _raise_for(result: OtpResult) -> None:
    if not result.ok:
        raise otp_failure_error(result.failure)


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        otp: OtpService,
        email_provider: EmailProvider,
    ) -> None:
        self._users = users
        self._otp = otp
        self._email = email_provider

    async def register(self, name: str, email: str, password: str) -> UserDoc:
        if await self._users.find_by_email(email):
            log.warning("registration_failed", reason="email_exists")
            raise ConflictError("user already exists", field="email")

        user = UserDoc(name=name, email=email, password_hash=hash_password(password))
        try:
            await self._users.insert(user)
        except DuplicateKeyError:
            # Race condition: email was registered between our check and insert
            log.warning("registration_failed", reason="race_condition_duplicate")
            raise ConflictError("user already exists", field="email")
        except PyMongoError as e:
            log.error("registration_failed", reason="database_error", error=str(e))
            raise ServiceUnavailableError("failed to create user")

        log.info("user_registered", user_id=str(user.id))

        # A failed welcome email never fails the registration
        try:
            if not await self._email.send_welcome_email(user.email, user.name):
                log.warning("welcome_email_failed", user_id=str(user.id))
        except Exception as e:
            log.error(
                "welcome_email_error",
                user_id=str(user.id),
                error=str(e),
                error_type=type(e).__name__,
            )
        return user

    async def login(self, email: str, password: str) -> UserDoc:
        user = await self._users.find_by_email(email)
        if user is None:
            # Do not reveal which part failed
            log.warning("login_failed", reason="invalid_credentials", email_exists=False)
            raise AuthenticationError("invalid credentials")

        if not verify_password(password, user.password_hash):
            log.warning("login_failed", reason="invalid_credentials", user_id=str(user.id))
            raise AuthenticationError("invalid credentials")

        log.info("login_success", user_id=str(user.id))
        return user

    async def get_user(self, user_id: str) -> UserDoc:
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def send_verify_otp(self, user_id: str) -> OtpResult:
        result = await self._otp.issue(user_id, OtpPurpose.VERIFICATION)
        _raise_for(result)
        return result

    async def verify_account(self, user_id: str, otp: str) -> UserDoc:
        result = await self._otp.validate(user_id, OtpPurpose.VERIFICATION, otp)
        _raise_for(result)
        log.info("account_verified", user_id=user_id)
        return result.user

    async def send_reset_otp(self, email: str) -> OtpResult:
        result = await self._otp.issue(email, OtpPurpose.RESET)
        _raise_for(result)
        return result

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        _raise_for(await self._otp.complete_reset(email, otp, new_password))
