"""Unit tests for AuthService account flows and OTP error mapping."""

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from config import OtpSettings
from errors import (
    AlreadyVerifiedError,
    AuthenticationError,
    ConflictError,
    InvalidOtpError,
    NoActiveOtpError,
    NotFoundError,
    OtpExpiredError,
    ServiceUnavailableError,
)
from services.auth_service import AuthService, otp_failure_error
from services.otp_service import OtpFailure, OtpService
from shared.crypto import verify_password


@pytest.fixture
def otp_service(user_repo, email_provider, clock):
    return OtpService(user_repo, email_provider, OtpSettings(), clock=clock)


@pytest.fixture
def auth(user_repo, otp_service, email_provider):
    return AuthService(user_repo, otp_service, email_provider)


@pytest.mark.parametrize(
    "failure, error_cls, status",
    [
        (OtpFailure.NOT_FOUND, NotFoundError, 404),
        (OtpFailure.ALREADY_VERIFIED, AlreadyVerifiedError, 409),
        (OtpFailure.NO_ACTIVE_OTP, NoActiveOtpError, 400),
        (OtpFailure.INVALID_OTP, InvalidOtpError, 400),
        (OtpFailure.EXPIRED, OtpExpiredError, 400),
        (OtpFailure.DIRECTORY_UNAVAILABLE, ServiceUnavailableError, 503),
    ],
)
def test_otp_failure_error(failure, error_cls, status):
    err = otp_failure_error(failure)
    assert type(err) is error_cls
    assert err.status_code == status


def test_otp_failure_codes_are_distinct():
    codes = {otp_failure_error(f).error_code for f in OtpFailure}
    assert len(codes) == len(OtpFailure)


class TestRegister:
    async def test_creates_unverified_user_and_welcomes(self, auth, user_repo, email_provider):
        user = await auth.register("Bob", "bob@example.com", "s3cret-pass")

        stored = user_repo.stored(user.id)
        assert stored.is_account_verified is False
        assert verify_password("s3cret-pass", stored.password_hash)
        assert email_provider.sent == [{"kind": "welcome", "email": "bob@example.com"}]

    async def test_duplicate_email(self, auth, alice):
        with pytest.raises(ConflictError):
            await auth.register("Alice 2", alice.email, "s3cret-pass")

    async def test_duplicate_key_race(self, auth, user_repo, mocker):
        mocker.patch.object(user_repo, "insert", side_effect=DuplicateKeyError("E11000"))
        with pytest.raises(ConflictError):
            await auth.register("Bob", "bob@example.com", "s3cret-pass")

    async def test_database_error(self, auth, user_repo, mocker):
        mocker.patch.object(
            user_repo, "insert", side_effect=ServerSelectionTimeoutError("down")
        )
        with pytest.raises(ServiceUnavailableError):
            await auth.register("Bob", "bob@example.com", "s3cret-pass")

    async def test_welcome_failure_does_not_fail_registration(
        self, auth, user_repo, email_provider
    ):
        email_provider.error = RuntimeError("smtp down")
        user = await auth.register("Bob", "bob@example.com", "s3cret-pass")
        assert user.id in user_repo.docs


class TestLogin:
    async def test_success(self, auth, alice):
        user = await auth.login(alice.email, "old-password")
        assert user.id == alice.id

    @pytest.mark.parametrize(
        "email, password",
        [("alice@example.com", "wrong"), ("ghost@example.com", "old-password")],
        ids=["bad_password", "unknown_email"],
    )
    async def test_invalid_credentials_share_one_message(self, auth, alice, email, password):
        with pytest.raises(AuthenticationError, match="invalid credentials"):
            await auth.login(email, password)


class TestOtpFlows:
    async def test_verify_account(self, auth, user_repo, email_provider, alice):
        await auth.send_verify_otp(str(alice.id))
        code = email_provider.sent[-1]["code"]

        user = await auth.verify_account(str(alice.id), code)

        assert user.is_account_verified is True

    async def test_verify_account_wrong_code(self, auth, email_provider, alice):
        await auth.send_verify_otp(str(alice.id))
        wrong = "000000" if email_provider.sent[-1]["code"] != "000000" else "111111"
        with pytest.raises(InvalidOtpError):
            await auth.verify_account(str(alice.id), wrong)

    async def test_send_verify_otp_already_verified(self, auth, user_repo, alice):
        user_repo.docs[alice.id].is_account_verified = True
        with pytest.raises(AlreadyVerifiedError):
            await auth.send_verify_otp(str(alice.id))

    async def test_send_reset_otp_unknown_email(self, auth):
        with pytest.raises(NotFoundError):
            await auth.send_reset_otp("ghost@example.com")

    async def test_reset_password(self, auth, user_repo, email_provider, alice):
        await auth.send_reset_otp(alice.email)
        code = email_provider.sent[-1]["code"]

        await auth.reset_password(alice.email, code, "brand-new-pass")

        assert verify_password("brand-new-pass", user_repo.stored(alice.id).password_hash)
        await auth.login(alice.email, "brand-new-pass")

    async def test_reset_password_expired(self, auth, email_provider, alice, clock):
        await auth.send_reset_otp(alice.email)
        code = email_provider.sent[-1]["code"]
        clock.advance(minutes=16)

        with pytest.raises(OtpExpiredError):
            await auth.reset_password(alice.email, code, "brand-new-pass")

    async def test_reset_password_without_request(self, auth, alice):
        with pytest.raises(NoActiveOtpError):
            await auth.reset_password(alice.email, "123456", "brand-new-pass")


class TestGetUser:
    async def test_found(self, auth, alice):
        assert (await auth.get_user(str(alice.id))).email == alice.email

    async def test_missing(self, auth):
        with pytest.raises(NotFoundError):
            await auth.get_user(str(ObjectId()))
