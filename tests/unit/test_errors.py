"""Unit tests for AppError hierarchy."""

import pytest

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
    ValidationError,
)


@pytest.mark.parametrize(
    "error_cls, status, code",
    [
        (ValidationError, 400, "validation_error"),
        (AuthenticationError, 401, "authentication_error"),
        (NotFoundError, 404, "not_found"),
        (ConflictError, 409, "conflict"),
        (ServiceUnavailableError, 503, "service_unavailable"),
        (AlreadyVerifiedError, 409, "already_verified"),
        (NoActiveOtpError, 400, "no_active_otp"),
        (InvalidOtpError, 400, "invalid_otp"),
        (OtpExpiredError, 400, "otp_expired"),
    ],
)
def test_status_and_code(error_cls, status, code):
    e = error_cls("message")
    assert isinstance(e, AppError)
    assert e.status_code == status
    assert e.error_code == code
    assert e.message == "message"


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("user not found")
        assert e.to_dict() == {"error": "user not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "otp"}, "field", "otp"),
            ({"details": {"min": 8, "max": 128}}, "details", {"min": 8, "max": 128}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d
