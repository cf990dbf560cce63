"""Unit tests for AppSettings and sub-configs."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from config import AppSettings, DatabaseSettings, JWTSettings, OtpSettings


@pytest.fixture
def with_mongo(monkeypatch):
    """Set the required MONGODB_URI so AppSettings can be instantiated."""
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    return monkeypatch


class TestDatabaseSettings:
    def test_loads_mongodb_uri(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        assert DatabaseSettings().mongodb_uri == "mongodb://localhost:27017/"

    def test_default_db_name(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
        assert DatabaseSettings().db_name == "auth-service"

    def test_missing_mongodb_uri_raises(self, monkeypatch):
        monkeypatch.delenv("MONGODB_URI", raising=False)
        with pytest.raises(PydanticValidationError):
            DatabaseSettings()


class TestOtpSettings:
    def test_defaults(self, monkeypatch):
        for var in ("OTP_LENGTH", "OTP_VERIFY_TTL_SECONDS", "OTP_RESET_TTL_SECONDS"):
            monkeypatch.delenv(var, raising=False)
        s = OtpSettings()
        assert s.otp_length == 6
        assert s.otp_verify_ttl_seconds == 86400
        assert s.otp_reset_ttl_seconds == 900

    def test_override(self, monkeypatch):
        monkeypatch.setenv("OTP_RESET_TTL_SECONDS", "300")
        assert OtpSettings().otp_reset_ttl_seconds == 300


class TestJWTSettings:
    def test_defaults(self, monkeypatch):
        for var in ("JWT_SECRET", "SESSION_TTL_SECONDS", "SESSION_COOKIE_NAME"):
            monkeypatch.delenv(var, raising=False)
        s = JWTSettings()
        assert s.jwt_secret == ""
        assert s.session_ttl_seconds == 604800
        assert s.session_cookie_name == "token"


@pytest.mark.parametrize(
    "env, expected",
    [("production", True), ("development", False)],
    ids=["production", "development"],
)
def test_is_production(with_mongo, env, expected):
    with_mongo.setenv("ENV", env)
    assert AppSettings().is_production is expected


class TestAppSettings:
    def test_sub_configs_populated(self, with_mongo):
        s = AppSettings()
        for attr in ("db", "jwt", "otp", "email", "logging", "sentry"):
            assert getattr(s, attr) is not None, f"sub-config '{attr}' is None"

    def test_cors_origins_from_env(self, with_mongo):
        with_mongo.setenv("CORS_ORIGINS", '["https://app.example.com"]')
        assert AppSettings().cors_origins == ["https://app.example.com"]
