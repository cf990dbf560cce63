"""
Session issuer — signs the session JWT and manages the session cookie.

The cookie is httpOnly; in production it is Secure with SameSite=None so the
SPA can send it cross-site, otherwise SameSite=Strict over plain HTTP.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from starlette.responses import Response

from config import JWTSettings
from errors import AuthenticationError

_ALGORITHM = "HS256"


class TokenService:
    def __init__(self, settings: JWTSettings, *, production: bool = False) -> None:
        self._settings = settings
        self._production = production

    @property
    def cookie_name(self) -> str:
        return self._settings.session_cookie_name

    def _secret(self) -> str:
        if not self._settings.jwt_secret:
            raise RuntimeError("JWT_SECRET must be set to issue or verify sessions")
        return self._settings.jwt_secret

    def issue(self, user_id: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int(
                (now + timedelta(seconds=self._settings.session_ttl_seconds)).timestamp()
            ),
        }
        return jwt.encode(claims, self._secret(), algorithm=_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the user id carried by *token*.

        Raises:
            AuthenticationError: token expired, tampered with, or missing a subject.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret(),
                algorithms=[_ALGORITHM],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("session expired, login again")
        except jwt.InvalidTokenError:
            raise AuthenticationError("not authorized, login again")

        user_id = claims.get("sub")
        if not user_id:
            raise AuthenticationError("not authorized, login again")
        return user_id

    def _cookie_attrs(self) -> dict:
        return {
            "httponly": True,
            "secure": self._production,
            "samesite": "none" if self._production else "strict",
            "path": "/",
        }

    def set_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            self.cookie_name,
            value=token,
            max_age=self._settings.session_ttl_seconds,
            **self._cookie_attrs(),
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(self.cookie_name, **self._cookie_attrs())
