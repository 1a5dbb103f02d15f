"""JWT creation and verification for access and refresh tokens.

Access and refresh tokens are signed with independent secrets so a leaked
access secret cannot be used to mint long-lived refresh tokens.
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from tasktrack.core.config import Settings

DEFAULT_ACCESS_TTL = timedelta(seconds=30)
DEFAULT_REFRESH_TTL = timedelta(days=1)


class TokenConfigError(Exception):
    """Raised at construction when a signing secret is missing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenVerificationError(Exception):
    """Base class for a token that must not be trusted."""

    reason = "invalid"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenExpiredError(TokenVerificationError):
    reason = "expired"


class TokenMalformedError(TokenVerificationError):
    reason = "malformed"


class TokenSignatureError(TokenVerificationError):
    reason = "signature_invalid"


def _secret_value(secret: Any) -> str:
    if secret is None:
        return ""
    if hasattr(secret, "get_secret_value"):
        secret = secret.get_secret_value()
    return str(secret).strip()


class TokenIssuer:
    """Signs and verifies access and refresh JWTs."""

    def __init__(
        self,
        access_secret: Any,
        refresh_secret: Any,
        algorithm: str = "HS256",
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
    ) -> None:
        self._access_secret = _secret_value(access_secret)
        self._refresh_secret = _secret_value(refresh_secret)
        if not self._access_secret:
            raise TokenConfigError("ACCESS_TOKEN_SECRET must be set and non-empty")
        if not self._refresh_secret:
            raise TokenConfigError("REFRESH_TOKEN_SECRET must be set and non-empty")
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            access_secret=settings.ACCESS_TOKEN_SECRET,
            refresh_secret=settings.REFRESH_TOKEN_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS),
            refresh_ttl=timedelta(seconds=settings.REFRESH_TOKEN_EXPIRE_SECONDS),
        )

    def _sign(
        self,
        claims: dict[str, Any],
        secret: str,
        ttl: timedelta,
        now: datetime | None,
    ) -> str:
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            **claims,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_access_token(
        self,
        claims: dict[str, Any],
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        """Sign access claims ({"UserInfo": {...}}) with the access secret."""
        return self._sign(claims, self._access_secret, ttl or self.access_ttl, now)

    def issue_refresh_token(
        self,
        claims: dict[str, Any],
        ttl: timedelta | None = None,
        now: datetime | None = None,
    ) -> str:
        """
        Sign refresh claims ({"userId", "email"}) with the refresh secret.

        A random jti makes every issued refresh token distinct, so a login
        within the same second as the previous one still rotates the value.
        """
        payload = {**claims, "jti": uuid.uuid4().hex}
        return self._sign(payload, self._refresh_secret, ttl or self.refresh_ttl, now)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """
        Decode and validate a token; return its claims.
        Raises TokenExpiredError, TokenSignatureError or TokenMalformedError.
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise TokenSignatureError("Token signature is invalid") from e
        except jwt.PyJWTError as e:
            raise TokenMalformedError(f"Token is malformed: {e}") from e

    def verify_access_token(self, token: str) -> dict[str, Any]:
        return self.verify(token, self._access_secret)

    def verify_refresh_token(self, token: str) -> dict[str, Any]:
        return self.verify(token, self._refresh_secret)
