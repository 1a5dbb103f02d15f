"""
Session lifecycle: register, login, logout, refresh.

All session state lives in the credential store; this class holds only its
collaborators. The stored refresh token is set on register and login
(rotation), cleared on logout, and only validated on refresh.
"""

import logging
import uuid
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from tasktrack.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    UnauthorizedError,
)
from tasktrack.core.security import DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password
from tasktrack.core.tokens import TokenIssuer, TokenVerificationError
from tasktrack.models import User
from tasktrack.models.user import DEFAULT_ROLES
from tasktrack.services.credential_store import CredentialStore, DuplicateUserError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


@dataclass(frozen=True)
class SessionTokens:
    """Tokens minted for a new session; refresh_token goes into the cookie."""

    access_token: str
    refresh_token: str


def is_valid_email(email: str) -> bool:
    """
    Syntax-only check. Reserved names such as .test domains are accepted, but
    the domain still needs a dot (no bare "localhost").
    """
    try:
        result = validate_email(
            email,
            check_deliverability=False,
            test_environment=True,
            globally_deliverable=False,
        )
    except EmailNotValidError:
        return False
    return "." in result.ascii_domain


class SessionManager:
    """Orchestrates the credential store and token issuer for one request."""

    def __init__(
        self,
        store: CredentialStore,
        issuer: TokenIssuer,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ) -> None:
        self.store = store
        self.issuer = issuer
        self.bcrypt_rounds = bcrypt_rounds

    def _access_token_for(self, user: User) -> str:
        return self.issuer.issue_access_token(
            {
                "UserInfo": {
                    "userId": user.user_id,
                    "email": user.email,
                    "roles": user.role_ranks(),
                }
            }
        )

    def _start_session(self, user: User) -> SessionTokens:
        """Mint both tokens and store the refresh token, replacing any previous one."""
        access_token = self._access_token_for(user)
        refresh_token = self.issuer.issue_refresh_token(
            {"userId": user.user_id, "email": user.email}
        )
        user.refresh_token = refresh_token
        self.store.save(user)
        return SessionTokens(access_token=access_token, refresh_token=refresh_token)

    def register(
        self,
        username: str | None,
        password: str | None,
        email: str | None,
    ) -> SessionTokens:
        """
        Create an account and log it in.

        The user row is written first so the tokens reference a persisted
        user_id; the refresh token is then stored with a second write.
        """
        if not username or not password or not email:
            raise BadRequestError("Username, password, and email are required.")
        if not is_valid_email(email):
            raise BadRequestError("Invalid email format.")

        user = User(
            user_id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
            roles=dict(DEFAULT_ROLES),
        )
        try:
            user = self.store.create(user)
        except DuplicateUserError as e:
            logger.info("Registration rejected", extra={"reason": f"duplicate_{e.field}"})
            raise ConflictError(e.message) from e

        tokens = self._start_session(user)
        logger.info("User registered", extra={"user_id": user.user_id})
        return tokens

    def login(self, email: str | None, password: str | None) -> SessionTokens:
        """Authenticate and rotate the stored refresh token (single active session)."""
        if not email or not password:
            raise BadRequestError("Email and password are required.")

        user = self.store.find_by_email(email)
        if user is None:
            logger.info("Login failed", extra={"reason": "unknown_email"})
            raise UnauthorizedError(INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.info("Login failed", extra={"reason": "bad_password", "user_id": user.user_id})
            raise UnauthorizedError(INVALID_CREDENTIALS)

        tokens = self._start_session(user)
        logger.info("User logged in", extra={"user_id": user.user_id})
        return tokens

    def logout(self, refresh_token: str | None) -> bool:
        """
        End the session holding this refresh token.

        Returns False when there was no token at all (nothing to clear) and
        True otherwise, whether or not a user still held it.
        """
        if not refresh_token:
            return False
        user = self.store.find_by_refresh_token(refresh_token)
        if user is None:
            logger.info("Logout with unknown refresh token")
            return True
        user.refresh_token = ""
        self.store.save(user)
        logger.info("User logged out", extra={"user_id": user.user_id})
        return True

    def refresh(self, refresh_token: str | None) -> str:
        """
        Exchange the current refresh token for a new access token.

        The token must be the one stored on a user before its signature and
        expiry are checked; the refresh token itself is not rotated.
        """
        if not refresh_token:
            raise UnauthorizedError("Unauthorized")

        user = self.store.find_by_refresh_token(refresh_token)
        if user is None:
            logger.info("Refresh rejected", extra={"reason": "not_current"})
            raise ForbiddenError("Forbidden")

        try:
            claims = self.issuer.verify_refresh_token(refresh_token)
        except TokenVerificationError as e:
            logger.warning(
                "Refresh rejected",
                extra={"reason": e.reason, "user_id": user.user_id},
            )
            raise ForbiddenError("Forbidden") from e

        if claims.get("userId") != user.user_id:
            logger.warning(
                "Refresh rejected",
                extra={"reason": "user_mismatch", "user_id": user.user_id},
            )
            raise ForbiddenError("Forbidden")

        return self._access_token_for(user)
