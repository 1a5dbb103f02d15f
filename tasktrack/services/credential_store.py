"""User persistence: lookups by email, username and current refresh token."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tasktrack.models import User

logger = logging.getLogger(__name__)


class DuplicateUserError(Exception):
    """Raised when an email or username is already taken."""

    def __init__(self, field: str) -> None:
        self.field = field
        self.message = f"{field.capitalize()} already exists."
        super().__init__(self.message)


class CredentialStore:
    """Single-row reads and writes of User records over a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).first()

    def find_by_user_id(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.user_id == user_id).first()

    def find_by_refresh_token(self, refresh_token: str) -> User | None:
        """Return the user currently holding this exact token. Empty never matches."""
        if not refresh_token:
            return None
        return self.db.query(User).filter(User.refresh_token == refresh_token).first()

    def create(self, user: User) -> User:
        """
        Insert a new user after checking email, then username, for duplicates.

        A unique-index violation from a concurrent insert that slipped past the
        checks is reported as DuplicateUserError as well. Any other integrity
        error is re-raised unchanged.
        """
        if self.find_by_email(user.email) is not None:
            raise DuplicateUserError("email")
        if self.find_by_username(user.username) is not None:
            raise DuplicateUserError("username")
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            field = _conflicting_field(e)
            if field is None:
                raise
            logger.warning("User insert hit a unique constraint", extra={"error": str(e.orig)[:200]})
            raise DuplicateUserError(field) from e
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        """Persist mutated fields (password hash, refresh token, roles)."""
        self.db.add(user)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user


def _conflicting_field(error: IntegrityError) -> str | None:
    """Which unique user field the violation names; None for any other integrity error."""
    detail = str(error.orig).lower()
    if "username" in detail:
        return "username"
    if "email" in detail:
        return "email"
    return None
