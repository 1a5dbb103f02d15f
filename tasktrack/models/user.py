"""ORM model for user accounts and their current refresh token."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, func

from tasktrack.models.base import Base

# Role name -> rank. Every new account starts with USER.
ROLE_USER = 2001
ROLE_EDITOR = 1984
ROLE_ADMIN = 5150

DEFAULT_ROLES = {"User": ROLE_USER}


class User(Base):
    """
    User account for cookie-based session refresh.

    user_id is the public identifier carried in tokens; id is storage-only.
    refresh_token holds the single live refresh token, or NULL/"" when the
    user has no active session.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    roles = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_ROLES))
    refresh_token = Column(Text, nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def role_ranks(self) -> list[int]:
        """Rank values for the access token's roles claim."""
        return [rank for rank in (self.roles or {}).values() if rank is not None]
