"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """New account. Fields are checked by the session manager so gaps return 400."""

    username: str | None = Field(default=None, description="Username")
    pwd: str | None = Field(default=None, description="Password")
    email: str | None = Field(default=None, description="Email address")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str | None = Field(default=None, description="Email address")
    pwd: str | None = Field(default=None, description="Password")


class AccessTokenResponse(BaseModel):
    """Access token returned by login and refresh."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", description="JWT access token")


class RegisterResponse(AccessTokenResponse):
    """Response for a successful registration."""

    success: str = Field(..., description="Human-readable confirmation")


class CurrentUser(BaseModel):
    """Claims of a verified access token, for dependency injection."""

    user_id: str
    email: str
    roles: list[int] = Field(default_factory=list)
