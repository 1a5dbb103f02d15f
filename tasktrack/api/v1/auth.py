"""Register, login, logout and refresh routes plus the Bearer auth dependency."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tasktrack.core.config import Settings
from tasktrack.core.database import get_db
from tasktrack.core.errors import UnauthorizedError, server_error
from tasktrack.core.tokens import TokenIssuer, TokenVerificationError
from tasktrack.schemas.auth import (
    AccessTokenResponse,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
)
from tasktrack.services.credential_store import CredentialStore
from tasktrack.services.session_manager import SessionManager

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Dependency: the settings create_app() was built with."""
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    """Dependency: the issuer built once by create_app()."""
    return request.app.state.token_issuer


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_session_manager(
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: SettingsDep,
) -> SessionManager:
    return SessionManager(
        CredentialStore(db),
        issuer,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )


def _set_refresh_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        token,
        httponly=True,
        samesite="none",
        secure=True,
        max_age=settings.REFRESH_TOKEN_EXPIRE_SECONDS,
        path="/",
    )


def _clear_refresh_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.REFRESH_COOKIE_NAME,
        httponly=True,
        samesite="none",
        secure=True,
        path="/",
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: SettingsDep,
) -> RegisterResponse:
    """Create an account, start its session and set the refresh cookie."""
    with server_error("Server error while creating user."):
        tokens = sessions.register(body.username, body.pwd, body.email)
    _set_refresh_cookie(response, tokens.refresh_token, settings)
    return RegisterResponse(
        success=f"New user {body.username} created and logged in!",
        access_token=tokens.access_token,
    )


@router.post("/login", response_model=AccessTokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: SettingsDep,
) -> AccessTokenResponse:
    """
    Authenticate with email and password; returns an access token.
    The refresh token is set as the HttpOnly jwt cookie and replaces any earlier one.
    """
    with server_error("Server error during login."):
        tokens = sessions.login(body.email, body.pwd)
    _set_refresh_cookie(response, tokens.refresh_token, settings)
    return AccessTokenResponse(access_token=tokens.access_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: SettingsDep,
) -> Response:
    """End the session for the refresh cookie. Always 204, even without a session."""
    refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    with server_error("Server error during logout."):
        had_cookie = sessions.logout(refresh_token)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    if had_cookie:
        _clear_refresh_cookie(response, settings)
    return response


@router.get("/refresh", response_model=AccessTokenResponse)
def refresh(
    request: Request,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    settings: SettingsDep,
) -> AccessTokenResponse:
    """Issue a new access token for the current refresh cookie (no rotation)."""
    refresh_token = request.cookies.get(settings.REFRESH_COOKIE_NAME)
    with server_error("Server error during token refresh."):
        access_token = sessions.refresh(refresh_token)
    return AccessTokenResponse(access_token=access_token)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token and return its claims. Raises 401."""
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    try:
        payload = issuer.verify_access_token(credentials.credentials)
    except TokenVerificationError as e:
        logger.info("Access token rejected", extra={"reason": e.reason})
        raise UnauthorizedError("Invalid or expired token") from e
    info = payload.get("UserInfo")
    if not isinstance(info, dict) or not info.get("userId"):
        raise UnauthorizedError("Invalid token payload")
    return CurrentUser(
        user_id=str(info["userId"]),
        email=str(info.get("email") or ""),
        roles=[int(r) for r in info.get("roles") or []],
    )


def require_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: SettingsDep,
) -> CurrentUser | None:
    """Dependency for task routes: enforce get_current_user only when AUTH_ENABLED."""
    if not settings.AUTH_ENABLED:
        return None
    return get_current_user(credentials, issuer)
