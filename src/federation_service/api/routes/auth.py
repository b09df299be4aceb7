"""Federated Authentication Routes

Purpose: FastAPI routes for the GitHub OAuth sign-in flow

Key Endpoints:
- GET /auth/github/login: Redirect to GitHub's consent page
- GET /auth/github/callback: Resolve the authorization code to a local user
- GET /auth/me: Profile of the user a login token was issued for

The callback only redirects once the outcome is known: success carries a
short-lived login token, failure carries an error code.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from federation_service.config.settings import Settings, get_settings
from federation_service.core.auth import (
    AuthProvider,
    DirectoryError,
    FederationError,
    UserNotFoundError,
    get_auth_provider,
)
from federation_service.core.security import create_login_token, verify_login_token
from federation_service.domain.services import UserService
from federation_service.infrastructure.database import get_db

router = APIRouter(prefix="/api/v1/auth", tags=["authentication"])
logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

STATE_COOKIE = "github_oauth_state"
STATE_COOKIE_MAX_AGE = 600  # seconds


class UserProfileResponse(BaseModel):
    """Schema for the current user profile."""

    id: UUID
    name: str
    email: str
    organization_id: UUID
    sso_provider: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# Dependency injection functions
async def get_provider(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthProvider:
    """Get the federated provider bound to the request's session"""
    return get_auth_provider(db, settings)


def _with_query(url: str, **params: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def _failure_redirect(settings: Settings, error_code: str) -> RedirectResponse:
    response = RedirectResponse(
        _with_query(settings.frontend_failure_url, error=error_code),
        status_code=status.HTTP_302_FOUND,
    )
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/github/login")
async def github_login(
    provider: AuthProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """Start the GitHub sign-in flow

    Stores a CSRF state in a short-lived cookie and redirects to GitHub.
    """
    state = secrets.token_urlsafe(32)
    response = RedirectResponse(provider.get_login_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )
    return response


@router.get("/github/callback")
async def github_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    state_cookie: Optional[str] = Cookie(None, alias=STATE_COOKIE),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """GitHub OAuth callback

    Resolves the authorization code to a local user (provisioning one on
    first login) and redirects to the front end with the outcome. Every
    failure, including provider misconfiguration, ends in a redirect.
    """
    if not state or not state_cookie or not secrets.compare_digest(state, state_cookie):
        logger.warning("GitHub callback rejected: state mismatch")
        return _failure_redirect(settings, "invalid_state")

    if not code:
        logger.warning("GitHub callback rejected: missing authorization code")
        return _failure_redirect(settings, "missing_code")

    try:
        provider = get_auth_provider(db, settings)
        user = await provider.authenticate(code)
    except FederationError as e:
        logger.error(f"GitHub sign-in failed ({e.code}): {e}")
        return _failure_redirect(settings, e.code)
    except Exception as e:
        logger.error(f"GitHub sign-in failed unexpectedly: {e}", exc_info=True)
        return _failure_redirect(settings, FederationError.code)

    logger.info(f"GitHub sign-in succeeded for user {user.id}")
    response = RedirectResponse(
        _with_query(settings.frontend_url, token=create_login_token(user, settings)),
        status_code=status.HTTP_302_FOUND,
    )
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserProfileResponse:
    """Get the profile of the user a login token was issued for"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = verify_login_token(credentials.credentials, settings)
        user_id = UUID(payload["sub"])
    except (JWTError, ValueError, KeyError) as e:
        logger.debug(f"Login token rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await UserService(db).get_user(user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except DirectoryError as e:
        logger.error(f"User lookup failed for {user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User directory unavailable",
        )

    return UserProfileResponse.model_validate(user)
