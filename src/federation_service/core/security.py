"""
Login tokens handed to the front end after a successful federated sign-in.

The callback redirects to the front end with a short-lived signed JWT instead
of redirecting blind; the front end trades it for its own session.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from federation_service.config.settings import Settings, get_settings
from federation_service.domain.models import User

LOGIN_TOKEN_TYPE = "login"


def create_login_token(user: User, settings: Optional[Settings] = None) -> str:
    """
    Create a signed login token for a user.

    Args:
        user: Authenticated user
        settings: Settings override (defaults to cached settings)

    Returns:
        Encoded JWT token string
    """
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)

    to_encode = {
        "sub": str(user.id),  # Subject (user ID)
        "email": user.email,
        "org_id": str(user.organization_id),
        "iat": now,
        "exp": now + timedelta(seconds=settings.login_token_expire_seconds),
        "type": LOGIN_TOKEN_TYPE,
        "jti": str(uuid.uuid4()),
    }

    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_login_token(token: str, settings: Optional[Settings] = None) -> dict:
    """
    Verify and decode a login token.

    Raises:
        JWTError: If token is invalid or expired
        ValueError: If token is not a login token
    """
    settings = settings or get_settings()
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if payload.get("type") != LOGIN_TOKEN_TYPE:
        raise ValueError(f"Invalid token type. Expected {LOGIN_TOKEN_TYPE}, got {payload.get('type')}")

    return payload
