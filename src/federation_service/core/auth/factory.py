"""Authentication provider factory.

Builds the configured federated provider for a request-scoped database session.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .provider import AuthProvider
from federation_service.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def get_auth_provider(
    session: AsyncSession,
    settings: Optional[Settings] = None,
) -> AuthProvider:
    """Get a provider instance bound to the given session.

    Providers hold no state of their own, but their directory services share
    the request's session, so a fresh instance is built per request.

    Args:
        session: Request-scoped database session
        settings: Settings override (defaults to cached settings)

    Returns:
        Configured AuthProvider instance

    Raises:
        ValueError: If GitHub OAuth credentials are missing
    """
    settings = settings or get_settings()

    # Defer import so the interface module stays free of HTTP/DB wiring
    from .github import GitHubAuthProvider
    from federation_service.domain.services import OrganizationService, UserService
    from federation_service.infrastructure.github.oauth import GitHubOAuthClient

    if not all([settings.github_client_id, settings.github_client_secret, settings.github_redirect_url]):
        raise ValueError(
            "GitHub provider requires: GITHUB_CLIENT_ID, GITHUB_CLIENT_SECRET, GITHUB_REDIRECT_URL"
        )

    oauth_client = GitHubOAuthClient(
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        redirect_url=settings.github_redirect_url,
        scopes=settings.github_scopes,
        authorize_url=settings.github_authorize_url,
        token_url=settings.github_token_url,
        timeout=settings.http_timeout_seconds,
    )

    return GitHubAuthProvider(
        oauth_client=oauth_client,
        session=session,
        user_service=UserService(session),
        organization_service=OrganizationService(session),
        api_url=settings.github_api_url,
        timeout=settings.http_timeout_seconds,
    )
