"""GitHub OAuth 2.0 web application flow.

Builds the consent URL and exchanges the authorization code returned to the
callback for an access token.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from federation_service.core.auth.errors import TokenExchangeError
from federation_service.domain.models.github import OAuthToken

logger = logging.getLogger(__name__)


class GitHubOAuthClient:
    """OAuth client for the GitHub authorization code grant.

    Example Configuration:
        GITHUB_CLIENT_ID=Iv1.xxx
        GITHUB_CLIENT_SECRET=xxx
        GITHUB_REDIRECT_URL=https://auth.example.com/api/v1/auth/github/callback
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        scopes: Optional[list[str]] = None,
        authorize_url: str = "https://github.com/login/oauth/authorize",
        token_url: str = "https://github.com/login/oauth/access_token",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the OAuth client.

        Args:
            client_id: OAuth App client ID
            client_secret: OAuth App client secret
            redirect_url: Callback URL registered with the OAuth App
            scopes: Scopes to request (default: user:email)
            authorize_url: Consent page endpoint
            token_url: Token endpoint
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.scopes = scopes or ["user:email"]
        self.authorize_url = authorize_url
        self.token_url = token_url
        self.timeout = timeout
        self._transport = transport

    def get_authorization_url(self, state: str) -> str:
        """Generate the GitHub consent URL.

        Args:
            state: CSRF protection state

        Returns:
            Authorization URL to redirect the user to
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "scope": " ".join(self.scopes),
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> OAuthToken:
        """Exchange an authorization code for an access token.

        Args:
            code: Authorization code from the callback

        Returns:
            OAuthToken bound to the authenticated GitHub user

        Raises:
            TokenExchangeError: On transport failure or provider rejection
        """
        if not code:
            raise TokenExchangeError("Authorization code is empty")

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_url,
            "code": code,
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            logger.error(f"GitHub token exchange transport error: {e}")
            raise TokenExchangeError(f"Token exchange failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"GitHub token exchange failed: HTTP {response.status_code}")
            raise TokenExchangeError(f"Token exchange failed: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise TokenExchangeError("Token endpoint returned a non-JSON body") from e

        # GitHub reports bad_verification_code and friends with HTTP 200
        if "error" in payload:
            logger.error(
                f"GitHub rejected authorization code: {payload['error']} "
                f"({payload.get('error_description', 'no description')})"
            )
            raise TokenExchangeError(f"Token exchange rejected: {payload['error']}")

        try:
            return OAuthToken.model_validate(payload)
        except ValidationError as e:
            raise TokenExchangeError("Token endpoint response has no access_token") from e
