"""Bearer-authenticated GitHub REST API client."""

import logging
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from federation_service.core.auth.errors import ProfileFetchError
from federation_service.domain.models.github import ProviderEmail, ProviderProfile

logger = logging.getLogger(__name__)

_emails_adapter = TypeAdapter(list[ProviderEmail])


class GitHubClient:
    """Client for the authenticated user's own GitHub resources."""

    def __init__(
        self,
        access_token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }
        self._transport = transport

    async def list_emails(self) -> list[ProviderEmail]:
        """Fetch the caller's email addresses (``GET /user/emails``).

        Raises:
            ProfileFetchError: If the request fails or the body is malformed
        """
        payload = await self._get("/user/emails")
        try:
            return _emails_adapter.validate_python(payload)
        except ValidationError as e:
            raise ProfileFetchError("Malformed /user/emails response") from e

    async def get_user(self) -> ProviderProfile:
        """Fetch the caller's profile (``GET /user``).

        Raises:
            ProfileFetchError: If the request fails or the body is malformed
        """
        payload = await self._get("/user")
        try:
            return ProviderProfile.model_validate(payload)
        except ValidationError as e:
            raise ProfileFetchError("Malformed /user response") from e

    async def _get(self, path: str) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.api_url,
                headers=self._headers,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(path)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"GitHub API {path} failed: HTTP {e.response.status_code}")
            raise ProfileFetchError(f"GitHub API {path} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"GitHub API {path} transport error: {e}")
            raise ProfileFetchError(f"GitHub API {path} failed: {e}") from e
        except ValueError as e:
            raise ProfileFetchError(f"GitHub API {path} returned a non-JSON body") from e
