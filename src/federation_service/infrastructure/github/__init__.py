"""GitHub OAuth and REST API clients."""

from federation_service.infrastructure.github.client import GitHubClient
from federation_service.infrastructure.github.oauth import GitHubOAuthClient

__all__ = ["GitHubClient", "GitHubOAuthClient"]
