"""Abstract federated authentication provider interface.

This module defines the contract every identity provider integration
implements: build the consent URL, then turn the authorization code returned
to the callback into a local user.
"""

from abc import ABC, abstractmethod

from federation_service.domain.models import User


class AuthProvider(ABC):
    """Abstract interface for federated authentication providers.

    Implementations are stateless beyond their injected collaborators, so
    one instance may serve concurrent requests as long as each request gets
    its own database session.
    """

    name: str = "federated"

    @abstractmethod
    def get_login_url(self, state: str) -> str:
        """Generate the provider consent URL.

        Args:
            state: CSRF protection state parameter echoed back to the callback

        Returns:
            URL to redirect the browser to
        """
        pass

    @abstractmethod
    async def authenticate(self, code: str) -> User:
        """Resolve an authorization code to a local user.

        Looks the caller up by their verified email and provisions a new
        user (and organization) if none exists.

        Args:
            code: Authorization code from the provider callback

        Returns:
            Existing or newly created User

        Raises:
            FederationError: Typed failure of whichever step broke
        """
        pass
