"""Federated authentication.

- provider: AuthProvider interface
- github: GitHub OAuth provider (code exchange, email resolution, provisioning)
- factory: per-request provider wiring
- errors: typed failures of the sign-in flow
"""

from .errors import (
    DirectoryError,
    FederationError,
    HashingError,
    NoPrimaryEmailError,
    ProfileFetchError,
    TokenExchangeError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from .provider import AuthProvider
from .factory import get_auth_provider

__all__ = [
    "AuthProvider",
    "get_auth_provider",
    "FederationError",
    "TokenExchangeError",
    "ProfileFetchError",
    "NoPrimaryEmailError",
    "DirectoryError",
    "UserAlreadyExistsError",
    "HashingError",
    "UserNotFoundError",
]
