"""Domain models for the Identity Federation Service"""

from federation_service.domain.models.base import Base
from federation_service.domain.models.github import OAuthToken, ProviderEmail, ProviderProfile
from federation_service.domain.models.organization import Organization
from federation_service.domain.models.user import User

__all__ = [
    # Persisted models
    "Base",
    "Organization",
    "User",
    # Identity provider payloads
    "OAuthToken",
    "ProviderEmail",
    "ProviderProfile",
]
