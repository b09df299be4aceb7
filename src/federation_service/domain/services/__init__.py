"""Domain services for the Identity Federation Service"""

from federation_service.domain.services.organization_service import OrganizationService
from federation_service.domain.services.user_service import UserService

__all__ = ["OrganizationService", "UserService"]
