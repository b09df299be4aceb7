"""Organization directory."""

import logging
import secrets

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from federation_service.core.auth.errors import DirectoryError
from federation_service.domain.models import Organization

logger = logging.getLogger(__name__)


class OrganizationService:
    """Creates organizations (tenants) for newly provisioned users."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def create_organization_name(self) -> str:
        """Generate a unique organization name, e.g. ``org-3f9a0c1b2d4e``."""
        return f"org-{secrets.token_hex(6)}"

    async def create_organization(self, organization: Organization) -> Organization:
        """Stage a new organization in the current transaction.

        Raises:
            DirectoryError: If the organization cannot be written
        """
        self.session.add(organization)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to create organization {organization.name}: {e}")
            raise DirectoryError(f"Organization creation failed: {e}") from e

        logger.info(f"Created organization {organization.id} ({organization.name})")
        return organization
