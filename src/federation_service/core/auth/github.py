"""GitHub federated authentication provider.

Exchanges the authorization code from GitHub's callback for an access token,
resolves the caller's primary email and maps it onto a local user. First-time
callers are provisioned with a fresh organization and a random password.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import (
    DirectoryError,
    NoPrimaryEmailError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from .provider import AuthProvider
from federation_service.domain.models import Organization, ProviderEmail, ProviderProfile, User
from federation_service.domain.services import OrganizationService, UserService
from federation_service.infrastructure.github.client import GitHubClient
from federation_service.infrastructure.github.oauth import GitHubOAuthClient

logger = logging.getLogger(__name__)

# Display name for GitHub accounts without a login
UNKNOWN_NAME = "N/A"


def select_primary_email(emails: list[ProviderEmail]) -> str:
    """Pick the address GitHub marks as primary.

    Raises:
        NoPrimaryEmailError: No primary address, or the primary one is
            explicitly unverified
    """
    primary = next((email for email in emails if email.primary), None)
    if primary is None:
        logger.error(f"GitHub account lists {len(emails)} email(s), none marked primary")
        raise NoPrimaryEmailError("GitHub account has no primary email address")
    if primary.verified is False:
        logger.error(f"GitHub primary email {primary.email} is not verified")
        raise NoPrimaryEmailError(f"Primary email {primary.email} is not verified")
    return primary.email


class GitHubAuthProvider(AuthProvider):
    """Federated sign-in through GitHub OAuth.

    Flow:
        code -> access token -> /user/emails -> primary email
             -> existing user (returned as-is, no writes)
             -> or /user profile -> organization + user (one transaction)

    Organization and user are committed together, so a failure part-way
    through provisioning leaves nothing behind. Two concurrent first logins
    for the same email race on the users.email unique constraint; the loser
    rolls back and returns the winner's row.
    """

    name = "github"

    def __init__(
        self,
        oauth_client: GitHubOAuthClient,
        session: AsyncSession,
        user_service: UserService,
        organization_service: OrganizationService,
        api_url: str = "https://api.github.com",
        timeout: float = 10.0,
    ):
        """Initialize GitHub provider.

        Args:
            oauth_client: Token exchange client
            session: Database session shared by both directory services
            user_service: User lookup, creation and password hashing
            organization_service: Organization creation
            api_url: GitHub REST API base URL
            timeout: Per-request timeout for GitHub API calls
        """
        self.oauth_client = oauth_client
        self.session = session
        self.user_service = user_service
        self.organization_service = organization_service
        self.api_url = api_url
        self.timeout = timeout

    def get_login_url(self, state: str) -> str:
        return self.oauth_client.get_authorization_url(state)

    async def authenticate(self, code: str) -> User:
        logger.debug("Authenticating user with GitHub")

        token = await self.oauth_client.exchange_code(code)
        client = GitHubClient(token.access_token, api_url=self.api_url, timeout=self.timeout)

        emails = await client.list_emails()
        email = select_primary_email(emails)

        try:
            user = await self.user_service.get_user_by_email(email)
        except UserNotFoundError:
            logger.debug(f"No local user for {email}, provisioning")
        else:
            logger.debug(f"User authenticated with GitHub: {user.id}")
            return user

        profile = await client.get_user()
        return await self.create_user(email, profile)

    async def create_user(self, email: str, profile: ProviderProfile) -> User:
        """Provision an organization and user for a first-time GitHub login.

        Args:
            email: Primary GitHub email, the local identity key
            profile: The caller's GitHub profile

        Returns:
            The new User, or the existing one if a concurrent request won

        Raises:
            DirectoryError: Organization or user could not be written
            HashingError: Password hash could not be computed
        """
        name = profile.login or UNKNOWN_NAME

        try:
            organization = await self.organization_service.create_organization(
                Organization(name=self.organization_service.create_organization_name())
            )

            hashed_password = self.user_service.hash_user_password(
                self.user_service.create_password()
            )

            user = await self.user_service.create_user(User(
                name=name,
                email=email,
                organization_id=organization.id,
                hashed_password=hashed_password,
                sso_provider=self.name,
                sso_subject_id=str(profile.id),
            ))

            await self._commit(email)
        except UserAlreadyExistsError:
            await self.session.rollback()
            return await self._get_concurrent_winner(email)
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Provisioned GitHub user {user.id} ({email}) in organization {organization.id}")
        return user

    async def _commit(self, email: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            raise UserAlreadyExistsError(f"User {email} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to commit provisioning for {email}: {e}")
            raise DirectoryError(f"Provisioning commit failed: {e}") from e

    async def _get_concurrent_winner(self, email: str) -> User:
        logger.info(f"User {email} was created concurrently, returning existing user")
        try:
            return await self.user_service.get_user_by_email(email)
        except UserNotFoundError as e:
            # Conflict was not on the email key
            raise DirectoryError(f"Provisioning conflict for {email}") from e
