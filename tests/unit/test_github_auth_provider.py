"""Unit tests for GitHubAuthProvider

Tests the sign-in orchestration with mocked collaborators.
No external dependencies - mocks the OAuth client, GitHub API, directories and session.
"""

import logging
from uuid import uuid4

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from federation_service.core.auth.errors import (
    DirectoryError,
    HashingError,
    NoPrimaryEmailError,
    ProfileFetchError,
    TokenExchangeError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from federation_service.core.auth.github import (
    UNKNOWN_NAME,
    GitHubAuthProvider,
    select_primary_email,
)
from federation_service.domain.models import OAuthToken, ProviderEmail, ProviderProfile, User
from federation_service.domain.services import OrganizationService, UserService
from federation_service.infrastructure.github.oauth import GitHubOAuthClient


def _assign_id(organization):
    organization.id = uuid4()
    return organization


@pytest.fixture
def oauth_client():
    """OAuth client whose code exchange succeeds"""
    client = MagicMock(spec=GitHubOAuthClient)
    client.exchange_code = AsyncMock(return_value=OAuthToken(access_token="gho_test"))
    return client


@pytest.fixture
def user_service():
    """User directory with no registered users"""
    service = MagicMock(spec=UserService)
    service.get_user_by_email = AsyncMock(side_effect=UserNotFoundError("missing"))
    service.create_password = MagicMock(return_value="random-password")
    service.hash_user_password = MagicMock(return_value="$2b$12$hashed")
    service.create_user = AsyncMock(side_effect=lambda user: user)
    return service


@pytest.fixture
def organization_service():
    """Organization directory that assigns IDs on creation"""
    service = MagicMock(spec=OrganizationService)
    service.create_organization_name = MagicMock(return_value="org-0123456789ab")
    service.create_organization = AsyncMock(side_effect=_assign_id)
    return service


@pytest.fixture
def session():
    return AsyncMock()


@pytest.fixture
def provider(oauth_client, session, user_service, organization_service):
    return GitHubAuthProvider(
        oauth_client=oauth_client,
        session=session,
        user_service=user_service,
        organization_service=organization_service,
    )


@pytest.fixture
def github_api():
    """Patch the GitHub API client constructed by the provider"""
    with patch("federation_service.core.auth.github.GitHubClient") as mock_client_class:
        api = mock_client_class.return_value
        api.list_emails = AsyncMock(return_value=[
            ProviderEmail(email="new@y.com", primary=True, verified=True),
        ])
        api.get_user = AsyncMock(return_value=ProviderProfile(id=4242, login="newdev"))
        api.client_class = mock_client_class
        yield api


@pytest.fixture
def existing_user():
    return User(
        id=uuid4(),
        name="existingdev",
        email="x@y.com",
        organization_id=uuid4(),
        hashed_password="$2b$12$existing",
    )


@pytest.mark.unit
class TestSelectPrimaryEmail:
    """Test primary email selection"""

    def test_selects_primary_among_others(self):
        """Only the address flagged primary is used"""
        emails = [
            ProviderEmail(email="a@x", primary=False),
            ProviderEmail(email="b@x", primary=True),
            ProviderEmail(email="c@x", primary=False),
        ]

        assert select_primary_email(emails) == "b@x"

    def test_no_primary_raises(self):
        """Edge case: no primary address fails instead of using an empty key"""
        emails = [ProviderEmail(email="a@x", primary=False)]

        with pytest.raises(NoPrimaryEmailError):
            select_primary_email(emails)

    def test_empty_list_raises(self):
        with pytest.raises(NoPrimaryEmailError):
            select_primary_email([])

    def test_unverified_primary_raises(self):
        """Edge case: primary explicitly flagged unverified is rejected"""
        emails = [ProviderEmail(email="a@x", primary=True, verified=False)]

        with pytest.raises(NoPrimaryEmailError, match="not verified"):
            select_primary_email(emails)

    def test_verification_flag_absent_is_accepted(self):
        emails = [ProviderEmail(email="a@x", primary=True)]

        assert select_primary_email(emails) == "a@x"

    def test_rejections_are_logged(self, caplog):
        with caplog.at_level(logging.ERROR, logger="federation_service.core.auth.github"):
            with pytest.raises(NoPrimaryEmailError):
                select_primary_email([ProviderEmail(email="a@x", primary=False)])
            with pytest.raises(NoPrimaryEmailError):
                select_primary_email([ProviderEmail(email="b@x", primary=True, verified=False)])

        messages = [record.getMessage() for record in caplog.records]
        assert len(messages) == 2
        assert "none marked primary" in messages[0]
        assert "b@x is not verified" in messages[1]


@pytest.mark.unit
class TestAuthenticateExistingUser:
    """Test the lookup fast path"""

    @pytest.mark.asyncio
    async def test_existing_user_returned_without_writes(
        self, provider, github_api, user_service, organization_service, session, existing_user
    ):
        """Happy path: code abc123 resolves to a registered email"""
        github_api.list_emails.return_value = [ProviderEmail(email="x@y.com", primary=True)]
        user_service.get_user_by_email = AsyncMock(return_value=existing_user)

        user = await provider.authenticate("abc123")

        assert user is existing_user
        user_service.get_user_by_email.assert_awaited_once_with("x@y.com")
        github_api.get_user.assert_not_awaited()
        organization_service.create_organization.assert_not_awaited()
        user_service.create_user.assert_not_awaited()
        user_service.hash_user_password.assert_not_called()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_client_bound_to_access_token(self, provider, github_api, oauth_client, user_service, existing_user):
        """The GitHub client is built with the exchanged access token"""
        github_api.list_emails.return_value = [ProviderEmail(email="x@y.com", primary=True)]
        user_service.get_user_by_email = AsyncMock(return_value=existing_user)

        await provider.authenticate("abc123")

        oauth_client.exchange_code.assert_awaited_once_with("abc123")
        assert github_api.client_class.call_args.args[0] == "gho_test"

    @pytest.mark.asyncio
    async def test_lookup_uses_primary_email(self, provider, github_api, user_service, existing_user):
        github_api.list_emails.return_value = [
            ProviderEmail(email="a@x", primary=False),
            ProviderEmail(email="b@x", primary=True),
            ProviderEmail(email="c@x", primary=False),
        ]
        user_service.get_user_by_email = AsyncMock(return_value=existing_user)

        await provider.authenticate("abc123")

        user_service.get_user_by_email.assert_awaited_once_with("b@x")


@pytest.mark.unit
class TestAuthenticateProvisioning:
    """Test first-login provisioning"""

    @pytest.mark.asyncio
    async def test_new_user_provisioned(
        self, provider, github_api, user_service, organization_service, session
    ):
        """Happy path: code def456 for an unknown email creates organization and user"""
        user = await provider.authenticate("def456")

        assert user.name == "newdev"
        assert user.email == "new@y.com"
        assert user.hashed_password == "$2b$12$hashed"
        assert user.sso_provider == "github"
        assert user.sso_subject_id == "4242"

        organization_service.create_organization.assert_awaited_once()
        organization = organization_service.create_organization.await_args.args[0]
        assert organization.name == "org-0123456789ab"
        assert user.organization_id == organization.id

        user_service.hash_user_password.assert_called_once_with("random-password")
        user_service.create_user.assert_awaited_once()
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_login_falls_back_to_placeholder(self, provider, github_api):
        """Edge case: profile without login gets the N/A name"""
        github_api.get_user.return_value = ProviderProfile(id=4242, login=None)

        user = await provider.authenticate("def456")

        assert user.name == UNKNOWN_NAME == "N/A"

    @pytest.mark.asyncio
    async def test_profile_fetch_error_aborts_before_writes(
        self, provider, github_api, organization_service, user_service
    ):
        github_api.get_user.side_effect = ProfileFetchError("boom")

        with pytest.raises(ProfileFetchError):
            await provider.authenticate("def456")

        organization_service.create_organization.assert_not_awaited()
        user_service.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_organization_failure_creates_no_user(
        self, provider, github_api, organization_service, user_service, session
    ):
        organization_service.create_organization.side_effect = DirectoryError("db down")

        with pytest.raises(DirectoryError):
            await provider.authenticate("def456")

        user_service.hash_user_password.assert_not_called()
        user_service.create_user.assert_not_awaited()
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hashing_failure_rolls_back_organization(
        self, provider, github_api, user_service, session
    ):
        """Organization staged before the hash failure is not committed"""
        user_service.hash_user_password.side_effect = HashingError("bad input")

        with pytest.raises(HashingError):
            await provider.authenticate("def456")

        user_service.create_user.assert_not_awaited()
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_user_creation_failure_rolls_back(self, provider, github_api, user_service, session):
        user_service.create_user.side_effect = DirectoryError("write failed")

        with pytest.raises(DirectoryError):
            await provider.authenticate("def456")

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_creation_returns_winner(
        self, provider, github_api, user_service, session, existing_user
    ):
        """A concurrent first login committed the same email: its row is returned"""
        existing_user.email = "new@y.com"
        user_service.get_user_by_email = AsyncMock(
            side_effect=[UserNotFoundError("new@y.com"), existing_user]
        )
        user_service.create_user.side_effect = UserAlreadyExistsError("duplicate")

        user = await provider.authenticate("def456")

        assert user is existing_user
        assert user_service.get_user_by_email.await_count == 2
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_conflict_without_winner_is_directory_error(self, provider, github_api, user_service):
        user_service.get_user_by_email = AsyncMock(side_effect=UserNotFoundError("new@y.com"))
        user_service.create_user.side_effect = UserAlreadyExistsError("duplicate")

        with pytest.raises(DirectoryError, match="conflict"):
            await provider.authenticate("def456")


@pytest.mark.unit
class TestAuthenticateFailures:
    """Test failure short-circuiting"""

    @pytest.mark.asyncio
    async def test_token_exchange_failure_short_circuits(
        self, provider, oauth_client, github_api, user_service, organization_service
    ):
        """Bad input: rejected code touches neither GitHub API nor directories"""
        oauth_client.exchange_code.side_effect = TokenExchangeError("bad_verification_code")

        with pytest.raises(TokenExchangeError):
            await provider.authenticate("expired")

        github_api.client_class.assert_not_called()
        github_api.list_emails.assert_not_awaited()
        user_service.get_user_by_email.assert_not_awaited()
        organization_service.create_organization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_email_fetch_failure_propagates(self, provider, github_api, user_service):
        github_api.list_emails.side_effect = ProfileFetchError("401")

        with pytest.raises(ProfileFetchError):
            await provider.authenticate("abc123")

        user_service.get_user_by_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_error_propagates_without_provisioning(
        self, provider, github_api, user_service, organization_service
    ):
        """A genuine directory failure is not mistaken for 'not found'"""
        user_service.get_user_by_email = AsyncMock(side_effect=DirectoryError("connection lost"))

        with pytest.raises(DirectoryError, match="connection lost"):
            await provider.authenticate("abc123")

        github_api.get_user.assert_not_awaited()
        organization_service.create_organization.assert_not_awaited()
        user_service.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_primary_email_skips_lookup(self, provider, github_api, user_service):
        github_api.list_emails.return_value = [ProviderEmail(email="a@x", primary=False)]

        with pytest.raises(NoPrimaryEmailError):
            await provider.authenticate("abc123")

        user_service.get_user_by_email.assert_not_awaited()


@pytest.mark.unit
def test_login_url_delegates_to_oauth_client(provider, oauth_client):
    oauth_client.get_authorization_url.return_value = "https://github.com/login/oauth/authorize?state=s"

    assert provider.get_login_url("s") == "https://github.com/login/oauth/authorize?state=s"
    oauth_client.get_authorization_url.assert_called_once_with("s")
