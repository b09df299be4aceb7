"""User directory

Purpose: Look up and create local user accounts

Lookups distinguish "no such user" (UserNotFoundError) from storage
failures (DirectoryError). Writes only add and flush; committing is left to
the caller so organization and user creation can share one transaction.
"""

import logging
import secrets

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from federation_service.core.auth.errors import (
    DirectoryError,
    HashingError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from federation_service.domain.models import User

logger = logging.getLogger(__name__)


class UserService:
    """User storage and password utilities backed by SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        """Initialize user service

        Args:
            session: Database session shared with the organization service
        """
        self.session = session

    async def get_user_by_email(self, email: str) -> User:
        """Get user by email address

        Args:
            email: Email address to search for

        Returns:
            The matching User

        Raises:
            UserNotFoundError: No user has this email
            DirectoryError: The lookup itself failed
        """
        try:
            result = await self.session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise DirectoryError(f"User lookup failed: {e}") from e

        if user is None:
            raise UserNotFoundError(email)
        return user

    async def get_user(self, user_id) -> User:
        """Get user by ID

        Raises:
            UserNotFoundError: No user has this ID
            DirectoryError: The lookup itself failed
        """
        try:
            user = await self.session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user {user_id}: {e}")
            raise DirectoryError(f"User lookup failed: {e}") from e

        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    def create_password(self) -> str:
        """Generate a random password for accounts that never log in with one."""
        return secrets.token_urlsafe(32)

    def hash_user_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Raises:
            HashingError: If bcrypt rejects the input
        """
        try:
            hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
        except (TypeError, ValueError) as e:
            raise HashingError(f"Password hashing failed: {e}") from e
        return hashed.decode("utf-8")

    async def create_user(self, user: User) -> User:
        """Stage a new user in the current transaction.

        Args:
            user: Unsaved User

        Returns:
            The flushed User (id assigned)

        Raises:
            UserAlreadyExistsError: Email is already registered
            DirectoryError: Any other storage failure
        """
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(f"User with email {user.email} already exists")
            raise UserAlreadyExistsError(f"User {user.email} already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to create user {user.email}: {e}")
            raise DirectoryError(f"User creation failed: {e}") from e

        logger.info(f"Created user {user.id} ({user.email}) in organization {user.organization_id}")
        return user
