"""User service for registration, login and account maintenance."""

import logging
import uuid

from werkzeug.security import check_password_hash, generate_password_hash

from canteen_ordering_service.clock import Clock, utc_now
from canteen_ordering_service.exceptions import (
    AuthenticationError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from canteen_ordering_service.models.user_models import Role, User
from canteen_ordering_service.repositories.catalog_repositories import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class UserService:
    """Service for the identity store.

    Passwords are only ever held as salted hashes; login verifies against the
    hash and never compares plaintext.
    """

    def __init__(self, user_repository: UserRepository, clock: Clock = utc_now) -> None:
        """Initialize the UserService.

        Args:
            user_repository: Repository for user records
            clock: Source of the current time
        """
        self.user_repository = user_repository
        self.clock = clock

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID.

        Args:
            user_id: The user ID

        Returns:
            User if found, None otherwise
        """
        return self.user_repository.get_user(user_id)

    async def find_by_email(self, email: str) -> User | None:
        return self.user_repository.find_by_email(email.strip().lower())

    async def register(self, name: str, email: str, password: str) -> User:
        """Register a new account.

        The role is fixed here: ``shop.`` email addresses become sellers,
        everyone else a customer.

        Args:
            name: Display name
            email: Login email (unique, stored lower-case)
            password: Plaintext password, hashed before storage

        Returns:
            The created user

        Raises:
            InvalidArgumentError: If the email is already registered
            PersistenceError: If the user could not be stored
        """
        normalized_email = email.strip().lower()
        if self.user_repository.find_by_email(normalized_email) is not None:
            logger.info(f"Registration rejected, email already in use: {normalized_email}")
            raise InvalidArgumentError("Email already in use")

        user = User(
            user_id=f"usr_{uuid.uuid4().hex[:12]}",
            name=name,
            email=normalized_email,
            password_hash=generate_password_hash(password),
            role=Role.for_email(normalized_email),
            active=True,
            created_at=self.clock(),
        )

        if not self.user_repository.save_user(user):
            raise PersistenceError("Failed to save user")

        logger.info(f"Registered user {user.user_id} with role {user.role.value}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Verify credentials and record the login.

        Args:
            email: Login email
            password: Plaintext password to verify

        Returns:
            The authenticated user with last_login refreshed

        Raises:
            AuthenticationError: If the email is unknown, the password does not
                match, or the account is inactive
        """
        user = self.user_repository.find_by_email(email.strip().lower())
        if user is None or not check_password_hash(user.password_hash, password):
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.active:
            logger.info(f"Login rejected for inactive user {user.user_id}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        user.last_login = self.clock()
        if not self.user_repository.save_user(user):
            logger.warning(f"Failed to record last login for user {user.user_id}")

        return user

    async def update_user(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> User:
        """Update profile fields of a user. The role never changes.

        Raises:
            NotFoundError: If the user does not exist
            InvalidArgumentError: If the new email belongs to another user
            PersistenceError: If the user could not be stored
        """
        user = self.user_repository.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")

        if name is not None:
            user.name = name

        if email is not None:
            normalized_email = email.strip().lower()
            existing = self.user_repository.find_by_email(normalized_email)
            if existing is not None and existing.user_id != user_id:
                raise InvalidArgumentError("Email already in use")
            user.email = normalized_email

        if password is not None:
            user.password_hash = generate_password_hash(password)

        if not self.user_repository.save_user(user):
            raise PersistenceError("Failed to save user")

        return user

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user.

        Returns:
            True if the user existed and was deleted, False otherwise
        """
        if self.user_repository.get_user(user_id) is None:
            return False
        return self.user_repository.delete_user(user_id)
