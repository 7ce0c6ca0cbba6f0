"""User management utilities.

This module provides user management functionality including user storage
and password hashing.
"""

import logging
import secrets
from typing import Dict, Optional

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quizhub.config import BCRYPT_ROUNDS
from quizhub.core.exceptions import ConflictError, NotFoundError
from quizhub.models.user import UserModel
from quizhub.schemas.common import utc_now_iso
from quizhub.schemas.user import Role, User, normalize_email
from quizhub.utils.converters import model_to_user, user_to_model

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

# One throwaway hash per cost factor, see UserManager.dummy_hash
_dummy_hashes: Dict[int, str] = {}


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
    return password_bytes


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, rounds: int = BCRYPT_ROUNDS):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            rounds: Bcrypt cost factor used for new hashes.
        """
        self.db = db
        self.rounds = rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        This is deliberately slow; call it from a worker thread, never
        directly on the event loop.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        try:
            return bcrypt.checkpw(
                _password_bytes(plain_password), hashed_password.encode("utf-8")
            )
        except ValueError:
            logger.error("Stored password hash is malformed")
            return False

    def dummy_hash(self) -> str:
        """Hash of a random password at this manager's cost factor.

        Checking a password against it takes as long as a real check, so a
        login for an unknown email costs the same as a wrong password.
        """
        if self.rounds not in _dummy_hashes:
            _dummy_hashes[self.rounds] = self.hash_password(secrets.token_urlsafe(16))
        return _dummy_hashes[self.rounds]

    def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: Role = Role.USER,
    ) -> User:
        """Create a new user.

        Args:
            email: Email address for the new user.
            password: Plain text password.
            name: Optional display name.
            role: User role, USER unless stated otherwise.

        Returns:
            Created User object.

        Raises:
            ConflictError: If the email is already registered.
        """
        email = normalize_email(email)
        if self._get_model_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            password_hash=self.hash_password(password),
            name=name,
            role=role,
        )

        # Two concurrent registrations can both pass the check above; the
        # unique constraint on email decides which one wins.
        try:
            model = user_to_model(user)
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User with this email already exists") from e

        logger.info("Created user %s with role %s", user.user_id, role.value)
        return model_to_user(model)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address.

        Args:
            email: Email to look up; matched case-insensitively.

        Returns:
            User object if found, None otherwise.
        """
        model = self._get_model_by_email(normalize_email(email))
        if model:
            return model_to_user(model)
        return None

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user(model)
        return None

    def record_login(self, user_id: str) -> User:
        """Stamp the last-login time of a user."""
        now = utc_now_iso()
        return self._update(user_id, last_login_at=now, updated_at=now)

    def update_profile(self, user_id: str, name: str) -> User:
        """Update the display name of a user."""
        return self._update(user_id, name=name, updated_at=utc_now_iso())

    def update_password(self, user_id: str, password: str) -> User:
        """Replace the stored hash with a hash of the new password."""
        user = self._update(
            user_id,
            password_hash=self.hash_password(password),
            updated_at=utc_now_iso(),
        )
        logger.info("Password changed for user %s", user_id)
        return user

    def set_two_factor_enabled(self, user_id: str, enabled: bool) -> User:
        return self._update(
            user_id, two_factor_enabled=enabled, updated_at=utc_now_iso()
        )

    def set_active(self, user_id: str, is_active: bool) -> User:
        user = self._update(user_id, is_active=is_active, updated_at=utc_now_iso())
        logger.info("User %s active flag set to %s", user_id, is_active)
        return user

    def _get_model_by_email(self, email: str) -> Optional[UserModel]:
        return self.db.query(UserModel).filter(UserModel.email == email).first()

    def _update(self, user_id: str, **fields) -> User:
        """Apply column updates to a user and commit.

        Raises:
            NotFoundError: If the user does not exist.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if not model:
            raise NotFoundError("User not found")
        for key, value in fields.items():
            setattr(model, key, value)
        self.db.commit()
        self.db.refresh(model)
        return model_to_user(model)
