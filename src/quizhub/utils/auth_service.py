"""Authentication service.

This module implements the credential flows of the platform: registration,
login, token refresh, logout, profile access, password change and account
activation. It combines a UserManager (storage and hashing) with a
TokenManager (token issuance and verification).
"""

import logging
from typing import Optional

from quizhub.core.exceptions import (
    AuthenticationError,
    BadRequestError,
    NotFoundError,
)
from quizhub.schemas.user import AuthResult, Principal, TokenPair, User, UserPublic
from quizhub.utils.token_manager import TokenManager
from quizhub.utils.user_manager import UserManager

logger = logging.getLogger(__name__)

# Every login failure shares this message so callers cannot tell an unknown
# email from a wrong password or a deactivated account.
INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


class AuthService:
    """Runs the authentication flows on top of the user and token managers."""

    def __init__(self, user_manager: UserManager, token_manager: TokenManager):
        """Initialize AuthService.

        Args:
            user_manager: Request-scoped UserManager.
            token_manager: Shared TokenManager.
        """
        self.users = user_manager
        self.tokens = token_manager

    def register(
        self, email: str, password: str, name: Optional[str] = None
    ) -> AuthResult:
        """Create an account and sign the new user in.

        Raises:
            ConflictError: If the email is already registered.
        """
        user = self.users.create_user(email=email, password=password, name=name)
        return self._auth_result(user)

    def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a fresh token pair.

        Raises:
            AuthenticationError: On unknown email, wrong password or an
                inactive account, always with the same message.
        """
        user = self.users.get_user_by_email(email)
        if user is None:
            # Spend the same bcrypt time as a wrong password would
            self.users.verify_password(password, self.users.dummy_hash())
            logger.info("Login rejected: unknown email")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not self.users.verify_password(password, user.password_hash):
            logger.info("Login rejected for user %s: wrong password", user.user_id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.is_active:
            logger.info("Login rejected for user %s: account inactive", user.user_id)
            raise AuthenticationError(INVALID_CREDENTIALS)

        user = self.users.record_login(user.user_id)
        logger.info("User %s logged in", user.user_id)
        return self._auth_result(user)

    def refresh(self, refresh_token: Optional[str]) -> TokenPair:
        """Exchange a valid refresh token for a new token pair.

        The presented refresh token stays valid until it expires; there is no
        revocation store.

        Raises:
            BadRequestError: If no token was supplied.
            AuthenticationError: If the token does not verify or its user is
                gone or inactive.
        """
        if not refresh_token:
            raise BadRequestError("Refresh token is required")

        verification = self.tokens.verify_refresh(refresh_token)
        if not verification.ok:
            raise AuthenticationError(
                INVALID_REFRESH_TOKEN, reason=verification.failure
            )

        user = self.users.get_user_by_id(verification.claims.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        return self.tokens.issue_pair(user)

    def logout(self, principal: Principal) -> None:
        """Log a logout. Tokens already issued remain valid until expiry."""
        logger.info("User %s logged out", principal.id)

    def get_profile(self, principal: Principal) -> UserPublic:
        return self._require_user(principal.id).to_public()

    def update_profile(self, principal: Principal, name: str) -> UserPublic:
        return self.users.update_profile(principal.id, name).to_public()

    def change_password(
        self, principal: Principal, current_password: str, new_password: str
    ) -> None:
        """Replace the password of the principal's account.

        Raises:
            NotFoundError: If the account no longer exists.
            BadRequestError: If ``current_password`` is wrong. The stored hash
                is left untouched.
        """
        user = self._require_user(principal.id)
        if not self.users.verify_password(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")
        self.users.update_password(user.user_id, new_password)

    def disable_two_factor(self, principal: Principal) -> UserPublic:
        return self.users.set_two_factor_enabled(principal.id, False).to_public()

    def get_user(self, user_id: str) -> UserPublic:
        return self._require_user(user_id).to_public()

    def set_user_active(self, user_id: str, is_active: bool) -> UserPublic:
        return self.users.set_active(user_id, is_active).to_public()

    def _require_user(self, user_id: str) -> User:
        user = self.users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _auth_result(self, user: User) -> AuthResult:
        pair = self.tokens.issue_pair(user)
        return AuthResult(
            user=user.to_public(),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )
