"""Dependency injection module for FastAPI.

This module provides the request-scoped managers and the authentication
guards used by the routes. The principal produced by ``authenticate`` is
passed to handlers as a parameter; nothing is stored on the request.
"""

import logging
from typing import Annotated, Callable, Iterator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from quizhub import config
from quizhub.core.database import get_db
from quizhub.core.exceptions import AuthenticationError, AuthorizationError
from quizhub.schemas.user import Principal, Role
from quizhub.utils.auth_service import AuthService
from quizhub.utils.rate_limiter import AuthRateLimiter
from quizhub.utils.token_manager import TokenFailure, TokenManager
from quizhub.utils.user_manager import UserManager

logger = logging.getLogger(__name__)

INVALID_ACCESS_TOKEN = "Invalid or expired access token"

# Missing or non-bearer headers yield None so the guards can classify them
bearer_scheme = HTTPBearer(auto_error=False)

# Singletons (built once from configuration)
_token_manager_instance: Optional[TokenManager] = None
_auth_rate_limiter_instance: Optional[AuthRateLimiter] = None


def get_token_manager() -> TokenManager:
    """Get TokenManager singleton instance.

    Returns:
        TokenManager built from the JWT settings.

    Raises:
        ConfigurationError: If the signing secrets are not configured.
    """
    global _token_manager_instance
    if _token_manager_instance is None:
        _token_manager_instance = TokenManager(
            access_secret=config.JWT_SECRET,
            refresh_secret=config.JWT_REFRESH_SECRET,
            access_ttl=config.parse_duration(config.JWT_EXPIRES_IN),
            refresh_ttl=config.parse_duration(config.JWT_REFRESH_EXPIRES_IN),
            algorithm=config.JWT_ALGORITHM,
        )
    return _token_manager_instance


def get_user_manager(db: Session = Depends(get_db)) -> UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return UserManager(db)


TokenManagerDep = Annotated[TokenManager, Depends(get_token_manager)]
UserManagerDep = Annotated[UserManager, Depends(get_user_manager)]


def get_auth_service(
    user_manager: UserManagerDep, token_manager: TokenManagerDep
) -> AuthService:
    return AuthService(user_manager, token_manager)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def authenticate(
    token_manager: TokenManagerDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Verify the bearer access token and return its principal.

    Args:
        token_manager: Injected TokenManager.
        credentials: Parsed ``Authorization: Bearer`` header, if any.

    Returns:
        Principal built from the token claims.

    Raises:
        AuthenticationError: If the header is missing or the token is
            expired, malformed or badly signed. The reason is kept internal.
    """
    if credentials is None:
        raise AuthenticationError(INVALID_ACCESS_TOKEN, reason=TokenFailure.MISSING)

    verification = token_manager.verify_access(credentials.credentials)
    if not verification.ok:
        raise AuthenticationError(INVALID_ACCESS_TOKEN, reason=verification.failure)
    return verification.claims.to_principal()


def optional_authenticate(
    token_manager: TokenManagerDep,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Principal]:
    """Like ``authenticate``, but returns None instead of rejecting."""
    if credentials is None:
        return None
    verification = token_manager.verify_access(credentials.credentials)
    if not verification.ok:
        logger.debug("Ignoring unusable token (%s)", verification.failure.value)
        return None
    return verification.claims.to_principal()


PrincipalDep = Annotated[Principal, Depends(authenticate)]
OptionalPrincipalDep = Annotated[Optional[Principal], Depends(optional_authenticate)]


def require_role(*roles: Role) -> Callable[..., Principal]:
    """Build a dependency that only admits principals holding one of ``roles``.

    Args:
        roles: Allowed roles.

    Returns:
        Dependency returning the admitted principal.
    """
    allowed = frozenset(roles)

    def role_guard(principal: OptionalPrincipalDep) -> Principal:
        if principal is None:
            raise AuthenticationError("Authentication required")
        if principal.role not in allowed:
            logger.warning(
                "User %s with role %s denied; requires one of %s",
                principal.id,
                principal.role.value,
                sorted(role.value for role in allowed),
            )
            raise AuthorizationError("Insufficient permissions")
        return principal

    return role_guard


AdminDep = Annotated[Principal, Depends(require_role(Role.ADMIN))]


def get_auth_rate_limiter() -> AuthRateLimiter:
    """Get the AuthRateLimiter singleton, shared by all credential routes."""
    global _auth_rate_limiter_instance
    if _auth_rate_limiter_instance is None:
        _auth_rate_limiter_instance = AuthRateLimiter(config.AUTH_RATE_LIMIT)
    return _auth_rate_limiter_instance


AuthRateLimiterDep = Annotated[AuthRateLimiter, Depends(get_auth_rate_limiter)]


def limit_auth_attempts(request: Request, limiter: AuthRateLimiterDep) -> Iterator[None]:
    """Reject clients over their failed-attempt allowance.

    A request counts against the client only if the handler raises; any
    error response (bad credentials, conflict, validation) is a failure.

    Raises:
        TooManyRequestsError: If the client is already over the limit.
    """
    client = request.client.host if request.client else "unknown"
    limiter.check(client)
    try:
        yield
    except Exception:
        limiter.record_failure(client)
        raise
