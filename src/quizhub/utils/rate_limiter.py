"""Rate limiting for the credential endpoints.

Only failed attempts are counted: a client that keeps getting its password
wrong is locked out for the rest of the window, while successful logins and
registrations never use up the allowance.
"""

import logging
from typing import Optional

from limits import parse
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter

from quizhub.core.exceptions import ConfigurationError, TooManyRequestsError

logger = logging.getLogger(__name__)

NAMESPACE = "auth"


class AuthRateLimiter:
    """Counts failed authentication attempts per client."""

    def __init__(self, limit: str, storage: Optional[Storage] = None):
        """Initialize AuthRateLimiter.

        Args:
            limit: Rate limit string such as ``5 per 15 minutes``.
            storage: Counter storage; in-process memory by default.

        Raises:
            ConfigurationError: If ``limit`` cannot be parsed.
        """
        try:
            self.limit = parse(limit)
        except ValueError as e:
            raise ConfigurationError(f"Invalid rate limit: {limit!r}") from e
        self.storage = storage or MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self.storage)

    def check(self, client: str) -> None:
        """Reject a client that has used up its failed attempts.

        Raises:
            TooManyRequestsError: If the limit for this window is reached.
        """
        if not self._strategy.test(self.limit, NAMESPACE, client):
            logger.warning("Too many failed authentication attempts from %s", client)
            raise TooManyRequestsError("Too many authentication attempts")

    def record_failure(self, client: str) -> None:
        self._strategy.hit(self.limit, NAMESPACE, client)

    def reset(self) -> None:
        self.storage.reset()
