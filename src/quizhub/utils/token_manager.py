"""Token management utilities.

This module issues signed access/refresh token pairs and verifies them.
Verification never raises for a bad token: it returns a TokenVerification
whose ``failure`` tells the caller why the token was rejected.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

import pytz
from jose import ExpiredSignatureError, JWTError, jwt

from quizhub.core.exceptions import ConfigurationError
from quizhub.schemas.user import Principal, Role, TokenPair, User

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenFailure(str, Enum):
    """Why a token was rejected."""

    MISSING = "missing"
    EXPIRED = "expired"
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by both token kinds."""

    user_id: str
    email: str
    role: Role

    def to_principal(self) -> Principal:
        return Principal(id=self.user_id, email=self.email, role=self.role)


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying a token: claims on success, a failure otherwise."""

    claims: Optional[TokenClaims] = None
    failure: Optional[TokenFailure] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None

    @classmethod
    def rejected(cls, failure: TokenFailure) -> "TokenVerification":
        return cls(failure=failure)


class TokenManager:
    """Signs and verifies JWT access and refresh tokens."""

    def __init__(
        self,
        access_secret: Optional[str],
        refresh_secret: Optional[str],
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ):
        """Initialize TokenManager.

        Args:
            access_secret: Secret for signing access tokens.
            refresh_secret: Secret for signing refresh tokens.
            access_ttl: Lifetime of access tokens.
            refresh_ttl: Lifetime of refresh tokens.
            algorithm: JWT signing algorithm.

        Raises:
            ConfigurationError: If a secret is missing, or both are the same.
        """
        if not access_secret or not refresh_secret:
            raise ConfigurationError("Access and refresh token secrets must be set")
        if access_secret == refresh_secret:
            raise ConfigurationError(
                "Access and refresh tokens must use different secrets"
            )
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm

    def issue_pair(self, user: User) -> TokenPair:
        """Issue a fresh access/refresh token pair for a user.

        Args:
            user: The user the tokens are bound to.

        Returns:
            TokenPair with both encoded tokens.
        """
        claims = TokenClaims(user_id=user.user_id, email=user.email, role=user.role)
        return TokenPair(
            access_token=self._sign(
                claims, ACCESS_TOKEN_TYPE, self._access_secret, self.access_ttl
            ),
            refresh_token=self._sign(
                claims, REFRESH_TOKEN_TYPE, self._refresh_secret, self.refresh_ttl
            ),
        )

    def verify_access(self, token: Optional[str]) -> TokenVerification:
        return self._verify(token, ACCESS_TOKEN_TYPE, self._access_secret)

    def verify_refresh(self, token: Optional[str]) -> TokenVerification:
        return self._verify(token, REFRESH_TOKEN_TYPE, self._refresh_secret)

    def _sign(
        self, claims: TokenClaims, token_type: str, secret: str, ttl: timedelta
    ) -> str:
        now = datetime.now(pytz.utc)
        payload = {
            "userId": claims.user_id,
            "email": claims.email,
            "role": claims.role.value,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _verify(
        self, token: Optional[str], token_type: str, secret: str
    ) -> TokenVerification:
        if not token:
            return TokenVerification.rejected(TokenFailure.MISSING)

        # Structure first, so garbage is told apart from a forged signature
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            return TokenVerification.rejected(TokenFailure.MALFORMED)

        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return TokenVerification.rejected(TokenFailure.EXPIRED)
        except JWTError:
            return TokenVerification.rejected(TokenFailure.SIGNATURE_INVALID)

        if payload.get("type") != token_type:
            return TokenVerification.rejected(TokenFailure.MALFORMED)

        user_id = payload.get("userId")
        email = payload.get("email")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            return TokenVerification.rejected(TokenFailure.MALFORMED)
        if not user_id or not email:
            return TokenVerification.rejected(TokenFailure.MALFORMED)

        return TokenVerification(
            claims=TokenClaims(user_id=user_id, email=email, role=role)
        )
