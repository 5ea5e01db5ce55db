"""
Credentials and Session Tokens

Password hashing is delegated to passlib (bcrypt), token signing to
python-jose. The token service holds the signing key it was built with;
nothing here reads the environment directly.

Usage:
    from restomatch.core.security import Claims, get_token_service

    tokens = get_token_service()
    token = tokens.issue(Claims(user_id=1, role=UserRole.CLIENT))
    claims = tokens.verify(token)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from restomatch.core.config import get_settings
from restomatch.models import UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


class InvalidToken(Exception):
    """Raised when a token is forged, malformed or expired."""


@dataclass(frozen=True)
class Claims:
    """Identity carried by a session token."""
    user_id: int
    role: UserRole


class TokenService:
    """
    Issues and verifies signed session tokens.

    Attributes:
        secret: Signing key
        algorithm: JWT algorithm (HS256 by default)
        ttl: Default token lifetime
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=24)):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(
        self,
        claims: Claims,
        ttl: Optional[timedelta] = None,
        issued_at: Optional[datetime] = None,
    ) -> str:
        """
        Sign a token for the given identity.

        Args:
            claims: User id and role to embed
            ttl: Lifetime override (defaults to the service ttl)
            issued_at: Issue timestamp (defaults to now, UTC)

        Returns:
            Compact JWT string
        """
        now = issued_at or datetime.now(timezone.utc)
        expires = now + (ttl if ttl is not None else self.ttl)
        payload = {
            "sub": str(claims.user_id),
            "role": claims.role.value,
            "iat": int(now.timestamp()),
            "exp": int(expires.timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """
        Check signature and expiry, then decode the embedded identity.

        Raises:
            InvalidToken: Bad signature, malformed payload or expired token
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidToken(str(e)) from e

        try:
            return Claims(user_id=int(payload["sub"]), role=UserRole(payload["role"]))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken("Malformed token payload") from e


@lru_cache()
def get_token_service() -> TokenService:
    """Token service built once from the process settings."""
    settings = get_settings()
    logger.debug(f"Token service ready ({settings.jwt_algorithm}, {settings.jwt_expire_minutes} min)")
    return TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(minutes=settings.jwt_expire_minutes),
    )
