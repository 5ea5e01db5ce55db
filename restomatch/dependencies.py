"""
Authentication and Authorization Dependencies

Request pipeline for private routes:

    get_current_claims   token valid, account exists and is active  -> 401 otherwise
    require_roles(...)   current role in the allowed set            -> 403 otherwise

The account is reloaded on every private request, so a role change or a
deactivation takes effect immediately rather than when the token expires.
Routes declare these before their validated body so authorization always
runs ahead of payload validation.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from restomatch.core.errors import Forbidden, Unauthorized
from restomatch.core.security import Claims, InvalidToken, TokenService, get_token_service
from restomatch.database import get_db
from restomatch.models import User, UserRole

logger = logging.getLogger(__name__)


def _extract_token(x_auth_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
    if x_auth_token:
        return x_auth_token.strip()
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    return None


async def get_current_claims(
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> Claims:
    """
    Verify the session token and return the caller's current identity.

    The role comes from the stored account, not from the token.
    """
    token = _extract_token(x_auth_token, authorization)
    if not token:
        raise Unauthorized()

    try:
        claims = tokens.verify(token)
    except InvalidToken as e:
        logger.debug(f"Rejected token: {e}")
        raise Unauthorized("Token is not valid")

    user = await db.get(User, claims.user_id)
    if user is None or not user.is_active:
        logger.info(f"Token for missing or deactivated user #{claims.user_id} rejected")
        raise Unauthorized("Token is not valid")

    if user.role != claims.role:
        logger.debug(f"User #{user.id} role changed since login: {claims.role.value} -> {user.role.value}")
    return Claims(user_id=user.id, role=user.role)


def require_roles(*allowed: UserRole) -> Callable:
    """
    Build a role gate.

    The returned dependency runs after token verification and passes the
    identity through unchanged when its role is allowed.
    """
    allowed_roles = frozenset(allowed)

    async def role_gate(claims: Claims = Depends(get_current_claims)) -> Claims:
        if claims.role not in allowed_roles:
            logger.info(f"User #{claims.user_id} ({claims.role.value}) denied, needs {sorted(r.value for r in allowed_roles)}")
            raise Forbidden("Access denied - insufficient permissions")
        return claims

    return role_gate


require_staff = require_roles(UserRole.STAFF, UserRole.ADMIN)
require_admin = require_roles(UserRole.ADMIN)
