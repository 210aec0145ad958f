"""
FastAPI Authentication Dependencies

Shared bearer-token dependencies for every router. The token identifies the
user; the user record (role, verification, active flag) is loaded from
storage on each request so role changes take effect immediately.

The application is expected to expose ``app.state.factory`` with a
``jwt_manager`` and a ``user_repository`` providing ``get_user_by_id``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Header, Request

from core.errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    """Authenticated requester as loaded from storage"""
    id: str
    email: str
    role: str
    full_name: Optional[str] = None
    is_verified: bool = False


def _extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def _load_user(request: Request, token: str) -> CurrentUser:
    factory = request.app.state.factory
    result = factory.jwt_manager.verify_token(token)
    if not result.get("valid"):
        logger.debug(f"Rejected token on {request.url.path}: {result.get('error')}")
        raise AuthenticationError("Invalid or expired token")

    user = await factory.user_repository.get_user_by_id(result["user_id"])
    if user is None or not user.is_active:
        raise AuthenticationError("User not found")

    return CurrentUser(
        id=user.id,
        email=user.email,
        role=getattr(user.role, "value", user.role),
        full_name=user.full_name,
        is_verified=user.is_verified,
    )


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> CurrentUser:
    """
    Authentication dependency: requires a valid bearer token.

    Raises:
        AuthenticationError 401: token missing, invalid or user unknown
    """
    token = _extract_bearer_token(authorization)
    if not token:
        raise AuthenticationError("Authentication token required")
    return await _load_user(request, token)


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentUser]:
    """
    Optional authentication: anonymous callers get None.

    An invalid token is treated as anonymous rather than rejected so public
    endpoints keep working with stale client tokens.
    """
    token = _extract_bearer_token(authorization)
    if not token:
        return None
    try:
        return await _load_user(request, token)
    except AuthenticationError:
        return None


def require_roles(*roles: str) -> Callable:
    """
    Build a dependency that admits only users holding one of ``roles``.

    使用示例：
        @router.post("/drafts")
        async def create_draft(user: CurrentUser = Depends(require_founder)):
            ...
    """
    allowed = set(roles)

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise AuthorizationError(
                f"Access denied. {' or '.join(sorted(r.capitalize() for r in allowed))} role required"
            )
        return user

    return dependency


require_founder = require_roles("founder")
require_investor = require_roles("investor")
require_admin = require_roles("admin")


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_optional_user",
    "require_roles",
    "require_founder",
    "require_investor",
    "require_admin",
]
