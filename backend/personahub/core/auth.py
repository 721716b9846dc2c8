"""Bearer-token authentication and permission checks for FastAPI."""

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from personahub.core.exceptions import AuthenticationError, AuthorizationError
from personahub.core.security import decode_access_token
from personahub.db.base import get_session_factory
from personahub.db.models import User
from personahub.domain.permissions import Permission
from personahub.services.user_service import user_permissions

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller with its resolved permissions."""

    user_id: int
    is_admin: bool
    permissions: frozenset[Permission]

    def can(self, permission: Permission) -> bool:
        return self.is_admin or permission in self.permissions


async def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> Principal:
    """FastAPI dependency that validates the bearer token and loads the caller.

    Usage::

        @router.get("/protected")
        async def protected(principal: Principal = Depends(require_auth)):
            ...
    """
    if credentials is None:
        raise AuthenticationError("auth.missing_token")

    claims = decode_access_token(credentials.credentials)
    try:
        user_id = int(claims["sub"])
    except ValueError as exc:
        raise AuthenticationError("auth.invalid_token") from exc

    async with get_session_factory()() as session:
        user = await session.get(User, user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("auth.account_disabled")
        permissions = user_permissions(user)

    # Downstream use (error handlers, audit logging)
    request.state.user_id = user.id

    return Principal(user_id=user.id, is_admin=user.is_admin, permissions=permissions)


def require_permission(permission: Permission):
    """Build a dependency that admits admins and holders of ``permission``."""

    async def _require(principal: Principal = Depends(require_auth)) -> Principal:
        if not principal.can(permission):
            raise AuthorizationError(permission=permission.value)
        return principal

    return _require


async def require_admin(principal: Principal = Depends(require_auth)) -> Principal:
    if not principal.is_admin:
        raise AuthorizationError()
    return principal


def ensure_self_or(principal: Principal, user_id: int, permission: Permission) -> None:
    """Allow access to a user's own data, or to holders of ``permission``."""
    if principal.user_id != user_id and not principal.can(permission):
        raise AuthorizationError(permission=permission.value)
