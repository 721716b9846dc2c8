"""Back-office user management and personal API keys."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.users import ApiKeysUpdate, UserCreate, UserResponse, UserUpdate
from personahub.core.auth import Principal, require_auth, require_permission
from personahub.core.exceptions import AuthorizationError, ConflictError, ValidationError
from personahub.core.security import generate_api_token, hash_password
from personahub.db.base import get_session
from personahub.db.models import Role, User
from personahub.domain.permissions import Permission, resolve_permissions
from personahub.services.user_service import create_user, find_by_email, get_user, load_roles

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users")

_require_users = require_permission(Permission.USERS)


def _guard_escalation(
    principal: Principal,
    *,
    target: User | None = None,
    make_admin: bool = False,
    roles: list[Role] | None = None,
) -> None:
    """Keep non-admin user managers from reaching admin rights.

    They may not touch admin accounts or make anyone admin, and may only
    assign roles whose permissions they hold themselves.
    """
    if principal.is_admin:
        return
    if make_admin or (target is not None and target.is_admin):
        raise AuthorizationError()
    if roles and not resolve_permissions(False, (role.permissions or [] for role in roles)) <= principal.permissions:
        raise AuthorizationError()


@router.get("", response_model=list[UserResponse])
async def list_users(
    _: Principal = Depends(_require_users),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(select(User).order_by(User.id))
    return [UserResponse.from_user(user) for user in result.scalars().all()]


@router.post("", response_model=UserResponse, status_code=201)
async def create_user_account(
    body: UserCreate,
    principal: Principal = Depends(_require_users),
    session: AsyncSession = Depends(get_session),
):
    roles = await load_roles(session, body.role_ids or [])
    _guard_escalation(principal, make_admin=body.is_admin, roles=roles)
    user = await create_user(
        session,
        name=body.name,
        email=body.email,
        password=body.password,
        is_admin=body.is_admin,
        is_active=body.is_active,
        avatar_url=body.avatar_url,
        role_ids=body.role_ids,
    )
    return UserResponse.from_user(user)


# Declared before /{user_id} so "me" is not parsed as an id
@router.put("/me/api-keys", response_model=UserResponse)
async def update_my_api_keys(
    body: ApiKeysUpdate,
    principal: Principal = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
):
    user = await get_user(session, principal.user_id)
    api_keys = dict(user.api_keys or {})
    for provider, key in body.model_dump(exclude_unset=True).items():
        if key:
            api_keys[provider] = key
        else:
            api_keys.pop(provider, None)
    user.api_keys = api_keys
    await session.commit()

    logger.info("api_keys_updated", user_id=user.id, providers=sorted(api_keys))
    return UserResponse.from_user(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    body: UserUpdate,
    principal: Principal = Depends(_require_users),
    session: AsyncSession = Depends(get_session),
):
    user = await get_user(session, user_id)
    changes = body.model_dump(exclude_unset=True)
    roles = await load_roles(session, changes.pop("role_ids") or []) if "role_ids" in changes else None
    _guard_escalation(principal, target=user, make_admin=bool(changes.get("is_admin")), roles=roles)

    if changes.get("email"):
        email = changes.pop("email").strip().lower()
        existing = await find_by_email(session, email)
        if existing is not None and existing.id != user.id:
            raise ConflictError("auth.email_taken")
        user.email = email
    if changes.get("password"):
        user.password_hash = hash_password(changes.pop("password"))
    if roles is not None:
        user.roles = roles

    for field in ("name", "avatar_url", "is_admin", "is_active"):
        value = changes.get(field)
        if value is not None:
            setattr(user, field, value)

    await session.commit()
    logger.info("user_updated", user_id=user.id, admin_id=principal.user_id)
    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    principal: Principal = Depends(_require_users),
    session: AsyncSession = Depends(get_session),
):
    if user_id == principal.user_id:
        raise ValidationError()
    user = await get_user(session, user_id)
    _guard_escalation(principal, target=user)
    await session.delete(user)
    await session.commit()
    logger.info("user_deleted", user_id=user_id, admin_id=principal.user_id)


@router.post("/{user_id}/regenerate-token", response_model=UserResponse)
async def regenerate_token(
    user_id: int,
    principal: Principal = Depends(_require_users),
    session: AsyncSession = Depends(get_session),
):
    user = await get_user(session, user_id)
    _guard_escalation(principal, target=user)
    user.api_token = generate_api_token()
    await session.commit()
    return UserResponse.from_user(user)
