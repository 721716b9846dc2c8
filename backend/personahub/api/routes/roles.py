"""Role management. Permission tags are validated against the closed enum."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.admin import RoleCreate, RoleResponse, RoleUpdate
from personahub.core.auth import Principal, require_permission
from personahub.core.exceptions import ConflictError, NotFoundError
from personahub.db.base import get_session
from personahub.db.models import Role
from personahub.domain.permissions import Permission

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/roles")

_require_roles = require_permission(Permission.ROLES)


async def _get_role(session: AsyncSession, role_id: int) -> Role:
    role = await session.get(Role, role_id)
    if role is None:
        raise NotFoundError("role.not_found")
    return role


async def _ensure_unique_name(session: AsyncSession, name: str, role_id: int | None = None) -> None:
    existing = await session.scalar(select(Role).where(Role.name == name))
    if existing is not None and existing.id != role_id:
        raise ConflictError()


def _tags(permissions: list[Permission]) -> list[str]:
    return sorted({p.value for p in permissions})


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    _: Principal = Depends(_require_roles),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(select(Role).order_by(Role.name))
    return result.scalars().all()


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    body: RoleCreate,
    principal: Principal = Depends(_require_roles),
    session: AsyncSession = Depends(get_session),
):
    await _ensure_unique_name(session, body.name)
    role = Role(name=body.name, permissions=_tags(body.permissions))
    session.add(role)
    await session.commit()
    logger.info("role_created", role_id=role.id, user_id=principal.user_id)
    return role


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: int,
    body: RoleUpdate,
    _: Principal = Depends(_require_roles),
    session: AsyncSession = Depends(get_session),
):
    role = await _get_role(session, role_id)
    if body.name is not None:
        await _ensure_unique_name(session, body.name, role_id)
        role.name = body.name
    if body.permissions is not None:
        role.permissions = _tags(body.permissions)
    await session.commit()
    return role


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: int,
    principal: Principal = Depends(_require_roles),
    session: AsyncSession = Depends(get_session),
):
    role = await _get_role(session, role_id)
    await session.delete(role)
    await session.commit()
    logger.info("role_deleted", role_id=role_id, user_id=principal.user_id)
