"""AI config listing and back-office management."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.ai_configs import AIConfigCreate, AIConfigResponse, AIConfigUpdate, UserRef
from personahub.api.schemas.conversations import ConversationResponse
from personahub.core.auth import Principal, require_permission
from personahub.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from personahub.db.base import get_session
from personahub.db.models import AIConfig, Conversation
from personahub.domain.permissions import Permission
from personahub.services.ai_config_service import AIConfigService
from personahub.services.subscription_service import SubscriptionManager
from personahub.services.user_service import get_user

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/ai-configs")

_service = AIConfigService()

_REQUIRED_FIELDS = {
    "name",
    "model_type",
    "suggested_questions",
    "tags",
    "is_public",
    "is_trial_allowed",
    "requires_subscription",
}


async def _editable_config(session: AsyncSession, principal: Principal, config_id: int) -> AIConfig:
    config = await session.get(AIConfig, config_id)
    if config is None:
        raise NotFoundError("ai.not_found")
    user = await get_user(session, principal.user_id)
    if not _service.can_edit(user, config):
        raise AuthorizationError(permission=Permission.AI.value)
    return config


@router.post("", response_model=list[AIConfigResponse])
async def list_visible(body: UserRef, session: AsyncSession = Depends(get_session)):
    """AIs the caller may chat with. Unknown or missing users get the guest view."""
    user = None
    if body.user_id is not None:
        user = await SubscriptionManager(session).check_status(body.user_id)
    return await _service.visible(session, user)


@router.post("/manageable", response_model=list[AIConfigResponse])
async def list_manageable(body: UserRef, session: AsyncSession = Depends(get_session)):
    if body.user_id is None:
        raise AuthenticationError("auth.missing_token")
    user = await get_user(session, body.user_id)
    return await _service.manageable(session, user)


@router.post("/create", response_model=AIConfigResponse, status_code=201)
async def create_config(
    body: AIConfigCreate,
    principal: Principal = Depends(require_permission(Permission.AI)),
    session: AsyncSession = Depends(get_session),
):
    config = AIConfig(owner_id=principal.user_id, **body.model_dump())
    session.add(config)
    await session.commit()

    logger.info("ai_config_created", ai_config_id=config.id, owner_id=principal.user_id)
    return config


@router.put("/{config_id}", response_model=AIConfigResponse)
async def update_config(
    config_id: int,
    body: AIConfigUpdate,
    principal: Principal = Depends(require_permission(Permission.AI)),
    session: AsyncSession = Depends(get_session),
):
    config = await _editable_config(session, principal, config_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field in _REQUIRED_FIELDS:
            continue
        setattr(config, field, value)
    await session.commit()
    await session.refresh(config)
    return config


@router.delete("/{config_id}", status_code=204)
async def delete_config(
    config_id: int,
    principal: Principal = Depends(require_permission(Permission.AI)),
    session: AsyncSession = Depends(get_session),
):
    config = await _editable_config(session, principal, config_id)
    await session.delete(config)
    await session.commit()
    logger.info("ai_config_deleted", ai_config_id=config_id, user_id=principal.user_id)


@router.post("/{config_id}/latest-conversation", response_model=ConversationResponse | None)
async def latest_conversation(config_id: int, body: UserRef, session: AsyncSession = Depends(get_session)):
    """The user's most recent conversation with this AI, or null."""
    if body.user_id is None:
        raise AuthenticationError("auth.missing_token")

    result = await session.execute(
        select(Conversation)
        .where(Conversation.ai_config_id == config_id, Conversation.user_id == body.user_id)
        .order_by(Conversation.start_time.desc(), Conversation.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
