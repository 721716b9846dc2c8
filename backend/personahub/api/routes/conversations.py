"""Conversation history."""

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.conversations import ConversationCreate, ConversationResponse, ConversationUpdate
from personahub.core.auth import Principal, ensure_self_or, require_auth, require_permission
from personahub.core.exceptions import NotFoundError
from personahub.db.base import get_session
from personahub.db.models import AIConfig, Conversation
from personahub.domain.permissions import Permission
from personahub.services.user_service import get_user

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/conversations")


def _dump_messages(messages) -> list[dict]:
    return [m.model_dump(by_alias=True, exclude_none=True) for m in messages]


async def _owned_conversation(session: AsyncSession, principal: Principal, conversation_id: int) -> Conversation:
    conversation = await session.get(Conversation, conversation_id)
    if conversation is None:
        raise NotFoundError("conversation.not_found")
    ensure_self_or(principal, conversation.user_id, Permission.CONVERSATIONS)
    return conversation


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    user_id: int | None = Query(None, alias="userId"),
    session: AsyncSession = Depends(get_session),
):
    if user_id is None:
        return []
    result = await session.execute(
        select(Conversation)
        .where(Conversation.user_id == user_id)
        .order_by(Conversation.start_time.desc(), Conversation.id.desc())
    )
    return result.scalars().all()


@router.post("", response_model=ConversationResponse, status_code=201)
async def create_conversation(body: ConversationCreate, session: AsyncSession = Depends(get_session)):
    user = await get_user(session, body.user_id)
    if await session.get(AIConfig, body.ai_config_id) is None:
        raise NotFoundError("ai.not_found")

    conversation = Conversation(
        user_id=user.id,
        user_name=user.name,
        ai_config_id=body.ai_config_id,
        messages=_dump_messages(body.messages),
    )
    session.add(conversation)
    await session.commit()
    return conversation


@router.get("/all", response_model=list[ConversationResponse])
async def list_all_conversations(
    _: Principal = Depends(require_permission(Permission.CONVERSATIONS)),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(select(Conversation).order_by(Conversation.start_time.desc()))
    return result.scalars().all()


@router.put("/{conversation_id}", response_model=ConversationResponse)
async def update_conversation(
    conversation_id: int,
    body: ConversationUpdate,
    principal: Principal = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
):
    """Replace the message list wholesale."""
    conversation = await _owned_conversation(session, principal, conversation_id)
    conversation.messages = _dump_messages(body.messages)
    await session.commit()
    return conversation


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    conversation_id: int,
    principal: Principal = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
):
    conversation = await _owned_conversation(session, principal, conversation_id)
    await session.delete(conversation)
    await session.commit()
    logger.info("conversation_deleted", conversation_id=conversation_id, user_id=principal.user_id)
