"""Chat streaming (Server-Sent Events) and provider model listing."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.core.exceptions import InsufficientConfigurationError
from personahub.db.base import get_session, get_session_factory
from personahub.domain.providers import ModelProvider
from personahub.schemas.chat import ChatStreamRequest
from personahub.services.chat_relay import ChatRelay, sse_frame
from personahub.services.providers import ProviderRegistry, get_provider_registry
from personahub.services.user_service import get_user

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_chat_relay(providers: ProviderRegistry = Depends(get_provider_registry)) -> ChatRelay:
    return ChatRelay(get_session_factory(), providers)


@router.post("/chat/stream")
async def chat_stream(body: ChatStreamRequest, relay: ChatRelay = Depends(get_chat_relay)):
    """Relay one chat turn as ``text/event-stream``.

    Entitlement and key checks run first and fail as plain JSON errors.
    Once streaming starts, frames are ``{"text"}`` chunks followed by either
    ``{"conversationId", "done", "fullResponse"}`` or ``{"error"}``.
    """
    plan = await relay.prepare(body)

    async def event_generator():
        async for event in relay.stream(plan):
            yield sse_frame(event)

    return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.get("/models/{provider}", response_model=list[str])
async def list_models(
    provider: ModelProvider,
    user_id: int = Query(..., alias="userId"),
    session: AsyncSession = Depends(get_session),
    providers: ProviderRegistry = Depends(get_provider_registry),
):
    """Model ids reachable with the user's personal key."""
    user = await get_user(session, user_id)
    api_key = (user.api_keys or {}).get(provider.value)
    if not api_key:
        raise InsufficientConfigurationError("chat.personal_key_missing", provider=provider.label)
    return await providers.list_models(provider, api_key)
