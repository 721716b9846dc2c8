"""Chat relay: entitlement checks, API key resolution, streaming, persistence.

``prepare`` runs every check before the SSE response starts, so refusals are
ordinary JSON errors. ``stream`` yields event dicts; the route frames them
as ``data: {...}`` lines.
"""

import hmac
import json
import secrets
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from personahub.core.config import get_settings
from personahub.core.exceptions import (
    AuthenticationError,
    GuestLimitExceededError,
    InsufficientConfigurationError,
    NotFoundError,
    SubscriptionRequiredError,
    UpstreamProviderError,
)
from personahub.core.messages import render
from personahub.db.models import SYSTEM_CONFIG_ID, AIConfig, Conversation, SystemConfig
from personahub.domain.entitlements import exceeds_guest_limit
from personahub.domain.providers import ModelProvider
from personahub.schemas.chat import AIConfigPayload, ChatMessage, ChatStreamRequest
from personahub.services.providers import ProviderRegistry
from personahub.services.subscription_service import SubscriptionManager

logger = structlog.get_logger(__name__)

GUEST_NAME = "Guest"


@dataclass(frozen=True)
class Persona:
    """The parts of an AI config the relay needs."""

    ai_config_id: int | None  # None for unsaved drafts
    provider: ModelProvider
    model_name: str | None
    training_content: str | None
    requires_subscription: bool


@dataclass(frozen=True)
class RelayPlan:
    persona: Persona
    messages: list[ChatMessage]
    api_key: str
    user_id: int | None
    user_name: str
    conversation_id: int | None
    guest_token: str | None = None


def sse_frame(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


class ChatRelay:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], providers: ProviderRegistry):
        self.session_factory = session_factory
        self.providers = providers

    async def _resolve_persona(self, session: AsyncSession, payload: AIConfigPayload) -> Persona:
        """Stored configs are read from the database; drafts are taken as sent."""
        if isinstance(payload.id, int):
            config = await session.get(AIConfig, payload.id)
            if config is None:
                raise NotFoundError("ai.not_found")
            return Persona(
                ai_config_id=config.id,
                provider=ModelProvider(config.model_type),
                model_name=config.model_name,
                training_content=config.training_content,
                requires_subscription=config.requires_subscription,
            )
        return Persona(
            ai_config_id=None,
            provider=payload.model_type,
            model_name=payload.model_name,
            training_content=payload.training_content,
            requires_subscription=payload.requires_subscription,
        )

    async def prepare(self, request: ChatStreamRequest, now: datetime | None = None) -> RelayPlan:
        """Check entitlement and pick the API key for one chat turn.

        Raises:
            AuthenticationError: Unknown or disabled user
            InsufficientConfigurationError: No personal key (users) or system key (guests)
            SubscriptionRequiredError: AI requires a subscription the user lacks
            GuestLimitExceededError: Guest history holds too many user messages
            NotFoundError: Unknown stored AI config
        """
        settings = get_settings()
        async with self.session_factory() as session:
            persona = await self._resolve_persona(session, request.ai_config)
            provider = persona.provider

            if request.user_id is not None:
                manager = SubscriptionManager(session)
                user = await manager.check_status(request.user_id, now=now)
                if user is None or not user.is_active:
                    raise AuthenticationError("auth.account_disabled")

                # Users chat with their own key and are not charged coins
                api_key = (user.api_keys or {}).get(provider.value)
                if not api_key:
                    raise InsufficientConfigurationError("chat.personal_key_missing", provider=provider.label)
                if persona.requires_subscription and not manager.has_active_subscription(user, now):
                    raise SubscriptionRequiredError()
                user_id, user_name = user.id, user.name
            else:
                system_config = await session.get(SystemConfig, SYSTEM_CONFIG_ID)
                limit = (
                    system_config.guest_message_limit
                    if system_config is not None
                    else settings.default_guest_message_limit
                )
                if exceeds_guest_limit(request.messages, limit):
                    raise GuestLimitExceededError(limit=limit)

                system_keys = system_config.system_keys if system_config is not None else {}
                api_key = (system_keys or {}).get(provider.value)
                if not api_key:
                    raise InsufficientConfigurationError("chat.system_key_missing", provider=provider.label)
                user_id, user_name = None, GUEST_NAME

        return RelayPlan(
            persona=persona,
            messages=list(request.messages),
            api_key=api_key,
            user_id=user_id,
            user_name=user_name,
            conversation_id=request.conversation_id,
            guest_token=request.guest_token if user_id is None else None,
        )

    async def stream(self, plan: RelayPlan) -> AsyncIterator[dict]:
        """Forward chunks as they arrive, then persist and report completion.

        Nothing is persisted when the provider fails.
        """
        persona = plan.persona
        chunks: list[str] = []
        try:
            async for chunk in self.providers.stream(
                persona.provider,
                persona.model_name,
                persona.training_content,
                plan.messages,
                plan.api_key,
            ):
                chunks.append(chunk)
                yield {"text": chunk}
        except UpstreamProviderError as exc:
            logger.warning(
                "chat_stream_failed",
                provider=persona.provider.value,
                user_id=plan.user_id,
                message_key=exc.message_key,
            )
            yield {"error": render(exc.message_key, **exc.params)}
            return

        full_response = "".join(chunks)
        try:
            conversation = await self.persist(plan, full_response)
        except SQLAlchemyError:
            logger.error("chat_persist_failed", user_id=plan.user_id, exc_info=True)
            yield {"error": render("chat.persist_failed")}
            return

        conversation_id = conversation.id if conversation is not None else None
        logger.info(
            "chat_turn_completed",
            provider=persona.provider.value,
            user_id=plan.user_id,
            conversation_id=conversation_id,
            response_chars=len(full_response),
        )
        done = {"conversationId": conversation_id, "done": True, "fullResponse": full_response}
        if conversation is not None and conversation.guest_token is not None:
            done["guestToken"] = conversation.guest_token
        yield done

    @staticmethod
    def owns(plan: RelayPlan, conversation: Conversation) -> bool:
        """Whether this turn may continue ``conversation``.

        The conversation must be with the same AI. Users must own it; guests
        must present the token issued when it was created.
        """
        if conversation.ai_config_id != plan.persona.ai_config_id:
            return False
        if plan.user_id is not None:
            return conversation.user_id == plan.user_id
        if conversation.user_id is not None or not conversation.guest_token or not plan.guest_token:
            return False
        return hmac.compare_digest(conversation.guest_token, plan.guest_token)

    async def persist(self, plan: RelayPlan, full_response: str, now: datetime | None = None) -> Conversation | None:
        """Replace the conversation's messages, or start a new conversation.

        A conversation id the caller does not own is ignored and a new
        conversation is started. Drafts are never stored, so their result
        is None.
        """
        now = now or datetime.now(UTC)
        messages = [m.model_dump(by_alias=True, exclude_none=True) for m in plan.messages]
        messages.append({"role": "ai", "text": full_response, "timestamp": int(now.timestamp() * 1000)})

        if plan.persona.ai_config_id is None:
            return None

        async with self.session_factory() as session:
            conversation = None
            if plan.conversation_id is not None:
                conversation = await session.get(Conversation, plan.conversation_id)
                if conversation is not None and not self.owns(plan, conversation):
                    logger.warning(
                        "chat_conversation_not_owned",
                        conversation_id=plan.conversation_id,
                        user_id=plan.user_id,
                    )
                    conversation = None

            if conversation is not None:
                conversation.messages = messages
            else:
                conversation = Conversation(
                    user_id=plan.user_id,
                    user_name=plan.user_name,
                    guest_token=secrets.token_urlsafe(32) if plan.user_id is None else None,
                    ai_config_id=plan.persona.ai_config_id,
                    messages=messages,
                    start_time=now,
                )
                session.add(conversation)

            await session.commit()
            return conversation
