"""Pydantic schemas for chat streaming and conversations."""

from typing import Literal

from pydantic import Field

from personahub.schemas.common import CamelModel
from personahub.domain.providers import ModelProvider


class ChatMessage(CamelModel):
    role: Literal["user", "ai"]
    text: str = ""
    image_url: str | None = None
    timestamp: int | None = None  # epoch milliseconds


class AIConfigPayload(CamelModel):
    """AI config as sent by the chat client.

    An integer id refers to a stored config; anything else is an unsaved draft.
    """

    id: int | str | None = None
    name: str = ""
    model_type: ModelProvider
    model_name: str | None = None
    training_content: str | None = None
    requires_subscription: bool = False


class ChatStreamRequest(CamelModel):
    ai_config: AIConfigPayload
    messages: list[ChatMessage] = Field(min_length=1)
    user_id: int | None = None
    conversation_id: int | None = None
    # Echo of the guestToken from the done event that started a guest conversation
    guest_token: str | None = Field(None, max_length=64)
