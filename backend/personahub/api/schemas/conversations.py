"""Conversation schemas."""

from datetime import datetime

from personahub.schemas.chat import ChatMessage
from personahub.schemas.common import CamelModel


class ConversationResponse(CamelModel):
    id: int
    user_id: int | None = None
    user_name: str
    ai_config_id: int
    messages: list[ChatMessage]
    start_time: datetime


class ConversationCreate(CamelModel):
    user_id: int
    ai_config_id: int
    messages: list[ChatMessage]


class ConversationUpdate(CamelModel):
    messages: list[ChatMessage]
