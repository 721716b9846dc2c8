"""Pydantic schemas for the admin dashboard."""

from datetime import datetime

from pydantic import Field

from personahub.schemas.common import CamelModel


class TopAI(CamelModel):
    name: str
    avatar_url: str | None = None
    conversation_count: int = Field(..., description="Conversations started with this AI")


class RecentConversation(CamelModel):
    id: int
    user_name: str
    start_time: datetime
    ai_name: str


class DashboardStats(CamelModel):
    """Back-office overview counters."""

    total_users: int
    total_ai_configs: int
    total_conversations: int
    interacting_users: int = Field(..., description="Distinct signed-in users with at least one conversation")
    top_ais: list[TopAI]
    recent_conversations: list[RecentConversation]
