"""DashboardService: aggregate counters for the admin back-office."""

from sqlalchemy import desc, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.db.models import AIConfig, Conversation, User
from personahub.domain.entitlements import ensure_utc
from personahub.schemas.dashboard import DashboardStats, RecentConversation, TopAI

TOP_AI_LIMIT = 5
RECENT_CONVERSATION_LIMIT = 5


class DashboardService:
    async def get_stats(self, session: AsyncSession) -> DashboardStats:
        total_users = await session.scalar(select(func.count(User.id)))
        total_ai_configs = await session.scalar(select(func.count(AIConfig.id)))
        total_conversations = await session.scalar(select(func.count(Conversation.id)))
        interacting_users = await session.scalar(
            select(func.count(distinct(Conversation.user_id))).where(Conversation.user_id.is_not(None))
        )

        conversation_count = func.count(Conversation.id).label("conversation_count")
        top_rows = await session.execute(
            select(AIConfig.name, AIConfig.avatar_url, conversation_count)
            .outerjoin(Conversation, Conversation.ai_config_id == AIConfig.id)
            .group_by(AIConfig.id, AIConfig.name, AIConfig.avatar_url)
            .order_by(desc(conversation_count), AIConfig.name)
            .limit(TOP_AI_LIMIT)
        )

        recent_rows = await session.execute(
            select(
                Conversation.id,
                Conversation.user_name,
                Conversation.start_time,
                AIConfig.name.label("ai_name"),
            )
            .join(AIConfig, Conversation.ai_config_id == AIConfig.id)
            .order_by(Conversation.start_time.desc())
            .limit(RECENT_CONVERSATION_LIMIT)
        )

        return DashboardStats(
            total_users=total_users or 0,
            total_ai_configs=total_ai_configs or 0,
            total_conversations=total_conversations or 0,
            interacting_users=interacting_users or 0,
            top_ais=[
                TopAI(name=row.name, avatar_url=row.avatar_url, conversation_count=row.conversation_count)
                for row in top_rows
            ],
            recent_conversations=[
                RecentConversation(
                    id=row.id,
                    user_name=row.user_name,
                    start_time=ensure_utc(row.start_time),
                    ai_name=row.ai_name,
                )
                for row in recent_rows
            ],
        )
