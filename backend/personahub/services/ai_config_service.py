"""AIConfigService: which AI configs a user may chat with or manage."""

from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.db.models import AIConfig, User
from personahub.domain.entitlements import Viewer, visible_configs
from personahub.domain.permissions import ManageScope, ai_manage_scope
from personahub.services.subscription_service import SubscriptionManager
from personahub.services.user_service import user_permissions


class AIConfigService:
    """Database side of the visibility rules in ``domain.entitlements``.

    Queries narrow the candidate set; the pure rules make the final call.
    Results are always sorted by name and never cached.
    """

    async def visible(
        self,
        session: AsyncSession,
        user: User | None,
        now: datetime | None = None,
    ) -> list[AIConfig]:
        """AI configs the user (or a guest, when ``user`` is None) may use."""
        if user is None:
            viewer = None
            query = select(AIConfig).where(
                AIConfig.is_public.is_(True),
                AIConfig.is_trial_allowed.is_(True),
                AIConfig.requires_subscription.is_(False),
            )
        else:
            viewer = Viewer(
                user_id=user.id,
                subscribed=SubscriptionManager.has_active_subscription(user, now),
            )
            query = select(AIConfig).where(
                or_(AIConfig.is_public.is_(True), AIConfig.owner_id == user.id)
            )

        result = await session.execute(query.order_by(AIConfig.name))
        return visible_configs(viewer, result.scalars().all())

    async def manageable(self, session: AsyncSession, user: User) -> list[AIConfig]:
        """AI configs shown in the back-office: all for admins, own ones for AI managers."""
        scope = ai_manage_scope(user.is_admin, user_permissions(user))
        if scope is ManageScope.NONE:
            return []

        query = select(AIConfig).order_by(AIConfig.name)
        if scope is ManageScope.OWN:
            query = query.where(AIConfig.owner_id == user.id)

        result = await session.execute(query)
        return list(result.scalars().all())

    def can_edit(self, user: User, config: AIConfig) -> bool:
        scope = ai_manage_scope(user.is_admin, user_permissions(user))
        if scope is ManageScope.ALL:
            return True
        return scope is ManageScope.OWN and config.owner_id == user.id
