"""Subscription purchase and lazy expiry.

There is no background sweep: an expired subscription is cleared the next
time ``check_status`` runs for that user (login, chat, AI listing).
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.core.exceptions import InsufficientFundsError, PlanNotFoundError
from personahub.db.models import PricingPlan, User
from personahub.domain.billing import TransactionType, can_cover
from personahub.domain.entitlements import (
    SubscriptionState,
    extended_expiry,
    is_active,
    subscription_state,
)
from personahub.services.ledger_service import CoinLedger

logger = structlog.get_logger(__name__)


class SubscriptionManager:
    """Purchase, expire and query time-boxed subscriptions."""

    def __init__(self, session: AsyncSession, ledger: CoinLedger | None = None):
        self.session = session
        self.ledger = ledger or CoinLedger(session)

    @staticmethod
    def state(user: User, now: datetime | None = None) -> SubscriptionState:
        return subscription_state(user.subscription_plan_id, user.subscription_expires_at, now)

    @classmethod
    def has_active_subscription(cls, user: User, now: datetime | None = None) -> bool:
        """Timed plans before expiry and perpetual plans both count as active."""
        return is_active(cls.state(user, now))

    async def purchase(self, user_id: int, plan_id: int, now: datetime | None = None) -> User:
        """Buy (or renew) a plan.

        Renewing before expiry extends from the current expiry. Unlimited
        balances are not debited and get no transaction row. The debit, the
        transaction row and the subscription fields commit together.

        Args:
            user_id: Buyer
            plan_id: Pricing plan to buy
            now: Current time (for deterministic testing)

        Raises:
            PlanNotFoundError: Unknown or inactive plan
            NotFoundError: Unknown user
            InsufficientFundsError: Finite balance below the plan's coin cost
        """
        now = now or datetime.now(UTC)
        try:
            plan = await self.session.get(PricingPlan, plan_id)
            if plan is None or not plan.is_active:
                raise PlanNotFoundError(plan_id=plan_id)

            user = await self.ledger.lock_user(user_id)
            if not can_cover(user.coins, plan.coin_cost):
                raise InsufficientFundsError(balance=user.coins, required=plan.coin_cost)

            if user.coins is not None:
                self.ledger.record(user, -plan.coin_cost, TransactionType.SUBSCRIPTION)

            user.subscription_plan_id = plan.id
            user.subscription_expires_at = extended_expiry(
                user.subscription_expires_at, plan.duration_days, now
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "subscription_purchased",
            user_id=user_id,
            plan_id=plan_id,
            coin_cost=plan.coin_cost,
            expires_at=user.subscription_expires_at.isoformat() if user.subscription_expires_at else None,
        )
        return user

    async def check_status(self, user_id: int, now: datetime | None = None) -> User | None:
        """Clear an expired subscription and return the user (None if unknown).

        Repeated calls are no-ops. If the clearing write fails, the user is
        returned unchanged rather than blocking the caller.
        """
        now = now or datetime.now(UTC)
        user = await self.session.get(User, user_id)
        if user is None:
            return None
        if self.state(user, now) is not SubscriptionState.EXPIRED:
            return user

        try:
            # Matching on the read expiry leaves a concurrent renewal untouched
            await self.session.execute(
                update(User)
                .where(
                    User.id == user_id,
                    User.subscription_expires_at == user.subscription_expires_at,
                )
                .values(subscription_plan_id=None, subscription_expires_at=None)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.warning("subscription_expiry_failed", user_id=user_id, exc_info=True)
            return await self.session.get(User, user_id, populate_existing=True)

        logger.info("subscription_expired", user_id=user_id)
        return await self.session.get(User, user_id, populate_existing=True)
