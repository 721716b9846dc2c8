"""Coin ledger: balance changes and their transaction rows commit together."""

from datetime import datetime

import structlog
from sqlalchemy import case, null, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.core.config import get_settings
from personahub.core.exceptions import InsufficientFundsError, NotFoundError
from personahub.db.models import Transaction, User
from personahub.domain.billing import TransactionType, UnlimitedGrantPolicy, apply_delta

logger = structlog.get_logger(__name__)


class CoinLedger:
    """The only write path for ``User.coins``.

    ``add_coins`` and ``purchase`` lock the user row before the
    read-modify-write; ``deduct_one_coin`` is a single conditional UPDATE.
    """

    def __init__(self, session: AsyncSession, policy: UnlimitedGrantPolicy | None = None):
        self.session = session
        self.policy = policy or UnlimitedGrantPolicy(get_settings().unlimited_grant_policy)

    async def lock_user(self, user_id: int) -> User:
        """Load the user with a row lock held until commit/rollback."""
        result = await self.session.execute(
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("user.not_found")
        return user

    def record(
        self,
        user: User,
        delta: int,
        transaction_type: TransactionType,
        admin_id: int | None = None,
    ) -> None:
        """Apply a delta to a locked user and stage its transaction row.

        Does not commit. Raises InsufficientFundsError if a finite balance
        would go negative.
        """
        new_balance = apply_delta(user.coins, delta, self.policy)
        if new_balance is not None and new_balance < 0:
            raise InsufficientFundsError(balance=user.coins or 0, required=-delta)
        user.coins = new_balance
        self.session.add(
            Transaction(
                user_id=user.id,
                admin_id=admin_id,
                coins=delta,
                type=transaction_type.value,
            )
        )

    async def add_coins(
        self,
        user_id: int,
        delta: int,
        admin_id: int | None = None,
        transaction_type: TransactionType = TransactionType.MANUAL,
    ) -> User:
        """Apply a signed delta and append the transaction row atomically."""
        try:
            user = await self.lock_user(user_id)
            self.record(user, delta, transaction_type, admin_id=admin_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "coins_added",
            user_id=user_id,
            delta=delta,
            admin_id=admin_id,
            transaction_type=transaction_type.value,
            balance=user.coins,
        )
        return user

    async def deduct_one_coin(self, user_id: int) -> User | None:
        """Spend one coin.

        Unlimited balances stay unlimited and write no transaction row.
        Returns None, changing nothing, when the balance is already zero.
        """
        stmt = (
            update(User)
            .where(User.id == user_id, or_(User.coins.is_(None), User.coins > 0))
            .values(coins=case((User.coins.is_(None), null()), else_=User.coins - 1))
            .returning(User.coins)
            .execution_options(synchronize_session=False)
        )
        try:
            row = (await self.session.execute(stmt)).first()
            if row is not None and row.coins is not None:
                self.session.add(
                    Transaction(user_id=user_id, coins=-1, type=TransactionType.PAYMENT.value)
                )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        user = await self.session.get(User, user_id, populate_existing=True)
        if user is None:
            raise NotFoundError("user.not_found")
        if row is None:
            logger.info("coin_deduction_skipped", user_id=user_id, reason="zero_balance")
            return None
        return user

    async def purchase(self, user_id: int, plan_id: int, now: datetime | None = None) -> User:
        """Spend a plan's coin cost on a subscription (see SubscriptionManager.purchase)."""
        from personahub.services.subscription_service import SubscriptionManager

        return await SubscriptionManager(self.session, ledger=self).purchase(user_id, plan_id, now=now)
