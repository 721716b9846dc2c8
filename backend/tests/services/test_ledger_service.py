"""Tests for CoinLedger: balance changes and their transaction rows."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from personahub.core.exceptions import InsufficientFundsError, NotFoundError
from personahub.db.models import Transaction, User
from personahub.domain.billing import TransactionType, UnlimitedGrantPolicy
from personahub.services.ledger_service import CoinLedger

pytestmark = pytest.mark.unit

NOW = datetime(2030, 6, 15, 12, 0, 0, tzinfo=UTC)


async def _snapshot(session_factory, user_id: int) -> tuple[int | None, list[Transaction]]:
    """Read balance and ledger rows through a fresh session."""
    async with session_factory() as session:
        user = await session.get(User, user_id)
        result = await session.execute(
            select(Transaction).where(Transaction.user_id == user_id).order_by(Transaction.id)
        )
        return user.coins, list(result.scalars().all())


# ---------------------------------------------------------------------------
# add_coins
# ---------------------------------------------------------------------------


class TestAddCoins:
    async def test_grant_updates_balance_and_appends_row(self, db_session, session_factory, make_user):
        admin = await make_user(is_admin=True, coins=None)
        user = await make_user(coins=10)

        updated = await CoinLedger(db_session).add_coins(user.id, 5, admin_id=admin.id)

        assert updated.coins == 15
        coins, rows = await _snapshot(session_factory, user.id)
        assert coins == 15
        assert [(r.coins, r.type, r.admin_id) for r in rows] == [(5, "manual", admin.id)]

    async def test_debit_below_zero_raises_and_writes_nothing(self, db_session, session_factory, make_user):
        user = await make_user(coins=3)

        with pytest.raises(InsufficientFundsError) as exc_info:
            await CoinLedger(db_session).add_coins(user.id, -4)

        assert exc_info.value.balance == 3
        assert exc_info.value.required == 4
        coins, rows = await _snapshot(session_factory, user.id)
        assert coins == 3
        assert rows == []

    async def test_unknown_user_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await CoinLedger(db_session).add_coins(12345, 10)

    async def test_commit_failure_rolls_back_balance_and_row(self, db_session, session_factory, make_user):
        user = await make_user(coins=10)
        failure = OperationalError("COMMIT", {}, Exception("database is locked"))

        with patch.object(db_session, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(OperationalError):
                await CoinLedger(db_session).add_coins(user.id, 50)

        coins, rows = await _snapshot(session_factory, user.id)
        assert coins == 10
        assert rows == []

    async def test_crypto_type_is_recorded_without_admin(self, db_session, session_factory, make_user):
        user = await make_user(coins=0)

        await CoinLedger(db_session).add_coins(user.id, 100, transaction_type=TransactionType.CRYPTO)

        _, rows = await _snapshot(session_factory, user.id)
        assert [(r.coins, r.type, r.admin_id) for r in rows] == [(100, "crypto", None)]


class TestUnlimitedGrantPolicy:
    async def test_preserve_keeps_unlimited_but_still_audits(self, db_session, session_factory, make_user):
        user = await make_user(coins=None)

        updated = await CoinLedger(db_session, policy=UnlimitedGrantPolicy.PRESERVE).add_coins(user.id, 100)

        assert updated.coins is None
        coins, rows = await _snapshot(session_factory, user.id)
        assert coins is None
        assert [r.coins for r in rows] == [100]

    async def test_finalize_turns_unlimited_into_finite(self, db_session, session_factory, make_user):
        user = await make_user(coins=None)

        updated = await CoinLedger(db_session, policy=UnlimitedGrantPolicy.FINALIZE).add_coins(user.id, 100)

        assert updated.coins == 100
        coins, _ = await _snapshot(session_factory, user.id)
        assert coins == 100

    async def test_preserve_allows_debits_on_unlimited(self, db_session, make_user):
        user = await make_user(coins=None)

        updated = await CoinLedger(db_session, policy=UnlimitedGrantPolicy.PRESERVE).add_coins(user.id, -500)

        assert updated.coins is None


# ---------------------------------------------------------------------------
# deduct_one_coin
# ---------------------------------------------------------------------------


class TestDeductOneCoin:
    async def test_finite_balance_decrements_and_records_payment(self, db_session, session_factory, make_user):
        user = await make_user(coins=2)

        updated = await CoinLedger(db_session).deduct_one_coin(user.id)

        assert updated.coins == 1
        coins, rows = await _snapshot(session_factory, user.id)
        assert coins == 1
        assert [(r.coins, r.type) for r in rows] == [(-1, "payment")]

    async def test_zero_balance_is_a_no_op(self, db_session, session_factory, make_user):
        user = await make_user(coins=0)

        assert await CoinLedger(db_session).deduct_one_coin(user.id) is None

        coins, rows = await _snapshot(session_factory, user.id)
        assert coins == 0
        assert rows == []

    async def test_unlimited_balance_stays_unlimited(self, db_session, session_factory, make_user):
        user = await make_user(coins=None)

        for _ in range(3):
            updated = await CoinLedger(db_session).deduct_one_coin(user.id)
            assert updated.coins is None

        coins, rows = await _snapshot(session_factory, user.id)
        assert coins is None
        assert rows == []

    async def test_never_goes_negative(self, db_session, session_factory, make_user):
        user = await make_user(coins=2)
        ledger = CoinLedger(db_session)

        balances = []
        for _ in range(4):
            updated = await ledger.deduct_one_coin(user.id)
            balances.append(updated.coins if updated is not None else "skipped")

        assert balances == [1, 0, "skipped", "skipped"]
        coins, rows = await _snapshot(session_factory, user.id)
        assert coins == 0
        assert len(rows) == 2

    async def test_unknown_user_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await CoinLedger(db_session).deduct_one_coin(12345)


# ---------------------------------------------------------------------------
# Conservation across every ledger path
# ---------------------------------------------------------------------------


async def test_balance_equals_initial_plus_sum_of_transactions(db_session, session_factory, make_user, make_plan):
    initial = 40
    user = await make_user(coins=initial)
    plan = await make_plan(coin_cost=25, duration_days=30)
    ledger = CoinLedger(db_session)

    await ledger.add_coins(user.id, 60)
    await ledger.deduct_one_coin(user.id)
    await ledger.purchase(user.id, plan.id, now=NOW)
    await ledger.add_coins(user.id, -10)
    with pytest.raises(InsufficientFundsError):
        await ledger.add_coins(user.id, -1000)
    await ledger.deduct_one_coin(user.id)

    coins, rows = await _snapshot(session_factory, user.id)
    assert coins == initial + sum(r.coins for r in rows)
    assert coins == 40 + 60 - 1 - 25 - 10 - 1

    async with session_factory() as session:
        count = await session.scalar(select(func.count(Transaction.id)).where(Transaction.user_id == user.id))
    assert count == 5
