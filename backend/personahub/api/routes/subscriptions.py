"""Subscription purchase and status."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.billing import PurchaseRequest, SubscriptionStatusResponse
from personahub.api.schemas.users import UserResponse
from personahub.core.exceptions import NotFoundError
from personahub.db.base import get_session
from personahub.domain.entitlements import ensure_utc, is_active
from personahub.services.ledger_service import CoinLedger
from personahub.services.subscription_service import SubscriptionManager

router = APIRouter(prefix="/subscriptions")


@router.post("/purchase", response_model=UserResponse)
async def purchase_subscription(body: PurchaseRequest, session: AsyncSession = Depends(get_session)):
    """Spend coins on a plan. 400 on an unknown plan or insufficient coins."""
    user = await CoinLedger(session).purchase(body.user_id, body.plan_id)
    return UserResponse.from_user(user)


@router.get("/{user_id}/status", response_model=SubscriptionStatusResponse)
async def subscription_status(user_id: int, session: AsyncSession = Depends(get_session)):
    manager = SubscriptionManager(session)
    user = await manager.check_status(user_id)
    if user is None:
        raise NotFoundError("user.not_found")

    state = manager.state(user)
    return SubscriptionStatusResponse(
        user_id=user.id,
        state=state,
        active=is_active(state),
        plan_id=user.subscription_plan_id,
        expires_at=ensure_utc(user.subscription_expires_at),
    )
