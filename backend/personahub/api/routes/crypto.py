"""Mock crypto top-ups."""

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.billing import CryptoConfirmRequest, CryptoInitiateRequest, CryptoInitiateResponse
from personahub.api.schemas.users import UserResponse
from personahub.db.base import get_session
from personahub.db.redis import get_redis
from personahub.services.crypto_payments import CryptoPaymentStore
from personahub.services.ledger_service import CoinLedger
from personahub.services.user_service import get_user

router = APIRouter(prefix="/crypto")


@router.post("/initiate-coin-purchase", response_model=CryptoInitiateResponse)
async def initiate_coin_purchase(
    body: CryptoInitiateRequest,
    session: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),
):
    await get_user(session, body.user_id)
    payment = await CryptoPaymentStore(redis).initiate(body.user_id, body.coins, body.crypto)
    return CryptoInitiateResponse(
        payment_address=payment.payment_address,
        amount=payment.amount,
        currency=payment.currency,
        transaction_id=payment.transaction_id,
    )


@router.post("/confirm", response_model=UserResponse)
async def confirm_payment(
    body: CryptoConfirmRequest,
    session: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),
):
    """Credit a pending payment. There is no chain check behind this mock."""
    user = await CryptoPaymentStore(redis).confirm(body.user_id, body.transaction_id, CoinLedger(session))
    return UserResponse.from_user(user)
