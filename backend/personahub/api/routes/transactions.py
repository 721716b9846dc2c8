"""Coin transaction history and manual top-ups."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from personahub.api.schemas.billing import ManualTopUpRequest, TransactionResponse
from personahub.api.schemas.users import UserResponse
from personahub.core.auth import Principal, ensure_self_or, require_auth, require_permission
from personahub.core.exceptions import ValidationError
from personahub.db.base import get_session
from personahub.db.models import Transaction, User
from personahub.domain.entitlements import ensure_utc
from personahub.domain.permissions import Permission
from personahub.services.ledger_service import CoinLedger

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/transactions")

_Admin = aliased(User)


async def _list_transactions(session: AsyncSession, user_id: int | None = None) -> list[TransactionResponse]:
    query = (
        select(Transaction, User.name.label("user_name"), _Admin.name.label("admin_name"))
        .outerjoin(User, Transaction.user_id == User.id)
        .outerjoin(_Admin, Transaction.admin_id == _Admin.id)
        .order_by(Transaction.timestamp.desc(), Transaction.id.desc())
    )
    if user_id is not None:
        query = query.where(Transaction.user_id == user_id)

    rows = await session.execute(query)
    return [
        TransactionResponse(
            id=tx.id,
            user_id=tx.user_id,
            user_name=user_name,
            admin_id=tx.admin_id,
            admin_name=admin_name,
            coins=tx.coins,
            type=tx.type,
            timestamp=ensure_utc(tx.timestamp),
        )
        for tx, user_name, admin_name in rows
    ]


@router.get("", response_model=list[TransactionResponse])
async def list_transactions(
    _: Principal = Depends(require_permission(Permission.USER_BILLING)),
    session: AsyncSession = Depends(get_session),
):
    return await _list_transactions(session)


@router.get("/user/{user_id}", response_model=list[TransactionResponse])
async def list_user_transactions(
    user_id: int,
    principal: Principal = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
):
    ensure_self_or(principal, user_id, Permission.USER_BILLING)
    return await _list_transactions(session, user_id)


@router.post("/manual", response_model=UserResponse)
async def manual_top_up(
    body: ManualTopUpRequest,
    principal: Principal = Depends(require_permission(Permission.MANUAL_BILLING)),
    session: AsyncSession = Depends(get_session),
):
    """Grant (or, with a negative delta, remove) coins by hand."""
    if body.coins == 0:
        raise ValidationError()

    user = await CoinLedger(session).add_coins(body.user_id, body.coins, admin_id=principal.user_id)
    return UserResponse.from_user(user)
