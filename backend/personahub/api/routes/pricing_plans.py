"""Pricing plan catalog."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.billing import PricingPlanCreate, PricingPlanResponse, PricingPlanUpdate
from personahub.core.auth import Principal, require_permission
from personahub.core.exceptions import NotFoundError
from personahub.db.base import get_session
from personahub.db.models import PricingPlan
from personahub.domain.permissions import Permission

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/pricing-plans")


async def _get_plan(session: AsyncSession, plan_id: int) -> PricingPlan:
    plan = await session.get(PricingPlan, plan_id)
    if plan is None:
        raise NotFoundError("billing.plan_not_found")
    return plan


@router.get("", response_model=list[PricingPlanResponse])
async def list_plans(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(PricingPlan).order_by(PricingPlan.coin_cost, PricingPlan.id))
    return result.scalars().all()


@router.post("", response_model=PricingPlanResponse, status_code=201)
async def create_plan(
    body: PricingPlanCreate,
    principal: Principal = Depends(require_permission(Permission.PRICING)),
    session: AsyncSession = Depends(get_session),
):
    plan = PricingPlan(**body.model_dump())
    session.add(plan)
    await session.commit()
    logger.info("pricing_plan_created", plan_id=plan.id, user_id=principal.user_id)
    return plan


@router.put("/{plan_id}", response_model=PricingPlanResponse)
async def update_plan(
    plan_id: int,
    body: PricingPlanUpdate,
    _: Principal = Depends(require_permission(Permission.PRICING)),
    session: AsyncSession = Depends(get_session),
):
    """Partial update. Sending ``durationDays: null`` makes the plan perpetual."""
    plan = await _get_plan(session, plan_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field != "duration_days":
            continue
        setattr(plan, field, value)
    await session.commit()
    await session.refresh(plan)
    return plan


@router.delete("/{plan_id}", status_code=204)
async def delete_plan(
    plan_id: int,
    principal: Principal = Depends(require_permission(Permission.PRICING)),
    session: AsyncSession = Depends(get_session),
):
    plan = await _get_plan(session, plan_id)
    await session.delete(plan)
    await session.commit()
    logger.info("pricing_plan_deleted", plan_id=plan_id, user_id=principal.user_id)
