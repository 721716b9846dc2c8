from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.core.auth import Principal, require_permission
from personahub.db.base import get_session
from personahub.domain.permissions import Permission
from personahub.schemas.dashboard import DashboardStats
from personahub.services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard")


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    _: Principal = Depends(require_permission(Permission.DASHBOARD)),
    session: AsyncSession = Depends(get_session),
):
    return await DashboardService().get_stats(session)
