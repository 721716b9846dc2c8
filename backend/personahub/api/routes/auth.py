"""Login, registration and the current-user endpoint."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.users import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from personahub.core.auth import Principal, require_auth
from personahub.core.security import create_access_token
from personahub.db.base import get_session
from personahub.services.subscription_service import SubscriptionManager
from personahub.services.user_service import authenticate, get_user, register_user

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, session: AsyncSession = Depends(get_session)):
    """Check credentials, expire a lapsed subscription, issue a bearer token."""
    user = await authenticate(session, body.email, body.password)
    user = await SubscriptionManager(session).check_status(user.id)

    logger.info("user_logged_in", user_id=user.id)
    return LoginResponse(
        **UserResponse.from_user(user).model_dump(),
        access_token=create_access_token(user.id, is_admin=user.is_admin),
    )


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(body: RegisterRequest, session: AsyncSession = Depends(get_session)):
    user = await register_user(session, name=body.name, email=body.email, password=body.password)
    return UserResponse.from_user(user)


@router.get("/me", response_model=UserResponse)
async def me(
    principal: Principal = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
):
    await SubscriptionManager(session).check_status(principal.user_id)
    return UserResponse.from_user(await get_user(session, principal.user_id))
