"""User lookup, creation and credential checks."""

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.core.config import get_settings
from personahub.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from personahub.core.security import hash_password, verify_password
from personahub.db.models import Role, User
from personahub.domain.billing import TransactionType
from personahub.domain.permissions import Permission, resolve_permissions
from personahub.services.ledger_service import CoinLedger

logger = structlog.get_logger(__name__)


def user_permissions(user: User) -> frozenset[Permission]:
    return resolve_permissions(user.is_admin, (role.permissions or [] for role in user.roles))


def default_avatar_url(email: str) -> str:
    return f"https://i.pravatar.cc/150?u={email}"


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("user.not_found")
    return user


async def find_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def load_roles(session: AsyncSession, role_ids: list[int]) -> list[Role]:
    if not role_ids:
        return []
    result = await session.execute(select(Role).where(Role.id.in_(role_ids)))
    roles = list(result.scalars().all())
    if len(roles) != len(set(role_ids)):
        raise NotFoundError("role.not_found")
    return roles


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    is_admin: bool = False,
    is_active: bool = True,
    avatar_url: str | None = None,
    role_ids: list[int] | None = None,
) -> User:
    """Create an account with a zero balance.

    Raises ConflictError if the email is taken (case-insensitive).
    """
    email = email.strip().lower()
    if await find_by_email(session, email) is not None:
        raise ConflictError("auth.email_taken")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        avatar_url=avatar_url or default_avatar_url(email),
        is_admin=is_admin,
        is_active=is_active,
        coins=0,
        api_keys={},
    )
    user.roles = await load_roles(session, role_ids or [])
    session.add(user)
    await session.commit()
    logger.info("user_created", user_id=user.id, is_admin=is_admin)
    return user


async def register_user(session: AsyncSession, *, name: str, email: str, password: str) -> User:
    """Public sign-up: a plain account credited with the signup bonus.

    The bonus goes through the ledger so the balance matches the sum of the
    user's transaction rows.
    """
    user = await create_user(session, name=name, email=email, password=password)
    bonus = get_settings().signup_bonus_coins
    if bonus > 0:
        user = await CoinLedger(session).add_coins(
            user.id, bonus, admin_id=None, transaction_type=TransactionType.DAILY
        )
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User:
    """Return the active user matching the credentials.

    Unknown emails and wrong passwords fail the same way, so the response
    does not reveal which emails are registered. A disabled account is only
    reported once its password has been checked.
    """
    user = await find_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("auth.invalid_credentials")
    if not user.is_active:
        raise AuthenticationError("auth.account_disabled")
    return user
