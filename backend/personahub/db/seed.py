"""Idempotent seed data: pricing plans, system config, default role, admin."""

import structlog
from sqlalchemy import select

from personahub.core.config import get_settings
from personahub.core.security import hash_password
from personahub.db.base import get_session_factory
from personahub.db.models import SYSTEM_CONFIG_ID, PricingPlan, Role, SystemConfig, User
from personahub.domain.permissions import Permission

logger = structlog.get_logger(__name__)

PRICING_PLANS = [
    {
        "name": "Trial",
        "display_price": "Free",
        "coin_cost": 0,
        "duration_days": 7,
        "features": ["Trial AIs", "7 days access"],
    },
    {
        "name": "Monthly",
        "display_price": "50 coins",
        "coin_cost": 50,
        "duration_days": 30,
        "features": ["All public AIs", "30 days access"],
    },
    {
        "name": "Quarterly",
        "display_price": "120 coins",
        "coin_cost": 120,
        "duration_days": 90,
        "features": ["All public AIs", "90 days access", "Save 20%"],
    },
    {
        "name": "Yearly",
        "display_price": "9999 coins",
        "coin_cost": 9999,
        "duration_days": 365,
        "features": ["All public AIs", "365 days access", "Priority support"],
    },
]

DEFAULT_ROLES = [
    {
        "name": "AI Creator",
        "permissions": [Permission.AI.value],
    },
]


async def seed_pricing_plans() -> None:
    """Insert default plans if they don't already exist (matched by name)."""
    factory = get_session_factory()

    async with factory() as session:
        for plan_data in PRICING_PLANS:
            result = await session.execute(select(PricingPlan).where(PricingPlan.name == plan_data["name"]))
            if result.scalar_one_or_none() is None:
                session.add(PricingPlan(**plan_data))

        await session.commit()


async def seed_system_config() -> None:
    """Create the single system-config row, using GROK_API_KEY as the initial Grok key."""
    settings = get_settings()
    factory = get_session_factory()

    async with factory() as session:
        if await session.get(SystemConfig, SYSTEM_CONFIG_ID) is None:
            system_keys = {"grok": settings.grok_api_key} if settings.grok_api_key else {}
            session.add(
                SystemConfig(
                    id=SYSTEM_CONFIG_ID,
                    guest_message_limit=settings.default_guest_message_limit,
                    system_keys=system_keys,
                )
            )
            await session.commit()


async def seed_roles() -> None:
    factory = get_session_factory()

    async with factory() as session:
        for role_data in DEFAULT_ROLES:
            result = await session.execute(select(Role).where(Role.name == role_data["name"]))
            if result.scalar_one_or_none() is None:
                session.add(Role(**role_data))

        await session.commit()


async def seed_admin() -> None:
    """Create the configured admin account (unlimited coins) if missing."""
    settings = get_settings()
    if not settings.admin_email or not settings.admin_password:
        return

    email = settings.admin_email.lower()
    factory = get_session_factory()

    async with factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none() is None:
            session.add(
                User(
                    email=email,
                    password_hash=hash_password(settings.admin_password),
                    name="Admin",
                    is_admin=True,
                    coins=None,
                )
            )
            await session.commit()
            logger.info("admin_seeded", email=email)


async def seed_all() -> None:
    await seed_pricing_plans()
    await seed_system_config()
    await seed_roles()
    await seed_admin()
