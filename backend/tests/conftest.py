"""Shared test fixtures: a temporary SQLite database and model factories."""

import itertools

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

import personahub.db.base as db_mod
import personahub.db.models  # noqa: F401
from personahub.core.security import hash_password
from personahub.db.base import Base
from personahub.db.models import SYSTEM_CONFIG_ID, AIConfig, PricingPlan, Role, SystemConfig, User

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    """File-backed SQLite engine installed as the global session factory.

    Code under test that calls get_session_factory() shares this database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    db_mod._engine = engine
    db_mod._session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    yield engine

    db_mod._engine = None
    db_mod._session_factory = None
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return db_mod._session_factory


@pytest.fixture
async def db_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Factories (each commits in its own session and returns the detached row)
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(session_factory):
    counter = itertools.count(1)

    async def _make(*, permissions: list[str] | None = None, **overrides) -> User:
        n = next(counter)
        values = {
            "email": f"user{n}@example.com",
            "password_hash": PASSWORD_HASH,
            "name": f"User {n}",
            "coins": 0,
            "api_keys": {},
        }
        values.update(overrides)
        async with session_factory() as session:
            user = User(**values)
            if permissions is not None:
                user.roles = [Role(name=f"role-{n}", permissions=permissions)]
            session.add(user)
            await session.commit()
            return user

    return _make


@pytest.fixture
def make_plan(session_factory):
    async def _make(**overrides) -> PricingPlan:
        values = {"name": "Monthly", "display_price": "50 coins", "coin_cost": 50, "duration_days": 30}
        values.update(overrides)
        async with session_factory() as session:
            plan = PricingPlan(**values)
            session.add(plan)
            await session.commit()
            return plan

    return _make


@pytest.fixture
def make_ai_config(session_factory):
    async def _make(**overrides) -> AIConfig:
        values = {
            "name": "Tutor",
            "model_type": "gemini",
            "training_content": "You are a patient tutor.",
            "is_public": True,
            "is_trial_allowed": False,
            "requires_subscription": False,
        }
        values.update(overrides)
        async with session_factory() as session:
            config = AIConfig(**values)
            session.add(config)
            await session.commit()
            return config

    return _make


@pytest.fixture
def set_system_config(session_factory):
    async def _set(guest_message_limit: int = 10, system_keys: dict | None = None) -> SystemConfig:
        async with session_factory() as session:
            config = await session.get(SystemConfig, SYSTEM_CONFIG_ID)
            if config is None:
                config = SystemConfig(id=SYSTEM_CONFIG_ID)
                session.add(config)
            config.guest_message_limit = guest_message_limit
            config.system_keys = system_keys or {}
            await session.commit()
            return config

    return _set
