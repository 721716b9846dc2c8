"""API-specific test fixtures.

Requests go through httpx.AsyncClient with an ASGITransport, so the app runs
in the test's event loop and shares the SQLite database from the root
conftest. The lifespan is not run; Redis and the LLM providers are
replaced through dependency overrides.
"""

import pytest
from fakeredis import FakeAsyncRedis
from httpx import ASGITransport, AsyncClient

from personahub.core.exceptions import UpstreamProviderError
from personahub.core.security import create_access_token
from personahub.db.redis import get_redis
from personahub.services.providers import get_provider_registry


class StubProviders:
    """Replays canned chunks instead of calling an LLM."""

    def __init__(self):
        self.chunks: list[str] = ["Xin ", "chào"]
        self.error: UpstreamProviderError | None = None
        self.models: list[str] = ["gpt-4o", "gpt-4o-mini"]
        self.calls: list[dict] = []

    async def stream(self, provider, model_name, system_prompt, history, api_key):
        self.calls.append({"provider": provider, "api_key": api_key, "history": list(history)})
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def list_models(self, provider, api_key):
        self.calls.append({"provider": provider, "api_key": api_key})
        return self.models


@pytest.fixture
async def fake_redis():
    redis = FakeAsyncRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture
def stub_providers() -> StubProviders:
    return StubProviders()


@pytest.fixture
def app(engine, fake_redis, stub_providers):
    from personahub.main import create_app

    app = create_app()
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_provider_registry] = lambda: stub_providers
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def bearer():
    """Authorization header for a user, as issued by /api/login."""

    def _bearer(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, is_admin=user.is_admin)}"}

    return _bearer
