import json
import pytest
from unittest.mock import AsyncMock

from healthquote.core import redis as redis_module
from healthquote.core.config import settings
from healthquote.utils.idempotency import get_idempotent, set_idempotent


@pytest.fixture
def fake_redis(monkeypatch):
    store = {}
    client = AsyncMock()
    client.get.side_effect = lambda key: store.get(key)

    async def _set(key, value, ex=None):
        store[key] = value

    client.set.side_effect = _set
    monkeypatch.setattr(redis_module, "redis", client)
    return client, store


@pytest.mark.asyncio
async def test_idemp_flow(fake_redis):
    client, store = fake_redis
    assert await get_idempotent(7, "pytest-idemp") is None

    await set_idempotent(7, "pytest-idemp", {"id": 12, "total": "11602.50"})
    assert json.loads(store["idemp:7:pytest-idemp"]) == {"id": 12, "total": "11602.50"}
    assert client.set.await_args.kwargs["ex"] == settings.IDEMPOTENCY_TTL

    assert await get_idempotent(7, "pytest-idemp") == {"id": 12, "total": "11602.50"}


@pytest.mark.asyncio
async def test_keys_are_scoped_per_user(fake_redis):
    await set_idempotent(7, "same-key", {"id": 1})
    assert await get_idempotent(8, "same-key") is None


@pytest.mark.asyncio
async def test_missing_key_skips_redis(fake_redis):
    client, _ = fake_redis
    await set_idempotent(7, "", {"id": 1})
    assert await get_idempotent(7, "") is None
    client.get.assert_not_awaited()
    client.set.assert_not_awaited()


@pytest.mark.asyncio
async def test_without_redis_nothing_is_stored(monkeypatch):
    monkeypatch.setattr(redis_module, "redis", None)
    await set_idempotent(7, "k", {"id": 1})
    assert await get_idempotent(7, "k") is None
