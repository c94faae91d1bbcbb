import asyncio

import pytest

from flare.cache import TTLCache


@pytest.mark.asyncio
async def test_get_set_delete():
    cache = TTLCache(default_ttl=60)

    await cache.set("flare:a", 1)
    assert await cache.get("flare:a") == 1

    await cache.delete("flare:a")
    assert await cache.get("flare:a") is None
    # Deleting a missing key is fine
    await cache.delete("flare:a")


@pytest.mark.asyncio
async def test_entries_expire():
    cache = TTLCache(default_ttl=0.05)

    await cache.set("flare:a", 1)
    await asyncio.sleep(0.1)

    assert await cache.get("flare:a") is None
    assert cache.size() == 0


@pytest.mark.asyncio
async def test_lru_eviction():
    cache = TTLCache(default_ttl=60, max_size=2)

    await cache.set("a", 1)
    await cache.set("b", 2)
    await cache.get("a")
    await cache.set("c", 3)

    assert await cache.get("a") == 1
    assert await cache.get("b") is None
    assert await cache.get("c") == 3
