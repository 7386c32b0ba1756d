import asyncio

import pytest

from backend.app.core.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_exclusive():
    locks = KeyedLock()
    active = []
    overlap = []

    async def worker(key):
        async with locks.hold(key):
            if key in active:
                overlap.append(key)
            active.append(key)
            await asyncio.sleep(0.01)
            active.remove(key)

    await asyncio.gather(*(worker("a") for _ in range(5)))
    assert overlap == []
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_keys_run_in_parallel():
    locks = KeyedLock()
    inside = asyncio.Event()
    release = asyncio.Event()

    async def hold_a():
        async with locks.hold("a"):
            inside.set()
            await release.wait()

    task = asyncio.create_task(hold_a())
    await inside.wait()
    async with locks.hold("b"):
        assert len(locks) == 2
    release.set()
    await task
    assert len(locks) == 0
