"""Tests for KeyedLock."""

import asyncio

import pytest

from convoflow.runtime.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_exclusive():
    """Test holders of the same key run one at a time."""
    # Arrange
    locks = KeyedLock()
    events: list[str] = []

    async def worker(name: str):
        async with locks.hold("k"):
            events.append(f"{name}:in")
            await asyncio.sleep(0)
            events.append(f"{name}:out")

    # Act
    await asyncio.gather(worker("a"), worker("b"))

    # Assert
    assert events == ["a:in", "a:out", "b:in", "b:out"]


@pytest.mark.asyncio
async def test_different_keys_do_not_block():
    """Test a held key does not delay another key."""
    locks = KeyedLock()
    release = asyncio.Event()

    async def holder():
        async with locks.hold("slow"):
            await release.wait()

    task = asyncio.create_task(holder())
    await asyncio.sleep(0)

    async with locks.hold("fast"):
        assert locks.locked("slow")
        assert locks.locked("fast")

    release.set()
    await task


@pytest.mark.asyncio
async def test_locks_dropped_when_released():
    """Test idle keys do not accumulate."""
    locks = KeyedLock()

    async with locks.hold(("t", "u", "s")):
        assert len(locks) == 1

    assert len(locks) == 0
    assert not locks.locked(("t", "u", "s"))


@pytest.mark.asyncio
async def test_lock_released_on_error():
    """Test an exception inside the block releases the key."""
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks.hold("k"):
            raise RuntimeError("boom")

    assert len(locks) == 0
