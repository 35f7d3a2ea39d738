"""Unit tests for per-key asyncio locking."""

from __future__ import annotations

import asyncio

import pytest

from proxy.keyed_lock import KeyedLock


@pytest.mark.asyncio
async def test_same_key_sections_do_not_overlap() -> None:
    """Two holders of one key should run one after the other."""
    locks = KeyedLock()
    trace: list[str] = []

    async def _section(name: str) -> None:
        async with locks.hold("example.com/foo"):
            trace.append(f"{name}-start")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            trace.append(f"{name}-end")

    await asyncio.gather(_section("a"), _section("b"))

    assert trace == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_different_keys_run_concurrently() -> None:
    """Holders of different keys should not block each other."""
    locks = KeyedLock()
    inside = asyncio.Event()

    async def _first() -> None:
        async with locks.hold("example.com/one"):
            await asyncio.wait_for(inside.wait(), timeout=1)

    async def _second() -> None:
        async with locks.hold("example.com/two"):
            inside.set()

    await asyncio.gather(_first(), _second())

    assert inside.is_set()


@pytest.mark.asyncio
async def test_idle_locks_are_released() -> None:
    """Locks should be dropped once no task holds or waits on them."""
    locks = KeyedLock()

    async with locks.hold("example.com/foo"):
        assert locks.locked("example.com/foo")

    assert len(locks) == 0
