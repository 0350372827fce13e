"""Tests for the AsyncOnce single-flight memo in duckdb_tiles.utils.memo."""

from __future__ import annotations

import asyncio

import pytest

from duckdb_tiles.utils import memo


def test_concurrent_callers_share_one_computation() -> None:
    calls = 0

    async def compute() -> dict[str, int]:
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return {"value": calls}

    async def scenario() -> list[dict[str, int]]:
        once: memo.AsyncOnce[dict[str, int]] = memo.AsyncOnce()
        results = await asyncio.gather(*(once.get(compute) for _ in range(5)))
        results.append(await once.get(compute))
        assert once.done
        return results

    results = asyncio.run(scenario())
    assert calls == 1
    assert all(result is results[0] for result in results)


def test_failure_is_not_cached() -> None:
    attempts = 0

    async def flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("first attempt fails")
        return "ok"

    async def scenario() -> str:
        once: memo.AsyncOnce[str] = memo.AsyncOnce()
        with pytest.raises(RuntimeError):
            await once.get(flaky)
        assert not once.done
        return await once.get(flaky)

    assert asyncio.run(scenario()) == "ok"
    assert attempts == 2
