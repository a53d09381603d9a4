"""Unit tests for map_namespaces."""

from __future__ import annotations

import asyncio

import pytest

from chunkwise.utils.concurrency import map_namespaces


class TestMapNamespaces:
    @pytest.mark.asyncio
    async def test_results_keyed_in_input_order(self) -> None:
        delays = {"a": 0.02, "b": 0.0, "c": 0.01}

        async def _count(namespace: str) -> int:
            await asyncio.sleep(delays[namespace])
            return len(namespace) * 10

        result = await map_namespaces(["a", "b", "c"], _count)
        assert list(result) == ["a", "b", "c"]
        assert result == {"a": 10, "b": 10, "c": 10}

    @pytest.mark.asyncio
    async def test_respects_fan_out(self) -> None:
        running = 0
        peak = 0

        async def _count(namespace: str) -> int:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return 1

        await map_namespaces([f"ns{i}" for i in range(6)], _count, fan_out=2)
        assert peak == 2

    @pytest.mark.asyncio
    async def test_failure_isolated_per_namespace(self) -> None:
        async def _count(namespace: str) -> int:
            if namespace == "broken":
                raise ValueError("bad")
            return 3

        result = await map_namespaces(["ok", "broken"], _count)
        assert result["ok"] == 3
        assert isinstance(result["broken"], ValueError)

    @pytest.mark.asyncio
    async def test_duplicates_and_zero_fan_out(self) -> None:
        calls: list[str] = []

        async def _count(namespace: str) -> int:
            calls.append(namespace)
            return 1

        result = await map_namespaces(["x", "x", "y"], _count, fan_out=0)
        assert result == {"x": 1, "y": 1}
        assert calls == ["x", "y"]
