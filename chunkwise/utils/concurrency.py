"""Bounded fan-out over vector-index namespaces.

Ingestion runs strictly one batch at a time.  The only concurrent backend
traffic is read-only per-namespace work (counting vectors for
``total_vectors``), which goes through :func:`map_namespaces` so an index
with many namespaces never sees more than ``fan_out`` requests at once.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

_T = TypeVar("_T")

DEFAULT_FAN_OUT = 8


async def map_namespaces(
    namespaces: list[str],
    operation: Callable[[str], Awaitable[_T]],
    fan_out: int = DEFAULT_FAN_OUT,
) -> dict[str, _T | BaseException]:
    """Run *operation* once per namespace with at most *fan_out* in flight.

    Parameters
    ----------
    namespaces:
        Namespace names; duplicates are run once.
    operation:
        Coroutine function taking a namespace name.
    fan_out:
        Concurrency limit, raised to 1 when smaller.

    Returns
    -------
    dict[str, _T | BaseException]
        Result per namespace, in input order.  A failing namespace maps
        to its exception instead of aborting the others.
    """
    unique = list(dict.fromkeys(namespaces))
    semaphore = asyncio.Semaphore(max(1, fan_out))

    async def _run(namespace: str) -> _T:
        async with semaphore:
            return await operation(namespace)

    results = await asyncio.gather(*(_run(ns) for ns in unique), return_exceptions=True)
    return dict(zip(unique, results))
