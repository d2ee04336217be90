"""Bounded-concurrency batch execution for LLM extraction calls.

Extraction calls are the expensive, rate-limited part of an ingestion run.
:func:`run_in_batches` caps how many of them are in flight at once by
splitting the work into consecutive fixed-size batches:

1. **Partition** -- items ``[0:n]``, ``[n:2n]``, ... where ``n`` is
   ``max_concurrent``.
2. **Fan out** -- every call in a batch runs concurrently via
   ``asyncio.gather(..., return_exceptions=True)``.
3. **Barrier** -- the next batch starts only after every call in the
   current one has resolved (success, failure, or timeout).

Unlike a semaphore-throttled gather, a slow call holds its whole batch
back.  That is the contract: batch N+1 never starts before batch N fully
resolves, which keeps the request pattern against the provider predictable.

Failures are isolated per item.  A raising or timed-out call contributes
``fallback()`` to its slot and is reported through ``on_error``; siblings
and later batches still run.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence, TypeVar

import structlog

from cardsmith.utils.logging import get_logger

_T = TypeVar("_T")
_R = TypeVar("_R")

_logger: structlog.BoundLogger = get_logger(__name__)


def partition(items: Sequence[_T], size: int) -> list[list[_T]]:
    """Split *items* into consecutive batches of at most *size* elements."""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def run_in_batches(
    items: Sequence[_T],
    fn: Callable[[_T], Awaitable[_R]],
    max_concurrent: int,
    *,
    timeout: float | None = None,
    fallback: Callable[[], _R] = list,  # type: ignore[assignment]
    on_error: Callable[[int, BaseException], None] | None = None,
) -> list[_R]:
    """Run ``fn(item)`` for every item, at most *max_concurrent* at a time.

    Parameters
    ----------
    items:
        Work units, e.g. chunks.  Output order matches this order.
    fn:
        Async callable applied to each item.
    max_concurrent:
        Batch size -- the ceiling on simultaneous in-flight calls.
    timeout:
        Optional per-call timeout in seconds.  A timeout is handled exactly
        like an exception raised by *fn*.
    fallback:
        Factory for the value stored in a failed item's slot (default: an
        empty list, matching "no questions from this chunk").
    on_error:
        Optional ``(index, exception)`` callback invoked for each failure.

    Returns
    -------
    list
        One result per input item, stored by index rather than completion
        order.

    Raises
    ------
    ValueError
        If *max_concurrent* is less than 1.
    """
    batches = partition(items, max_concurrent)
    results: list[_R] = []

    async def _call(item: _T) -> _R:
        if timeout is None:
            return await fn(item)
        return await asyncio.wait_for(fn(item), timeout=timeout)

    offset = 0
    for batch_number, batch in enumerate(batches, start=1):
        raw = await asyncio.gather(*(_call(item) for item in batch), return_exceptions=True)

        failures = 0
        for position, outcome in enumerate(raw):
            index = offset + position
            if isinstance(outcome, BaseException):
                # CancelledError means the whole run is being torn down.
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                failures += 1
                _logger.warning(
                    "batch_item_failed",
                    index=index,
                    batch=batch_number,
                    error_type=type(outcome).__name__,
                    error=str(outcome) or type(outcome).__name__,
                )
                if on_error is not None:
                    on_error(index, outcome)
                results.append(fallback())
            else:
                results.append(outcome)

        _logger.debug(
            "batch_complete",
            batch=batch_number,
            total_batches=len(batches),
            size=len(batch),
            failures=failures,
        )
        offset += len(batch)

    return results
