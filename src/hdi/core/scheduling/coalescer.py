"""Coalesces analysis requests so each subject has at most one pass in flight.

A request that arrives while a pass is running does not start a second pass.
It replaces the pending work, and when the running pass finishes one more pass
runs with the freshest request. Every caller that joined receives the result
of that final pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Slot:
    future: asyncio.Future
    pending: Callable[[], Any] | None
    waiters: int = 0


@dataclass
class CoalescerStats:
    passes: int = 0
    coalesced: int = 0
    in_flight: set[str] = field(default_factory=set)


class AnalysisCoalescer(Generic[T]):
    """Single-flight runner keyed by subject.

    ``compute`` is a blocking callable; it runs in a worker thread via
    ``asyncio.to_thread`` so the event loop keeps serving other requests.

    Usage::

        coalescer = AnalysisCoalescer()
        result = await coalescer.run("diary", partial(engine.analyze, events, observations, as_of=today))
    """

    def __init__(self) -> None:
        self._slots: dict[str, _Slot] = {}
        self._stats = CoalescerStats()

    @property
    def stats(self) -> CoalescerStats:
        return CoalescerStats(
            passes=self._stats.passes,
            coalesced=self._stats.coalesced,
            in_flight=set(self._slots),
        )

    def is_running(self, subject: str) -> bool:
        return subject in self._slots

    async def run(self, subject: str, compute: Callable[[], T]) -> T:
        """Run ``compute`` for ``subject``, or join the pass already in flight."""
        slot = self._slots.get(subject)
        if slot is not None:
            slot.pending = compute
            slot.waiters += 1
            self._stats.coalesced += 1
            logger.debug("Coalesced analysis request for %s", subject)
            # A cancelled waiter must not cancel the shared pass.
            return await asyncio.shield(slot.future)

        slot = _Slot(future=asyncio.get_running_loop().create_future(), pending=compute)
        self._slots[subject] = slot
        try:
            result = await self._drain(subject, slot)
        except Exception as exc:
            slot.future.set_exception(exc)
            if not slot.waiters:
                slot.future.exception()
            raise
        else:
            slot.future.set_result(result)
            return result
        finally:
            if not slot.future.done():
                slot.future.cancel()
            del self._slots[subject]

    async def _drain(self, subject: str, slot: _Slot) -> T:
        result: T | None = None
        while slot.pending is not None:
            job, slot.pending = slot.pending, None
            result = await asyncio.to_thread(job)
            self._stats.passes += 1
            if slot.pending is not None:
                logger.debug("Re-running analysis for %s with newer request", subject)
        return result  # type: ignore[return-value]
