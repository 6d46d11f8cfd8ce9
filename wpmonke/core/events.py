"""Run and fixture events for wpmonke.

The runner publishes ``run_started``, ``case_started``, ``case_finished`` and
``run_completed``; each case's lifecycle publishes ``fixtures_ready``,
``fixtures_skipped``, ``cleanup_failed`` and ``cleanup_completed``. Every event
is a dict carrying ``type``, ``run_id`` and ``ts``, plus ``case`` on per-case
events.

Each consumer reads from its own bounded queue::

    queue = events.subscribe()
    ...
    events.unsubscribe(queue)
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Set

MAX_PENDING_EVENTS = 1000


class _EventBus:
    """Fans each published event out to every subscribed queue."""

    def __init__(self) -> None:
        self._subscribers: Set[asyncio.Queue] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=MAX_PENDING_EVENTS)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    async def publish(self, event: Dict[str, Any]) -> None:
        # A subscriber whose queue is full is dropped rather than awaited
        stalled = []
        for q in list(self._subscribers):
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                stalled.append(q)
        for q in stalled:
            self._subscribers.discard(q)


bus = _EventBus()


def subscribe() -> asyncio.Queue:
    return bus.subscribe()


def unsubscribe(queue: asyncio.Queue) -> None:
    bus.unsubscribe(queue)


async def publish(event: Dict[str, Any]) -> None:
    await bus.publish(event)
