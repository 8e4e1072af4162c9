#!/usr/bin/env python3
"""
KUBECONTEXTS EVENTS - Observer Primitive
----------------------------------------
A small emitter used by the engine ("contexts changed") and by the
subscription registry ("new subscriber"). Listeners are registered with
`event(listener)` and receive a Disposable token to unregister.

Delivery is fire-and-forget: coroutine listeners are scheduled as tasks on
the running loop and never awaited by the code that fired the event.

Author: KubeContexts Team
Date: 2026-10-18
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Generic, List, Set, TypeVar

logger = logging.getLogger("kubecontexts.events")

T = TypeVar("T")


class Disposable:
    """Token returned on listener registration."""

    def __init__(self, on_dispose: Callable[[], None]):
        self._on_dispose = on_dispose
        self._disposed = False

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        self._on_dispose()


class Emitter(Generic[T]):

    def __init__(self):
        self._listeners: List[Callable[..., Any]] = []
        # Strong references so scheduled listener tasks are not collected mid-flight
        self._pending: Set["asyncio.Task[Any]"] = set()

    def event(self, listener: Callable[..., Any]) -> Disposable:
        """Registers a listener and returns its deregistration token."""
        self._listeners.append(listener)

        def _remove():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Disposable(_remove)

    def fire(self, *args: Any):
        for listener in list(self._listeners):
            try:
                result = listener(*args)
            except Exception as e:
                logger.error(f"Listener {listener!r} failed: {e}")
                continue
            if inspect.isawaitable(result):
                self._schedule(result)

    def _schedule(self, awaitable: Any):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (synchronous caller): run the listener to completion here
            asyncio.run(self._guard(awaitable))
            return
        task = loop.create_task(self._guard(awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _guard(self, awaitable: Any):
        try:
            await awaitable
        except Exception as e:
            logger.error(f"Async listener failed: {e}")

    async def drain(self):
        """Waits for scheduled listener tasks. Used by hosts on shutdown and by tests."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._listeners)
