"""In-process event bus with synchronous and detached subscribers.

Synchronous handlers run in registration order on the emitter's call
stack; their exceptions propagate to the caller of :meth:`EventBus.emit`.
Detached handlers are scheduled as asyncio tasks and never block the
emitter; their failures are logged and contained.

INVARIANT: A detached handler failure never reaches the emitter or any
other handler.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from cfman.plugins.events import EVENT_PAYLOADS, EventKind

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Any]


@dataclass(eq=False)
class _Subscription:
    handler: EventHandler
    once: bool = False


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable


class EventBus:
    """Typed publish/subscribe dispatcher for :class:`EventKind` occurrences.

    Usage::

        bus = EventBus()
        bus.on(EventKind.PLUGIN_REGISTERED, lambda p: print(p.resource_type))
        bus.on_async(EventKind.TASK_COMPLETED, notify_webhook)
        bus.emit(EventKind.PLUGIN_REGISTERED, PluginRegistered(resource_type="kv", name="kv"))
        await bus.drain()
    """

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[_Subscription]] = {}
        # dict as an insertion-ordered set
        self._detached: dict[EventKind, dict[EventHandler, None]] = {}
        self._pending: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def on(self, kind: EventKind, handler: EventHandler) -> None:
        """Call *handler* synchronously on every emission of *kind*."""
        self._handlers.setdefault(EventKind(kind), []).append(_Subscription(handler))

    def once(self, kind: EventKind, handler: EventHandler) -> None:
        """Call *handler* synchronously on the next emission of *kind* only."""
        self._handlers.setdefault(EventKind(kind), []).append(_Subscription(handler, once=True))

    def on_async(self, kind: EventKind, handler: EventHandler) -> None:
        """Call *handler* detached on every emission of *kind*.

        Registering the same handler twice for a kind is a no-op.
        """
        self._detached.setdefault(EventKind(kind), {})[handler] = None

    def off(self, kind: EventKind, handler: EventHandler) -> None:
        """Remove *handler* from both the synchronous and detached registries."""
        kind = EventKind(kind)
        subscriptions = self._handlers.get(kind)
        if subscriptions:
            subscriptions[:] = [s for s in subscriptions if s.handler != handler]
            if not subscriptions:
                del self._handlers[kind]
        detached = self._detached.get(kind)
        if detached is not None:
            detached.pop(handler, None)
            if not detached:
                del self._detached[kind]

    def remove_all_listeners(self, kind: EventKind | None = None) -> None:
        """Clear handlers for *kind*, or for every kind when omitted."""
        if kind is None:
            self._handlers.clear()
            self._detached.clear()
            return
        kind = EventKind(kind)
        self._handlers.pop(kind, None)
        self._detached.pop(kind, None)

    def listener_count(self, kind: EventKind) -> int:
        """Number of synchronous plus detached handlers for *kind*."""
        kind = EventKind(kind)
        return len(self._handlers.get(kind, ())) + len(self._detached.get(kind, ()))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def emit(self, kind: EventKind, payload: BaseModel) -> None:
        """Deliver *payload* to every handler registered for *kind*.

        Raises:
            TypeError: *payload* is not the model registered for *kind*.
        """
        kind = EventKind(kind)
        expected = EVENT_PAYLOADS[kind]
        if not isinstance(payload, expected):
            msg = f"{kind} expects {expected.__name__}, got {type(payload).__name__}"
            raise TypeError(msg)

        subscriptions = self._handlers.get(kind)
        if subscriptions:
            for sub in list(subscriptions):
                if sub.once:
                    self._discard(kind, sub)
                sub.handler(payload)

        detached = self._detached.get(kind)
        if not detached:
            return

        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for handler in list(detached):
            if loop is None:
                self._run_inline(kind, handler, payload)
                continue
            task = loop.create_task(self._run_detached(kind, handler, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for all in-flight detached handlers to finish. Never raises."""
        while True:
            pending = [t for t in self._pending if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _discard(self, kind: EventKind, sub: _Subscription) -> None:
        subscriptions = self._handlers.get(kind)
        if subscriptions and sub in subscriptions:
            subscriptions.remove(sub)
            if not subscriptions:
                del self._handlers[kind]

    async def _run_detached(self, kind: EventKind, handler: EventHandler, payload: Any) -> None:
        try:
            outcome = handler(payload)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Detached handler %s failed for %s", _handler_name(handler), kind)

    def _run_inline(self, kind: EventKind, handler: EventHandler, payload: Any) -> None:
        """Run a detached handler when no event loop is running (sync callers)."""
        try:
            outcome = handler(payload)
            if inspect.isawaitable(outcome):
                asyncio.run(_await(outcome))
        except Exception:
            logger.exception("Detached handler %s failed for %s", _handler_name(handler), kind)
