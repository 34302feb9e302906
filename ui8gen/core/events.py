"""Synchronous publish/subscribe hub shared by the orchestrator, services and stages.

Handlers run in registration order against a snapshot of the subscriber list
taken when ``emit`` is called.  A handler that raises is logged and skipped;
the remaining handlers still run and the emitter never sees the exception.
Handlers returning an awaitable are scheduled on the running event loop and
not awaited.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from ..logger import Logger

EventHandler = Callable[[Any], Any]

# ---------------------------------------------------------------------------
# Event names
# ---------------------------------------------------------------------------

SERVICE_REGISTERED = "service:registered"
SERVICE_INITIALIZED = "service:initialized"
SERVICE_DISPOSED = "service:disposed"

GENERATOR_START = "generator:start"
GENERATOR_COMPLETE = "generator:complete"
GENERATOR_ERROR = "generator:error"

STAGE_START = "stage:start"
STAGE_COMPLETE = "stage:complete"
STAGE_ERROR = "stage:error"
STAGE_SKIP = "stage:skip"

TEMPLATE_GENERATED = "template:generated"


class EventBus:
    """In-process event bus.

    Attributes:
        logger: Receives handler failures.  Defaults to a ``[EventBus]`` logger.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self.logger = logger or Logger(prefix="EventBus")
        self._listeners: dict[str, list[EventHandler]] = {}
        self._pending: set[asyncio.Future[Any]] = set()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe *handler* to *event* and return an unsubscribe callable."""
        handlers = self._listeners.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

        def unsubscribe() -> None:
            self.off(event, handler)

        return unsubscribe

    def once(self, event: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe *handler* for the first matching ``emit`` only."""

        def wrapper(payload: Any) -> Any:
            self.off(event, wrapper)
            return handler(payload)

        return self.on(event, wrapper)

    def off(self, event: str, handler: EventHandler) -> None:
        """Remove *handler* from *event*.  Unknown handlers are ignored."""
        handlers = self._listeners.get(event)
        if not handlers:
            return
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            del self._listeners[event]

    def remove_all_listeners(self, event: str | None = None) -> None:
        """Clear the subscribers of *event*, or of every event when omitted."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def emit(self, event: str, payload: Any = None) -> None:
        """Deliver *payload* to every subscriber of *event*."""
        handlers = self._listeners.get(event)
        if not handlers:
            return

        for handler in list(handlers):
            try:
                result = handler(payload)
            except Exception as exc:
                self.logger.error(f'Handler error for "{event}": {exc!r}')
                continue

            if inspect.isawaitable(result):
                self._schedule(event, result)

    def _schedule(self, event: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.warn(
                f'Async handler for "{event}" dropped: no running event loop'
            )
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        future = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(future)
        future.add_done_callback(lambda done: self._on_async_done(event, done))

    def _on_async_done(self, event: str, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.logger.error(f'Async handler error for "{event}": {exc!r}')
