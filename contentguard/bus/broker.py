"""Topic-based message broker with per-subscription mailboxes.

Every subscription owns a FIFO mailbox drained by its own worker task:

- a handler sees the messages of its topic in publish order, so
  per-``content_id`` ordering holds as long as producers publish in order;
- ``publish`` only enqueues, so a slow or failing handler never stalls the
  publisher or the other handlers on the topic;
- each handler call is bounded by ``handler_timeout`` and its exceptions
  are logged, never propagated.

Nothing is durable: messages still queued when the process exits are lost.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from contentguard.errors import BusClosedError

log = logging.getLogger(__name__)

Handler = Callable[[Any], Union[Awaitable[None], None]]


@dataclass
class _Subscription:
    topic: str
    name: str
    handler: Handler
    mailbox: asyncio.Queue = field(default_factory=asyncio.Queue)
    worker: Optional[asyncio.Task] = None
    delivered: int = 0
    failed: int = 0


class MessageBus:
    """In-process publish/subscribe broker with named topics.

    Parameters
    ----------
    handler_timeout : float | None
        Seconds a single handler call may take before it is abandoned.
        ``None`` disables the limit.
    history_limit : int | None
        Messages retained per topic; ``None`` keeps everything.
    """

    def __init__(
        self,
        handler_timeout: float | None = 60.0,
        history_limit: int | None = 1000,
    ) -> None:
        self._handler_timeout = handler_timeout
        self._history_limit = history_limit
        self._subscriptions: dict[str, list[_Subscription]] = {}
        self._history: dict[str, deque] = {}
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    # -- properties ----------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        """Messages enqueued but not yet fully handled, across all topics."""
        return self._in_flight

    def topics(self) -> list[str]:
        return sorted(set(self._subscriptions) | set(self._history))

    def history(self, topic: str) -> list[Any]:
        """Return the retained messages published to *topic*, oldest first."""
        return list(self._history.get(topic, ()))

    def subscribers(self, topic: str) -> list[str]:
        return [s.name for s in self._subscriptions.get(topic, ())]

    # -- subscribe / publish -------------------------------------------------

    def subscribe(self, topic: str, handler: Handler, name: str | None = None) -> None:
        """Register *handler* for future publishes on *topic*.

        History is not replayed to late subscribers.
        """
        if self._closed:
            raise BusClosedError(f"Cannot subscribe to '{topic}': bus is closed")
        sub = _Subscription(
            topic=topic,
            name=name or getattr(handler, "__qualname__", repr(handler)),
            handler=handler,
        )
        # Copy-on-write so an in-progress publish keeps its snapshot
        self._subscriptions[topic] = [*self._subscriptions.get(topic, []), sub]
        log.info("Consumer %s registered for topic %s", sub.name, topic)

    async def publish(self, topic: str, message: Any) -> int:
        """Record *message* on *topic* and enqueue it for every subscriber.

        Returns the number of subscriptions the message was delivered to.
        """
        if self._closed:
            raise BusClosedError(f"Cannot publish to '{topic}': bus is closed")

        history = self._history.get(topic)
        if history is None:
            history = self._history[topic] = deque(maxlen=self._history_limit)
        history.append(message)

        subs = self._subscriptions.get(topic, [])
        for sub in subs:
            self._ensure_worker(sub)
            self._in_flight += 1
            self._idle.clear()
            sub.mailbox.put_nowait(message)

        log.debug("Message produced to topic %s (%d consumers)", topic, len(subs))
        return len(subs)

    # -- lifecycle -----------------------------------------------------------

    async def join(self) -> None:
        """Wait until every published message has been handled.

        Messages published by handlers while draining are waited for too.
        """
        await self._idle.wait()

    async def close(self, drain: bool = True, timeout: float | None = None) -> None:
        """Stop accepting publishes and shut the workers down.

        With *drain* the already-queued messages are handled first (up to
        *timeout* seconds); whatever remains afterwards is abandoned.
        """
        if self._closed:
            return
        self._closed = True
        if drain:
            try:
                await asyncio.wait_for(self.join(), timeout=timeout)
            except asyncio.TimeoutError:
                log.warning(
                    "Bus closed with %d undelivered messages", self._in_flight
                )

        workers = [
            s.worker
            for subs in self._subscriptions.values()
            for s in subs
            if s.worker is not None and not s.worker.done()
        ]
        for task in workers:
            task.cancel()
        if workers:
            await asyncio.gather(*workers, return_exceptions=True)
        log.info("Message bus closed")

    # -- internals -----------------------------------------------------------

    def _ensure_worker(self, sub: _Subscription) -> None:
        if sub.worker is None or sub.worker.done():
            sub.worker = asyncio.get_running_loop().create_task(
                self._drain(sub), name=f"bus:{sub.topic}:{sub.name}"
            )

    async def _drain(self, sub: _Subscription) -> None:
        while True:
            message = await sub.mailbox.get()
            try:
                await self._deliver(sub, message)
            finally:
                sub.mailbox.task_done()
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._idle.set()

    async def _deliver(self, sub: _Subscription, message: Any) -> None:
        try:
            result = sub.handler(message)
            if inspect.isawaitable(result):
                await asyncio.wait_for(result, timeout=self._handler_timeout)
            sub.delivered += 1
        except asyncio.TimeoutError:
            sub.failed += 1
            log.error(
                "Consumer %s on topic %s timed out after %ss",
                sub.name, sub.topic, self._handler_timeout,
            )
        except Exception:
            sub.failed += 1
            log.exception("Consumer %s failed on topic %s", sub.name, sub.topic)
