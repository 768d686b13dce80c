"""One client connection of the notification fan-out.

Liveness is an explicit state machine driven by heartbeat ticks::

    alive --tick--> probing --tick (no ack)--> probing ... --> dead
      ^                |
      +---- ack -------+

An ack is any inbound frame or the socket accepting a probe.  ``max_missed``
consecutive cycles without one make the connection dead.  A dead connection
never comes back.

Outbound frames go through a bounded queue drained by a writer task, so a
broadcast never waits on a slow peer; a full queue means the peer is not
keeping up and the hub evicts it.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol

log = logging.getLogger(__name__)


class ClientSocket(Protocol):
    """The part of a WebSocket the fan-out needs."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class ConnectionState(str, Enum):
    alive = "alive"
    probing = "probing"
    dead = "dead"


class ClientConnection:
    """A live client socket with heartbeat state and an outbound queue."""

    def __init__(
        self,
        socket: ClientSocket,
        max_missed: int = 1,
        queue_size: int = 100,
        on_failure: Optional[Callable[[ClientConnection], Awaitable[Any]]] = None,
    ) -> None:
        self.id = uuid.uuid4().hex[:12]
        self.state = ConnectionState.alive
        self.missed = 0
        self.max_missed = max_missed
        self._socket = socket
        self._outbox: asyncio.Queue[tuple[str, bool]] = asyncio.Queue(maxsize=queue_size)
        self._writer: Optional[asyncio.Task] = None
        self._on_failure = on_failure

    def __repr__(self) -> str:
        return f"ClientConnection(id={self.id!r}, state={self.state.value})"

    # -- heartbeat state machine ---------------------------------------------

    @property
    def is_dead(self) -> bool:
        return self.state is ConnectionState.dead

    def mark_alive(self) -> None:
        """Record a sign of life: an inbound frame or a delivered probe."""
        if self.state is not ConnectionState.dead:
            self.state = ConnectionState.alive
            self.missed = 0

    def tick(self) -> ConnectionState:
        """Advance one heartbeat cycle and return the new state."""
        if self.state is ConnectionState.alive:
            self.state = ConnectionState.probing
        elif self.state is ConnectionState.probing:
            self.missed += 1
            if self.missed >= self.max_missed:
                self.state = ConnectionState.dead
        return self.state

    # -- outbound ------------------------------------------------------------

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(
                self._write_loop(), name=f"ws-writer:{self.id}"
            )

    def enqueue(self, frame: str, probe: bool = False) -> bool:
        """Queue *frame* for sending. False if dead or backlogged.

        A *probe* frame marks the connection alive once the socket has
        accepted it, so clients need not answer pings themselves.
        """
        if self.is_dead:
            return False
        try:
            self._outbox.put_nowait((frame, probe))
            return True
        except asyncio.QueueFull:
            return False

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the socket."""
        await self._outbox.join()

    async def _write_loop(self) -> None:
        while True:
            frame, probe = await self._outbox.get()
            try:
                await self._socket.send_text(frame)
            except Exception:
                log.warning("Send to client %s failed; dropping connection", self.id, exc_info=True)
                self.state = ConnectionState.dead
                self._outbox.task_done()
                self._discard_backlog()
                if self._on_failure is not None:
                    await self._on_failure(self)
                return
            if probe:
                self.mark_alive()
            self._outbox.task_done()

    def _discard_backlog(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def close(self, code: int = 1000) -> None:
        """Mark dead, stop the writer, and close the socket."""
        self.state = ConnectionState.dead
        writer, self._writer = self._writer, None
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
        self._discard_backlog()
        try:
            await self._socket.close(code=code)
        except Exception:
            # Peer already gone
            log.debug("Closing client %s socket failed", self.id, exc_info=True)
