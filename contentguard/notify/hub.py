"""Notification fan-out to connected moderator clients.

Frames are JSON objects ``{"type": ..., "data": ...}``.  The hub keeps the
last payload broadcast for each event type; a newly connected client gets a
fresh snapshot (stats, pending queue, rules) and, when a snapshot read
fails, the cached payload for that type instead.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Optional

from contentguard.notify.connection import ClientConnection, ClientSocket, ConnectionState
from contentguard.storage.base import Storage
from contentguard.storage.queries import pending_page

log = logging.getLogger(__name__)

STATS_UPDATE = "stats_update"
FLAGGED_CONTENT_UPDATE = "flagged_content_update"
CONTENT_STATUS_UPDATE = "content_status_update"
AI_RULE_CREATED = "ai_rule_created"
AI_RULE_UPDATED = "ai_rule_updated"
AI_RULES_UPDATE = "ai_rules_update"  # full rule set, sent on connect

EVENT_TYPES = frozenset({
    STATS_UPDATE,
    FLAGGED_CONTENT_UPDATE,
    CONTENT_STATUS_UPDATE,
    AI_RULE_CREATED,
    AI_RULE_UPDATED,
    AI_RULES_UPDATE,
})


def _now_ms() -> int:
    return int(time.time() * 1000)


def encode_frame(event_type: str, data: Any) -> str:
    return json.dumps({"type": event_type, "data": data}, default=str)


class NotificationHub:
    """Broadcasts typed events to every open client connection."""

    def __init__(
        self,
        storage: Storage,
        heartbeat_interval: float = 30.0,
        max_missed: int = 1,
        queue_size: int = 100,
        pending_page_size: int = 5,
    ) -> None:
        self._storage = storage
        self._heartbeat_interval = heartbeat_interval
        self._max_missed = max_missed
        self._queue_size = queue_size
        self._pending_page_size = pending_page_size
        self._connections: dict[str, ClientConnection] = {}
        self._cache: dict[str, Any] = {}
        self._heartbeat: Optional[asyncio.Task] = None

    # -- introspection -------------------------------------------------------

    @property
    def connections(self) -> list[ClientConnection]:
        return list(self._connections.values())

    def last(self, event_type: str) -> Any:
        """Most recent payload broadcast (or synced) for *event_type*."""
        return self._cache.get(event_type)

    # -- connections ---------------------------------------------------------

    async def connect(self, socket: ClientSocket) -> ClientConnection:
        """Register *socket* and queue the initial state sync for it."""
        conn = ClientConnection(
            socket,
            max_missed=self._max_missed,
            queue_size=self._queue_size,
            on_failure=self.disconnect,
        )
        for frame in await self._snapshot_frames():
            conn.enqueue(frame)
        self._connections[conn.id] = conn
        conn.start()
        log.info("Client %s connected (%d active connections)", conn.id, len(self._connections))
        return conn

    async def disconnect(self, conn: ClientConnection) -> None:
        if self._connections.pop(conn.id, None) is not None:
            log.info("Client %s disconnected (%d active connections)", conn.id, len(self._connections))
        await conn.close()

    async def handle_message(self, conn: ClientConnection, raw: str) -> None:
        """Process one inbound frame; only liveness messages are understood."""
        conn.mark_alive()
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            log.debug("Ignoring malformed message from client %s", conn.id)
            return
        if isinstance(message, dict) and message.get("type") == "ping":
            conn.enqueue(json.dumps({"type": "pong", "timestamp": _now_ms()}))

    # -- broadcasting --------------------------------------------------------

    async def broadcast(self, event_type: str, data: Any) -> int:
        """Queue an event for every open connection. Returns the recipient count."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type '{event_type}'")
        self._cache[event_type] = data
        frame = encode_frame(event_type, data)

        delivered = 0
        for conn in self.connections:
            if conn.enqueue(frame):
                delivered += 1
            else:
                log.warning("Client %s is not keeping up; evicting", conn.id)
                await self.disconnect(conn)
        return delivered

    async def handle_bus_message(self, message: dict[str, Any]) -> None:
        """Consumer for the notifications topic."""
        await self.broadcast(message["type"], message["data"])

    # -- heartbeat -----------------------------------------------------------

    async def heartbeat_once(self) -> list[ClientConnection]:
        """Run one probe cycle. Returns the connections evicted."""
        evicted = []
        ping = json.dumps({"type": "ping", "timestamp": _now_ms()})
        for conn in self.connections:
            if conn.tick() is ConnectionState.dead or not conn.enqueue(ping, probe=True):
                log.info("Terminating inactive client %s", conn.id)
                await self.disconnect(conn)
                evicted.append(conn)
        return evicted

    def start_heartbeat(self) -> None:
        if self._heartbeat is None or self._heartbeat.done():
            self._heartbeat = asyncio.get_running_loop().create_task(
                self._heartbeat_loop(), name="ws-heartbeat"
            )

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            try:
                await self.heartbeat_once()
            except Exception:
                log.exception("Heartbeat cycle failed")

    async def stop(self) -> None:
        """Stop the heartbeat and close every connection."""
        task, self._heartbeat = self._heartbeat, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        for conn in self.connections:
            await self.disconnect(conn)

    # -- initial sync --------------------------------------------------------

    async def _snapshot_frames(self) -> list[str]:
        loaders = (
            (STATS_UPDATE, self._load_stats),
            (FLAGGED_CONTENT_UPDATE, self._load_pending),
            (AI_RULES_UPDATE, self._load_rules),
        )
        frames = []
        for event_type, loader in loaders:
            try:
                data = await loader()
                self._cache[event_type] = data
            except Exception:
                log.warning("Snapshot read for %s failed; replaying cached value", event_type, exc_info=True)
                if event_type not in self._cache:
                    continue
                data = self._cache[event_type]
            if data is not None:
                frames.append(encode_frame(event_type, data))
        return frames

    async def _load_stats(self) -> Optional[dict[str, Any]]:
        stats = await self._storage.get_latest_stats()
        return stats.to_dict() if stats else None

    async def _load_pending(self) -> list[dict[str, Any]]:
        return await pending_page(self._storage, self._pending_page_size)

    async def _load_rules(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in await self._storage.list_rules()]
