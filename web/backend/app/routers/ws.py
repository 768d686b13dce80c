"""WebSocket endpoint for moderator dashboards."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from contentguard.service import ModerationService

log = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def notifications(websocket: WebSocket):
    """Initial state sync, then pushed events.

    Clients need not send anything: a heartbeat ping the socket accepts keeps
    the connection alive, and uvicorn handles protocol-level ping/pong.  A
    client may send ``{"type": "ping"}`` and gets a ``pong`` back.
    """
    service: ModerationService = websocket.app.state.service
    await websocket.accept()
    conn = await service.hub.connect(websocket)
    try:
        while not conn.is_dead:
            raw = await websocket.receive_text()
            await service.hub.handle_message(conn, raw)
    except WebSocketDisconnect:
        log.debug("Client %s closed the socket", conn.id)
    finally:
        await service.hub.disconnect(conn)
