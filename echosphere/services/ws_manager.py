"""WebSocket connection manager for the per-organization insert feed."""

from __future__ import annotations

import json
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self._connections: dict[str, list[WebSocket]] = {}

    async def connect(self, organization_id: str, websocket: WebSocket):
        await websocket.accept()
        self._connections.setdefault(organization_id, []).append(websocket)

    def disconnect(self, organization_id: str, websocket: WebSocket):
        conns = self._connections.get(organization_id, [])
        if websocket in conns:
            conns.remove(websocket)
        if not conns:
            self._connections.pop(organization_id, None)

    def subscriber_count(self, organization_id: str) -> int:
        return len(self._connections.get(organization_id, []))

    async def broadcast(self, organization_id: str, message: dict):
        """Send a JSON message to all clients subscribed to an organization."""
        conns = self._connections.get(organization_id, [])
        dead = []
        for ws in conns:
            try:
                await ws.send_text(json.dumps(message, default=str))
            except Exception:
                logger.debug("Dropping dead websocket for %s", organization_id)
                dead.append(ws)
        for ws in dead:
            conns.remove(ws)


ws_manager = ConnectionManager()
