from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from echosphere.services.ws_manager import ws_manager

router = APIRouter(tags=["websocket"])


@router.websocket("/api/ws/organizations/{organization_id}")
async def organization_feed(websocket: WebSocket, organization_id: str):
    # Public feed: inserts are broadcast in their public view (no contact email)
    await ws_manager.connect(organization_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        ws_manager.disconnect(organization_id, websocket)
