"""Real-time event channel."""

from fastapi import APIRouter, WebSocket

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def realtime_events(websocket: WebSocket):
    hub = websocket.app.state.hub
    # registered before accept so a client sees every event after its handshake
    channel = hub.connect()
    try:
        await websocket.accept()
        await channel.run(websocket)
    finally:
        hub.disconnect(channel)
