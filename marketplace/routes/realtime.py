"""Realtime websocket endpoint"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ..security import ChannelAuthError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def realtime(websocket: WebSocket):
    """
    Client protocol:
        -> {"event": "join", "token": "<channel token>"}
        <- {"event": "joined", "channels": [...]}
        <- {"event": "notification" | "cart-updated" | "coupon", "data": {...}}

    Channels come from the verified token, never from the client.
    """
    channels = websocket.app.state.channels
    authenticator = websocket.app.state.channel_auth

    await websocket.accept()
    channels.connect(websocket)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "message": "Messages must be JSON objects"})
                continue

            event = message.get("event") if isinstance(message, dict) else None
            if event == "join":
                try:
                    identity = authenticator.verify(message.get("token"))
                except ChannelAuthError as e:
                    logger.warning(f"Rejected realtime join: {e}")
                    await websocket.send_json({"event": "error", "message": str(e)})
                    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                    break
                for channel in identity.channels:
                    channels.join(websocket, channel)
                await websocket.send_json({"event": "joined", "channels": identity.channels})
            elif event == "ping":
                await websocket.send_json({"event": "pong"})
            else:
                await websocket.send_json({"event": "error", "message": f"Unknown event: {event}"})
    except WebSocketDisconnect:
        pass
    finally:
        channels.disconnect(websocket)
