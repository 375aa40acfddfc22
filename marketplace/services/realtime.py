"""
Realtime fan-out

Process-wide, in-memory registry of websocket connections grouped by
channel. Cleared on restart; clients rejoin on reconnect. Delivery is
best-effort: failed sends are logged and the connection dropped.
"""

import logging
from collections import defaultdict
from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.websockets import WebSocket

from ..database.helpers import to_serializable

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Channel name -> connected websockets"""

    def __init__(self):
        self._channels: dict[str, set[WebSocket]] = defaultdict(set)
        self._connections: set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def connect(self, websocket: WebSocket) -> None:
        self._connections.add(websocket)

    def join(self, websocket: WebSocket, channel: str) -> None:
        self._connections.add(websocket)
        self._channels[channel].add(websocket)
        logger.debug(f"Websocket joined channel {channel}")

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        for channel in list(self._channels):
            members = self._channels[channel]
            members.discard(websocket)
            if not members:
                del self._channels[channel]

    def members(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    async def emit(self, channel: str, event: str, data: Any) -> int:
        """Push an event to one channel; returns deliveries made"""
        targets = list(self._channels.get(channel, ()))
        return await self._send(targets, event, data)

    async def broadcast(self, event: str, data: Any) -> int:
        """Push an event to every connected client"""
        return await self._send(list(self._connections), event, data)

    async def _send(self, targets: list[WebSocket], event: str, data: Any) -> int:
        if not targets:
            return 0
        message = {"event": event, "data": jsonable_encoder(to_serializable(data))}
        delivered = 0
        for websocket in targets:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping websocket after failed '{event}' push: {e}")
                self.disconnect(websocket)
        return delivered
