from typing import Dict, List

from fastapi import WebSocket
from loguru import logger
from starlette.websockets import WebSocketState


def video_comments_room(video_id) -> str:
    return f"video_comments_{video_id}"


class WSConnectionManager:
    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, room_id: str):
        """Add a WebSocket to a room"""
        self.active_connections.setdefault(room_id, []).append(websocket)
        logger.debug(
            f"🟢 Client joined {room_id}, total: {len(self.active_connections[room_id])}"
        )

    def disconnect(self, websocket: WebSocket, room_id: str):
        if room_id in self.active_connections:
            try:
                self.active_connections[room_id].remove(websocket)
                if not self.active_connections[room_id]:
                    del self.active_connections[room_id]
            except ValueError:
                pass
        logger.debug(f"🔴 Client left {room_id}")

    def room_size(self, room_id: str) -> int:
        return len(self.active_connections.get(room_id, []))

    async def broadcast(self, room_id: str, message: dict) -> int:
        """Send `message` to every client of the room, dropping dead sockets.
        Returns how many clients received it."""
        delivered = 0
        clients = self.active_connections.get(room_id, [])
        for ws in list(clients):
            try:
                if ws.client_state == WebSocketState.CONNECTED:
                    await ws.send_json(message)
                    delivered += 1
                else:
                    self.disconnect(ws, room_id)
            except Exception as e:
                logger.warning(f"⚠️ WS send failed ({room_id}): {e}")
                self.disconnect(ws, room_id)
        return delivered


ws_manager = WSConnectionManager()
