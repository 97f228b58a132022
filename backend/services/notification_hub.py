"""
notification_hub.py — Real-time fan-out
Keeps the live WebSocket connections of each account in memory and pushes
entity-changed events to them. Nothing is queued or persisted: an event for
an account with no open connection is dropped.
"""

import logging

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


class NotificationHub:
    """account id → set of live sockets."""

    def __init__(self):
        self._rooms: dict[int, set[WebSocket]] = {}

    # ------------------------------------------------------------------
    async def connect(self, user_id: int, websocket: WebSocket):
        # Join before accepting so the socket is in the room once the client sees the handshake
        self._rooms.setdefault(user_id, set()).add(websocket)
        try:
            await websocket.accept()
        except (RuntimeError, OSError):
            self.disconnect(user_id, websocket)
            raise
        logger.info(f"User {user_id} joined their room ({self.connection_count(user_id)} connection(s))")

    def disconnect(self, user_id: int, websocket: WebSocket):
        room = self._rooms.get(user_id)
        if room is None:
            return
        room.discard(websocket)
        if not room:
            del self._rooms[user_id]
        logger.info(f"User {user_id} left their room")

    def connection_count(self, user_id: int) -> int:
        return len(self._rooms.get(user_id, ()))

    # ------------------------------------------------------------------
    async def emit(self, user_id: int, event: str, payload: dict) -> int:
        """Send {event, data} to every connection of the account. Returns the number delivered."""
        room = self._rooms.get(user_id)
        if not room:
            logger.debug(f"Dropped {event} for user {user_id}: no connections")
            return 0

        delivered = 0
        for websocket in list(room):
            try:
                await websocket.send_json({"event": event, "data": payload})
                delivered += 1
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                # Socket closed between join and send
                logger.warning(f"Failed to deliver {event} to user {user_id}: {e}")
                self.disconnect(user_id, websocket)
        logger.debug(f"Emitted {event} to user {user_id} ({delivered} connection(s))")
        return delivered


hub = NotificationHub()
