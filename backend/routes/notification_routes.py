import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from auth import user_id_from_token
from errors import Unauthorized
from services.notification_hub import hub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


@router.websocket("/ws")
async def notifications_socket(websocket: WebSocket, token: str | None = Query(None)):
    """Live habit/progress events for the token's account."""
    try:
        user_id = user_id_from_token(token)
    except Unauthorized as e:
        logger.info(f"Rejected socket connection: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        await hub.connect(user_id, websocket)
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.debug(f"Ignored non-JSON frame from user {user_id}")
                continue
            if isinstance(message, dict) and message.get("event") == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        logger.debug(f"Socket for user {user_id} disconnected")
    finally:
        hub.disconnect(user_id, websocket)
