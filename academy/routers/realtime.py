from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.database import get_db
from ..core.exceptions import AuthenticationError
from ..services.auth_service import AuthService
from ..services.websocket_manager import RELAY_TOPICS, websocket_manager

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Realtime"])


@router.websocket("/ws/{topic}")
async def change_feed_socket(
    websocket: WebSocket,
    topic: str,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db)
):
    """Push enrollment or notification changes; students only get their own"""
    if topic not in RELAY_TOPICS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        subject_type, account = await AuthService(db).resolve_token(token)
        subject_id = str(account.id)
    except AuthenticationError:
        logger.warning(f"Rejected websocket subscription to {topic}: invalid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        # Release the connection; the socket may stay open for hours
        await db.rollback()

    connection_id = await websocket_manager.connect(websocket, topic, subject_type, subject_id)
    try:
        while True:
            # Clients only keep the connection alive
            message = await websocket.receive_text()
            if message == "ping":
                await websocket_manager.send_personal_message({"type": "pong"}, connection_id)
    except WebSocketDisconnect:
        logger.debug(f"Websocket {connection_id} closed by client")
    finally:
        websocket_manager.disconnect(connection_id)
