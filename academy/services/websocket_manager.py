# academy/services/websocket_manager.py
from typing import Dict
from fastapi import WebSocket
import itertools
import json
import logging

from .change_feed import ChangeFeed, ENROLLMENTS_TOPIC, NOTIFICATIONS_TOPIC, change_feed
from ..models.admin import SubjectType

logger = logging.getLogger(__name__)

RELAY_TOPICS = (ENROLLMENTS_TOPIC, NOTIFICATIONS_TOPIC)


class WebSocketManager:
    """Relays change feed events to connected WebSocket clients."""

    def __init__(self, feed: ChangeFeed = change_feed):
        self.feed = feed
        # {connection_id: {websocket, subject_type, subject_id, topic, subscription}}
        self.active_connections: Dict[int, Dict] = {}
        self._ids = itertools.count(1)

    @staticmethod
    def predicate_for(subject_type: SubjectType, subject_id: str):
        if subject_type == SubjectType.ADMIN:
            return lambda event: True
        # Students only see their own events
        return lambda event: event.get("student_id") == subject_id

    async def connect(self, websocket: WebSocket, topic: str, subject_type: SubjectType, subject_id: str) -> int:
        """Accept the websocket and subscribe it to ``topic``"""
        await websocket.accept()
        connection_id = next(self._ids)

        async def relay(event: dict):
            await self.send_personal_message({"type": "change", "topic": topic, "event": event}, connection_id)

        subscription = self.feed.subscribe(topic, relay, self.predicate_for(subject_type, subject_id))
        self.active_connections[connection_id] = {
            "websocket": websocket,
            "subject_type": subject_type.value,
            "subject_id": subject_id,
            "topic": topic,
            "subscription": subscription,
        }
        logger.info(f"{subject_type.value} {subject_id} subscribed to {topic} (connection {connection_id})")

        await self.send_personal_message({
            "type": "connection_status",
            "status": "connected",
            "topic": topic,
            "subject_type": subject_type.value,
        }, connection_id)
        return connection_id

    def disconnect(self, connection_id: int):
        connection = self.active_connections.pop(connection_id, None)
        if connection:
            connection["subscription"].unsubscribe()
            logger.info(f"Connection {connection_id} ({connection['subject_id']}) disconnected")

    async def send_personal_message(self, message: dict, connection_id: int):
        connection = self.active_connections.get(connection_id)
        if not connection:
            return
        try:
            await connection["websocket"].send_text(json.dumps(message, ensure_ascii=False))
        except (RuntimeError, OSError) as e:
            logger.error(f"Error sending message to connection {connection_id}: {e}")
            self.disconnect(connection_id)

    def connection_count(self) -> int:
        return len(self.active_connections)


# Global WebSocket manager instance
websocket_manager = WebSocketManager()
