"""
Live event rooms over WebSocket.

Every client watching an event sits in that event's room. Services publish a
topic to the room and each socket receives
{type, event_id, data, timestamp} as JSON.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, Set
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.services.repositories import EventRepo

logger = logging.getLogger(__name__)


def room_message(event_id: str, topic: str, payload: Any = None) -> Dict[str, Any]:
    return {
        "type": topic,
        "event_id": event_id,
        "data": payload,
        "timestamp": datetime.utcnow().isoformat(),
    }


class EventRooms:
    """Sockets grouped by event id"""

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = {}

    async def enter(self, websocket: WebSocket, event_id: str):
        await websocket.accept()
        self.rooms.setdefault(event_id, set()).add(websocket)
        logger.info(f"Socket entered event {event_id} ({self.connection_count(event_id)} watching)")

    def leave(self, websocket: WebSocket, event_id: str):
        room = self.rooms.get(event_id)
        if room is None or websocket not in room:
            return
        room.discard(websocket)
        if not room:
            del self.rooms[event_id]
        logger.info(f"Socket left event {event_id} ({self.connection_count(event_id)} watching)")

    def connection_count(self, event_id: str) -> int:
        return len(self.rooms.get(event_id, ()))

    async def publish(self, event_id: str, topic: str, payload: Any = None) -> int:
        """Send a topic to everyone in the room; returns how many sockets got it.

        Sockets that fail to receive are dropped from the room.
        """
        room = self.rooms.get(event_id)
        if not room:
            return 0

        text = json.dumps(room_message(event_id, topic, payload), default=str)
        delivered = 0
        for websocket in list(room):
            try:
                await websocket.send_text(text)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping socket from event {event_id} after failed {topic}: {e}")
                self.leave(websocket, event_id)
        return delivered


# Shared by every router
event_rooms = EventRooms()

router = APIRouter()

@router.websocket("/events/{event_id}")
async def event_socket(
    websocket: WebSocket,
    event_id: str,
    db: Session = Depends(get_db)
):
    """Follow an event live; answers {"type": "ping"} with a pong"""
    event = EventRepo.get_active(db, event_id)
    event_name = event.name if event else None
    # The socket can stay open for hours; its pooled connection must not
    db.close()

    if event_name is None:
        await websocket.close(code=4004, reason="Event not found")
        return

    await event_rooms.enter(websocket, event_id)
    try:
        await websocket.send_json({
            "type": "connection",
            "message": f"Connected to event: {event_name}",
            "event_id": event_id,
            "connection_count": event_rooms.connection_count(event_id),
        })

        while True:
            data = await websocket.receive_text()
            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring non-JSON message on event {event_id}")
                continue

            if isinstance(client_message, dict) and client_message.get("type") == "ping":
                await websocket.send_json({"type": "pong", "timestamp": client_message.get("timestamp")})

    except WebSocketDisconnect:
        pass
    finally:
        event_rooms.leave(websocket, event_id)
