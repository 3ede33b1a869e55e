"""
Fan-out of event state changes to connected clients
"""

import logging
from typing import Any, List

from sqlalchemy.orm import Session

from app.api.ws import EventRooms
from app.models import Participant
from app.schemas.participant import ParticipantResponse
from app.services.repositories import ParticipantRepo
from app.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)


def participant_payload(participant: Participant) -> dict:
    return ParticipantResponse.model_validate(participant).model_dump(mode="json")


def participants_payload(participants: List[Participant]) -> List[dict]:
    return [participant_payload(p) for p in participants]


class NotificationService:
    """Publishes tasting topics to an event's room.

    Delivery is fire-and-forget: a failure here is logged and never reaches the
    caller, so the mutation that triggered it stays committed.
    """

    def __init__(self, rooms: EventRooms):
        self.rooms = rooms

    async def notify(self, event_id: str, topic: str, payload: Any = None) -> None:
        try:
            delivered = await self.rooms.publish(event_id, topic, payload)
        except Exception as e:
            logger.error(f"Failed to notify {topic} for event {event_id}: {e}")
            return
        logger.debug(f"{topic} for event {event_id} reached {delivered} sockets")

    async def notify_players(self, db: Session, event_id: str, topic: str, **extra: Any) -> None:
        """Publish a topic carrying the event's active players in serving order.

        With no extra fields the payload is the player list itself; otherwise
        the list goes under "all_players" next to the extra fields.
        """
        try:
            players = participants_payload(ParticipantRepo.list_active(db, event_id))
        except Exception:
            logger.exception(f"Could not list players for {topic} in event {event_id}")
            return
        payload = dict(extra, all_players=players) if extra else players
        await self.notify(event_id, topic, payload)

    async def broadcast_event_update(self, db: Session, event_id: str) -> None:
        """Recompute scoring state and push it as one consolidated update"""
        try:
            payload = ScoringService.event_update(db, event_id)
        except Exception:
            logger.exception(f"Could not build event update for event {event_id}")
            return
        await self.notify(event_id, "event-update", payload)
