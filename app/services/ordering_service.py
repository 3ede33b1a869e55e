"""
Participant presentation order: join, shuffle and manual reordering.

presentation_order is also the number of the wine a participant brought, and
guesses point at wine numbers, so every change here changes which answers a
guess is compared with.
"""

import logging
import random
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    CapacityExceededError,
    EventNotFoundError,
    InvalidInputError,
    InvalidJoinCodeError,
    ParticipantNotFoundError,
)
from app.models import Participant
from app.services.notification_service import NotificationService, participant_payload, participants_payload
from app.services.repositories import EventRepo, ParticipantRepo, transaction
from app.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)


class OrderingService:
    """Service for joining participants and arranging the serving order"""
    
    def __init__(self, notifier: NotificationService, rng: Optional[random.Random] = None):
        self.notifier = notifier
        self.rng = rng or random.SystemRandom()
    
    async def join(self, db: Session, join_code: str, name: str) -> Tuple[Participant, int]:
        """Add a participant at the end of the serving order"""
        clean_name = sanitize_text(name, settings.MAX_NAME_LENGTH)
        if not clean_name:
            raise InvalidInputError("Player name is required")
        
        event = EventRepo.get_by_join_code(db, join_code.strip().upper())
        if not event:
            raise InvalidJoinCodeError(join_code)
        
        with transaction(db):
            active_count = ParticipantRepo.count_active(db, event.id)
            if active_count >= event.max_participants:
                raise CapacityExceededError(
                    "Event is full",
                    details={"max_participants": event.max_participants},
                    event_id=event.id,
                )
            participant = Participant(
                event_id=event.id,
                name=clean_name,
                presentation_order=active_count + 1,
            )
            db.add(participant)
        db.refresh(participant)
        
        logger.info(f"{participant.name} joined event {event.id} as wine {participant.presentation_order}")
        await self.notifier.notify_players(db, event.id, "player-joined", player=participant_payload(participant))
        return participant, participant.presentation_order
    
    async def shuffle(self, db: Session, event_id: str) -> List[Participant]:
        """Uniformly random permutation of the active participants, orders 1..N"""
        if not EventRepo.get_active(db, event_id):
            raise EventNotFoundError(event_id)
        
        participants = ParticipantRepo.list_active(db, event_id)
        ids = [p.id for p in participants]
        # Fisher-Yates
        self.rng.shuffle(ids)
        
        with transaction(db):
            ParticipantRepo.reassign_orders(db, event_id, ids)
        
        shuffled = ParticipantRepo.list_active(db, event_id)
        logger.info(f"Shuffled {len(shuffled)} participants in event {event_id}")
        await self.notifier.notify(event_id, "players-shuffled", participants_payload(shuffled))
        return shuffled
    
    async def reorder(self, db: Session, event_id: str, participant_ids: Sequence[str]) -> List[Participant]:
        """Assign orders by position in the given list.

        Ids from other events are ignored. The list is not checked to be a
        permutation of all active participants; a partial list leaves the
        others where they were, possibly sharing an order value.
        """
        if not EventRepo.get_active(db, event_id):
            raise EventNotFoundError(event_id)
        
        with transaction(db):
            updated = ParticipantRepo.reassign_orders(db, event_id, participant_ids)
        
        players = ParticipantRepo.list_active(db, event_id)
        logger.info(f"Reordered {updated} participants in event {event_id}")
        await self.notifier.notify(event_id, "players-reordered", participants_payload(players))
        return players
    
    async def set_order(self, db: Session, participant_id: str, presentation_order: int) -> Participant:
        """Move a single participant; other orders are left as they are"""
        if not isinstance(presentation_order, int) or isinstance(presentation_order, bool) or presentation_order < 1:
            raise InvalidInputError("Invalid presentation order", details={"presentation_order": presentation_order})
        
        participant = ParticipantRepo.get_active(db, participant_id)
        if not participant:
            raise ParticipantNotFoundError(participant_id)
        
        with transaction(db):
            participant.presentation_order = presentation_order
        
        await self.notifier.notify_players(db, participant.event_id, "player-order-updated")
        return participant
    
    async def remove(self, db: Session, participant_id: str) -> Participant:
        """Deactivate a participant. Remaining orders are not compacted."""
        participant = ParticipantRepo.get_active(db, participant_id)
        if not participant:
            raise ParticipantNotFoundError(participant_id)
        
        with transaction(db):
            participant.is_active = False
        
        event_id = participant.event_id
        logger.info(f"Participant {participant_id} left event {event_id}")
        await self.notifier.notify_players(db, event_id, "player-left", player_id=participant_id)
        return participant
    
    async def purge(self, db: Session, participant_id: str) -> str:
        """Delete a participant row together with its answers, guesses and scores"""
        participant = ParticipantRepo.get(db, participant_id)
        if not participant:
            raise ParticipantNotFoundError(participant_id)
        
        event_id = participant.event_id
        was_active = participant.is_active
        with transaction(db):
            db.delete(participant)
        
        logger.info(f"Purged participant {participant_id} from event {event_id}")
        if was_active:
            await self.notifier.notify_players(db, event_id, "player-left", player_id=participant_id)
        await self.notifier.broadcast_event_update(db, event_id)
        return event_id
    
    async def set_ready(self, db: Session, participant_id: str, ready: bool = True) -> Participant:
        participant = ParticipantRepo.get_active(db, participant_id)
        if not participant:
            raise ParticipantNotFoundError(participant_id)
        
        with transaction(db):
            participant.is_ready = ready
        
        await self.notifier.notify(participant.event_id, "player-ready", participant_payload(participant))
        return participant
