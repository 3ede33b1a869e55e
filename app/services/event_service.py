"""
Event lifecycle: creation with categories and join code, lookups, start,
current wine pointer, auto-shuffle and deletion.
"""

import logging
import secrets
from typing import Dict, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ConflictError, EventNotFoundError, InvalidInputError, InvalidJoinCodeError
from app.models import Event
from app.schemas.event import CategoryResponse, EventCreate, EventDetail, EventResponse
from app.schemas.participant import ParticipantResponse
from app.services.notification_service import NotificationService
from app.services.ordering_service import OrderingService
from app.services.repositories import CategoryRepo, EventRepo, ParticipantRepo, transaction
from app.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)


def generate_join_code() -> str:
    """Six-digit numeric code in 100000..999999"""
    return str(100000 + secrets.randbelow(900000))


def event_payload(db: Session, event: Event) -> Dict:
    """Event fields plus categories and active players"""
    detail = EventDetail(
        **EventResponse.model_validate(event).model_dump(),
        categories=[CategoryResponse.model_validate(c) for c in CategoryRepo.list_for_event(db, event.id)],
        players=[ParticipantResponse.model_validate(p) for p in ParticipantRepo.list_active(db, event.id)],
    )
    return detail.model_dump(mode="json")


class EventService:
    """Service for organizer-side event operations"""
    
    def __init__(self, notifier: NotificationService, ordering: OrderingService):
        self.notifier = notifier
        self.ordering = ordering
    
    @staticmethod
    def get_event(db: Session, event_id: str) -> Event:
        event = EventRepo.get_active(db, event_id)
        if not event:
            raise EventNotFoundError(event_id)
        return event
    
    @staticmethod
    def list_events(db: Session) -> List[Dict]:
        """Active events, most recent date first, with their player counts"""
        return [
            dict(
                EventResponse.model_validate(event).model_dump(mode="json"),
                player_count=ParticipantRepo.count_active(db, event.id),
            )
            for event in EventRepo.list_active(db)
        ]
    
    @staticmethod
    def get_event_by_join_code(db: Session, join_code: str) -> Event:
        event = EventRepo.get_by_join_code(db, join_code.strip().upper())
        if not event:
            raise InvalidJoinCodeError(join_code)
        return event
    
    @staticmethod
    def _unused_join_code(db: Session) -> str:
        for _ in range(settings.JOIN_CODE_MAX_ATTEMPTS):
            join_code = generate_join_code()
            if not EventRepo.join_code_in_use(db, join_code):
                return join_code
        raise ConflictError("Could not allocate a unique join code")
    
    def create_event(self, db: Session, event_data: EventCreate) -> Event:
        """Create an event with its categories; the category set is fixed afterwards"""
        categories = []
        seen = set()
        for category in event_data.categories:
            element = sanitize_text(category.guessing_element, settings.MAX_VALUE_LENGTH)
            if not element:
                raise InvalidInputError("Category name is required")
            if element.lower() in seen:
                raise InvalidInputError("Duplicate category", details={"guessing_element": element})
            seen.add(element.lower())
            categories.append((element, category.difficulty_factor))
        
        name = sanitize_text(event_data.name, 255)
        if not name:
            raise InvalidInputError("Event name is required")
        
        with transaction(db):
            event = Event(
                name=name,
                date=event_data.date,
                max_participants=event_data.max_participants,
                wine_type=sanitize_text(event_data.wine_type, 100),
                location=sanitize_text(event_data.location, 255),
                description=event_data.description,
                budget=event_data.budget,
                duration=event_data.duration,
                wine_notes=event_data.wine_notes,
                join_code=self._unused_join_code(db),
            )
            EventRepo.create(db, event, categories)
        db.refresh(event)
        
        logger.info(f"Created event {event.id} with join code {event.join_code}")
        return event
    
    async def start_event(self, db: Session, event_id: str) -> Event:
        event = self.get_event(db, event_id)
        with transaction(db):
            event.started = True
        
        await self.notifier.notify(event_id, "event-started", {"event_id": event_id})
        await self.notifier.broadcast_event_update(db, event_id)
        return event
    
    async def set_current_wine(self, db: Session, event_id: str, wine_number: int) -> Event:
        """Move the tasting to another wine"""
        event = self.get_event(db, event_id)
        if wine_number < 1:
            raise InvalidInputError("Wine number must be positive", details={"wine_number": wine_number})
        with transaction(db):
            event.current_wine_number = wine_number
        
        await self.notifier.notify(event_id, "current-wine-changed", {"current_wine_number": wine_number})
        await self.notifier.broadcast_event_update(db, event_id)
        return event
    
    async def set_auto_shuffle(self, db: Session, event_id: str, auto_shuffle: bool) -> Event:
        """Store the flag; switching it on shuffles once straight away"""
        event = self.get_event(db, event_id)
        with transaction(db):
            event.auto_shuffle = auto_shuffle
        
        if auto_shuffle:
            await self.ordering.shuffle(db, event_id)
        return event
    
    def delete_event(self, db: Session, event_id: str) -> str:
        """Remove an event and everything it owns"""
        event = db.query(Event).filter(Event.id == event_id).first()
        if not event:
            raise EventNotFoundError(event_id)
        with transaction(db):
            db.delete(event)
        logger.info(f"Deleted event {event_id}")
        return event_id
    
    @staticmethod
    def event_stats(db: Session, event_id: str) -> Dict:
        """Counts shown on the organizer dashboard"""
        players = ParticipantRepo.list_active(db, event_id)
        return {
            "total_players": len(players),
            "ready_players": sum(1 for p in players if p.is_ready),
            "total_categories": len(CategoryRepo.list_for_event(db, event_id)),
        }
