"""
Collects what participants submit during a tasting: answers about their own
wine, guesses about the others and numeric ratings.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidCategoryError, InvalidInputError, ParticipantNotFoundError
from app.models import Answer, Guess, Participant, Score
from app.services.notification_service import NotificationService
from app.services.repositories import (
    AnswerRepo,
    CategoryRepo,
    GuessRepo,
    ParticipantRepo,
    ScoreRepo,
    transaction,
)
from app.utils.sanitize import sanitize_answer

logger = logging.getLogger(__name__)


def _validated_values(
    db: Session,
    participant: Participant,
    entries: Iterable[Tuple[str, str]],
) -> Dict[str, str]:
    """Check every category belongs to the participant's event before anything is written.

    Later entries for the same category overwrite earlier ones.
    """
    valid_ids = CategoryRepo.ids_for_event(db, participant.event_id)
    values: Dict[str, str] = {}
    unknown: List[str] = []
    for category_id, value in entries:
        if category_id not in valid_ids:
            unknown.append(category_id)
            continue
        if value is None:
            raise InvalidInputError("A value is required for every category", details={"category_id": category_id})
        values[category_id] = sanitize_answer(value, settings.MAX_VALUE_LENGTH)
    if unknown:
        raise InvalidCategoryError(
            "Invalid category for this event",
            details={"category_ids": unknown},
            event_id=participant.event_id,
        )
    return values


class CollectorService:
    """Service for answer, guess and rating submissions"""
    
    def __init__(self, notifier: NotificationService):
        self.notifier = notifier
    
    def _active_participant(self, db: Session, participant_id: str) -> Participant:
        participant = ParticipantRepo.get_active(db, participant_id)
        if not participant:
            raise ParticipantNotFoundError(participant_id)
        return participant
    
    async def submit_answers(
        self,
        db: Session,
        participant_id: str,
        entries: Iterable[Tuple[str, str]],
    ) -> List[Answer]:
        """Replace every answer the participant gave about their own wine"""
        participant = self._active_participant(db, participant_id)
        values = _validated_values(db, participant, entries)
        event_id = participant.event_id
        
        with transaction(db):
            answers = AnswerRepo.replace_all(db, participant.id, values)
        
        logger.info(f"Stored {len(answers)} answers for participant {participant_id} in event {event_id}")
        await self.notifier.broadcast_event_update(db, event_id)
        return answers
    
    async def submit_guesses(
        self,
        db: Session,
        participant_id: str,
        wine_number: int,
        entries: Iterable[Tuple[str, str]],
    ) -> List[Guess]:
        """Replace the participant's guesses for one wine"""
        if wine_number < 1:
            raise InvalidInputError("Wine number must be positive", details={"wine_number": wine_number})
        participant = self._active_participant(db, participant_id)
        values = _validated_values(db, participant, entries)
        event_id = participant.event_id
        
        with transaction(db):
            guesses = GuessRepo.replace_for_wine(db, participant.id, wine_number, values)
        
        logger.info(f"Stored {len(guesses)} guesses for wine {wine_number} by participant {participant_id}")
        await self.notifier.broadcast_event_update(db, event_id)
        return guesses
    
    async def submit_score(
        self,
        db: Session,
        event_id: str,
        participant_id: str,
        wine_number: int,
        value: float,
    ) -> Score:
        """Rate a wine; a second rating of the same wine overwrites the first"""
        if wine_number < 1:
            raise InvalidInputError("Wine number must be positive", details={"wine_number": wine_number})
        if not settings.SCORE_MIN <= value <= settings.SCORE_MAX:
            raise InvalidInputError(
                f"Score must be between {settings.SCORE_MIN:g} and {settings.SCORE_MAX:g}",
                details={"score": value},
            )
        participant = self._active_participant(db, participant_id)
        if participant.event_id != event_id:
            raise ParticipantNotFoundError(participant_id)
        
        with transaction(db):
            score = ScoreRepo.upsert(db, event_id, participant.id, wine_number, value)
        db.refresh(score)
        
        await self.notifier.broadcast_event_update(db, event_id)
        return score
    
    async def correct_answer(self, db: Session, participant_id: str, category_id: str, value: str) -> Answer:
        """Organizer fix for one answer; leaves the participant's other answers alone"""
        participant = self._active_participant(db, participant_id)
        values = _validated_values(db, participant, [(category_id, value)])
        event_id = participant.event_id
        
        with transaction(db):
            answer = AnswerRepo.upsert(db, participant.id, category_id, values[category_id])
        db.refresh(answer)
        
        logger.info(f"Answer for category {category_id} of participant {participant_id} corrected")
        await self.notifier.broadcast_event_update(db, event_id)
        return answer
