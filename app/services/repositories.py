"""
Repository layer over the SQLAlchemy session.

Multi-row writes (answer replace, guess replace, order reassignment) are single
calls so that they run inside one transaction.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, TransientError
from app.models import Answer, Category, Event, Guess, Participant, Score

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back on any error.

    Store-level failures are translated into the error taxonomy so callers see
    TransientError (retryable) or ConflictError instead of driver exceptions.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Conflicting write", details=str(e.orig)) from e
    except (OperationalError, PoolTimeoutError) as e:
        db.rollback()
        logger.warning(f"Store unavailable: {e}")
        raise TransientError("Store temporarily unavailable") from e
    except Exception:
        db.rollback()
        raise


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_active(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id, Event.is_active == True).first()

    @staticmethod
    def get_by_join_code(db: Session, join_code: str) -> Optional[Event]:
        return db.query(Event).filter(Event.join_code == join_code, Event.is_active == True).first()

    @staticmethod
    def list_active(db: Session) -> List[Event]:
        return db.query(Event).filter(Event.is_active == True).order_by(Event.date.desc(), Event.created_at.desc()).all()

    @staticmethod
    def join_code_in_use(db: Session, join_code: str) -> bool:
        return EventRepo.get_by_join_code(db, join_code) is not None

    @staticmethod
    def create(db: Session, event: Event, categories: Sequence[Tuple[str, int]]) -> Event:
        db.add(event)
        db.flush()
        for guessing_element, difficulty_factor in categories:
            db.add(Category(
                event_id=event.id,
                guessing_element=guessing_element,
                difficulty_factor=difficulty_factor,
            ))
        return event


# -------- Participant repository --------

class ParticipantRepo:
    @staticmethod
    def get_active(db: Session, participant_id: str) -> Optional[Participant]:
        return db.query(Participant).filter(
            Participant.id == participant_id,
            Participant.is_active == True
        ).first()

    @staticmethod
    def get(db: Session, participant_id: str) -> Optional[Participant]:
        return db.query(Participant).filter(Participant.id == participant_id).first()

    @staticmethod
    def list_active(db: Session, event_id: str) -> List[Participant]:
        return db.query(Participant).filter(
            Participant.event_id == event_id,
            Participant.is_active == True
        ).order_by(Participant.presentation_order, Participant.joined_at).all()

    @staticmethod
    def count_active(db: Session, event_id: str) -> int:
        return db.query(func.count(Participant.id)).filter(
            Participant.event_id == event_id,
            Participant.is_active == True
        ).scalar()

    @staticmethod
    def reassign_orders(db: Session, event_id: str, ordered_ids: Sequence[str]) -> int:
        """Set presentation_order = position (1-based) for each id of the event.

        Ids of other events are skipped. Returns how many rows were updated.
        """
        rows = db.query(Participant).filter(
            Participant.event_id == event_id,
            Participant.id.in_(list(ordered_ids))
        ).all()
        by_id = {p.id: p for p in rows}
        updated = 0
        for position, participant_id in enumerate(ordered_ids, start=1):
            participant = by_id.get(participant_id)
            if participant is None:
                continue
            participant.presentation_order = position
            updated += 1
        return updated


# -------- Category repository --------

class CategoryRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: str) -> List[Category]:
        return db.query(Category).filter(Category.event_id == event_id).order_by(Category.created_at, Category.id).all()

    @staticmethod
    def ids_for_event(db: Session, event_id: str) -> set:
        return {row[0] for row in db.query(Category.id).filter(Category.event_id == event_id).all()}


# -------- Answer / Guess / Score repositories --------

class AnswerRepo:
    @staticmethod
    def list_for_participants(db: Session, participant_ids: Iterable[str]) -> List[Answer]:
        ids = list(participant_ids)
        if not ids:
            return []
        return db.query(Answer).filter(Answer.participant_id.in_(ids)).all()

    @staticmethod
    def replace_all(db: Session, participant_id: str, values: Dict[str, str]) -> List[Answer]:
        """Delete every answer of the participant, then insert the new set"""
        db.query(Answer).filter(Answer.participant_id == participant_id).delete(synchronize_session=False)
        answers = [
            Answer(participant_id=participant_id, category_id=category_id, value=value)
            for category_id, value in values.items()
        ]
        db.add_all(answers)
        return answers

    @staticmethod
    def upsert(db: Session, participant_id: str, category_id: str, value: str) -> Answer:
        answer = db.query(Answer).filter(
            Answer.participant_id == participant_id,
            Answer.category_id == category_id
        ).first()
        if answer is None:
            answer = Answer(participant_id=participant_id, category_id=category_id, value=value)
            db.add(answer)
        else:
            answer.value = value
        return answer


class GuessRepo:
    @staticmethod
    def list_for_participants(db: Session, participant_ids: Iterable[str]) -> List[Guess]:
        ids = list(participant_ids)
        if not ids:
            return []
        return db.query(Guess).filter(Guess.participant_id.in_(ids)).all()

    @staticmethod
    def replace_for_wine(db: Session, participant_id: str, wine_number: int, values: Dict[str, str]) -> List[Guess]:
        """Replace the participant's guesses for one wine; other wines are untouched"""
        db.query(Guess).filter(
            Guess.participant_id == participant_id,
            Guess.wine_number == wine_number
        ).delete(synchronize_session=False)
        guesses = [
            Guess(participant_id=participant_id, category_id=category_id, wine_number=wine_number, value=value)
            for category_id, value in values.items()
        ]
        db.add_all(guesses)
        return guesses


class ScoreRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: str) -> List[Score]:
        return db.query(Score).filter(Score.event_id == event_id).all()

    @staticmethod
    def upsert(db: Session, event_id: str, participant_id: str, wine_number: int, value: float) -> Score:
        score = db.query(Score).filter(
            Score.event_id == event_id,
            Score.participant_id == participant_id,
            Score.wine_number == wine_number
        ).first()
        if score is None:
            score = Score(event_id=event_id, participant_id=participant_id, wine_number=wine_number, value=value)
            db.add(score)
        else:
            score.value = value
        return score
