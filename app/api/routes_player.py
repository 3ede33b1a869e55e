"""
Player-facing API routes
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.participant import JoinRequest, OrderUpdate, ReadyUpdate
from app.schemas.tasting import AnswersSubmit, GuessesSubmit, ScoreSubmit
from app.services.collector_service import CollectorService
from app.services.event_service import EventService
from app.services.notification_service import NotificationService, participant_payload, participants_payload
from app.services.ordering_service import OrderingService
from app.services.repositories import ParticipantRepo
from app.api.ws import event_rooms
from app.utils.security import join_limiter, get_client_ip
from app.utils.responses import success_response, rate_limit_error

router = APIRouter()

notifier = NotificationService(event_rooms)
ordering_service = OrderingService(notifier)
collector_service = CollectorService(notifier)

@router.post("/join")
async def join_event(
    request: Request,
    join_data: JoinRequest,
    db: Session = Depends(get_db)
):
    """Join an event with its join code"""
    client_ip = get_client_ip(request)
    if not join_limiter.allow(client_ip):
        return rate_limit_error()
    
    participant, order = await ordering_service.join(db, join_data.join_code, join_data.name)
    
    return success_response(
        message=f"Welcome {participant.name}! You've joined the event.",
        data={
            "event_id": participant.event_id,
            "player_id": participant.id,
            "presentation_order": order
        }
    )

@router.get("/event/{event_id}")
async def list_players(
    event_id: str,
    db: Session = Depends(get_db)
):
    """Active players of an event in serving order"""
    EventService.get_event(db, event_id)
    return success_response(
        message="Players retrieved",
        data=participants_payload(ParticipantRepo.list_active(db, event_id))
    )

@router.delete("/{participant_id}")
async def leave_event(
    participant_id: str,
    db: Session = Depends(get_db)
):
    """Leave an event; the player's wine number is not reused"""
    await ordering_service.remove(db, participant_id)
    return success_response(message="Player removed")

@router.put("/{participant_id}/order")
async def update_player_order(
    participant_id: str,
    order_data: OrderUpdate,
    db: Session = Depends(get_db)
):
    """Move one player to a new presentation order"""
    participant = await ordering_service.set_order(db, participant_id, order_data.presentation_order)
    return success_response(
        message="Player order updated",
        data=participant_payload(participant)
    )

@router.put("/{participant_id}/ready")
async def set_ready(
    participant_id: str,
    ready_data: ReadyUpdate,
    db: Session = Depends(get_db)
):
    participant = await ordering_service.set_ready(db, participant_id, ready_data.ready)
    return success_response(
        message="Ready state updated",
        data=participant_payload(participant)
    )

@router.put("/{participant_id}/answers")
async def submit_answers(
    participant_id: str,
    answers_data: AnswersSubmit,
    db: Session = Depends(get_db)
):
    """Replace the details a player gave about their own wine"""
    answers = await collector_service.submit_answers(
        db,
        participant_id,
        [(a.category_id, a.value) for a in answers_data.answers]
    )
    return success_response(
        message="Wine details saved",
        data={"count": len(answers)}
    )

@router.put("/{participant_id}/guesses/{wine_number}")
async def submit_guesses(
    participant_id: str,
    wine_number: int,
    guesses_data: GuessesSubmit,
    db: Session = Depends(get_db)
):
    """Replace a player's guesses for one wine"""
    guesses = await collector_service.submit_guesses(
        db,
        participant_id,
        wine_number,
        [(g.category_id, g.value) for g in guesses_data.guesses]
    )
    return success_response(
        message="Guesses saved",
        data={"wine_number": wine_number, "count": len(guesses)}
    )

@router.put("/{participant_id}/scores/{wine_number}")
async def submit_score(
    participant_id: str,
    wine_number: int,
    score_data: ScoreSubmit,
    db: Session = Depends(get_db)
):
    """Rate a wine"""
    participant = ParticipantRepo.get_active(db, participant_id)
    event_id = participant.event_id if participant else ""
    score = await collector_service.submit_score(db, event_id, participant_id, wine_number, score_data.score)
    return success_response(
        message="Score saved",
        data={"wine_number": score.wine_number, "score": score.value}
    )
