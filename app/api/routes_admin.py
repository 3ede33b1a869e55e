"""
Admin API routes - requires the organizer token
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.event import EventCreate, AutoShuffleUpdate, CurrentWineUpdate, PlayerOrderUpdate
from app.schemas.tasting import AnswerCorrection
from app.services.collector_service import CollectorService
from app.services.event_service import EventService, event_payload
from app.services.export_service import ExportService
from app.services.notification_service import NotificationService, participants_payload
from app.services.ordering_service import OrderingService
from app.services.scoring_service import ScoringService
from app.api.ws import event_rooms
from app.utils.security import verify_admin_token
from app.utils.responses import success_response

router = APIRouter()

notifier = NotificationService(event_rooms)
ordering_service = OrderingService(notifier)
event_service = EventService(notifier, ordering_service)
collector_service = CollectorService(notifier)

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Create a new event with its guessing categories"""
    event = event_service.create_event(db, event_data)
    
    return success_response(
        message="Event created successfully",
        data={
            "event_id": event.id,
            "join_code": event.join_code
        },
        status_code=201
    )

@router.get("/events")
async def list_events(
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """All active events with their player counts"""
    return success_response(
        message="Events retrieved",
        data=EventService.list_events(db)
    )

@router.get("/events/{event_id}")
async def get_event_details(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Get detailed event information"""
    event = EventService.get_event(db, event_id)
    data = event_payload(db, event)
    data.update(EventService.event_stats(db, event_id))
    data["connection_count"] = event_rooms.connection_count(event_id)
    
    return success_response(
        message="Event details retrieved",
        data=data
    )

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Delete an event together with its players, categories and results"""
    event_service.delete_event(db, event_id)
    
    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id}
    )

@router.post("/events/{event_id}/start")
async def start_event(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    await event_service.start_event(db, event_id)
    return success_response(message="Event started successfully")

@router.put("/events/{event_id}/current-wine")
async def set_current_wine(
    event_id: str,
    wine_data: CurrentWineUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Move the tasting on to another wine"""
    event = await event_service.set_current_wine(db, event_id, wine_data.wine_number)
    return success_response(
        message="Current wine updated",
        data={"current_wine_number": event.current_wine_number}
    )

@router.put("/events/{event_id}/auto-shuffle")
async def set_auto_shuffle(
    event_id: str,
    shuffle_data: AutoShuffleUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Toggle auto shuffle; enabling it shuffles immediately"""
    event = await event_service.set_auto_shuffle(db, event_id, shuffle_data.auto_shuffle)
    return success_response(
        message="Shuffle setting updated",
        data={"auto_shuffle": event.auto_shuffle}
    )

@router.post("/events/{event_id}/shuffle")
async def shuffle_players(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Shuffle the serving order"""
    players = await ordering_service.shuffle(db, event_id)
    return success_response(
        message="Players shuffled",
        data=participants_payload(players)
    )

@router.put("/events/{event_id}/players/order")
async def reorder_players(
    event_id: str,
    order_data: PlayerOrderUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Set the serving order from a list of player ids"""
    players = await ordering_service.reorder(db, event_id, order_data.participant_ids)
    return success_response(
        message="Player order updated",
        data=participants_payload(players)
    )

@router.delete("/players/{participant_id}")
async def purge_player(
    participant_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Delete a player and everything they submitted"""
    event_id = await ordering_service.purge(db, participant_id)
    return success_response(
        message="Player deleted",
        data={"event_id": event_id, "deleted_player_id": participant_id}
    )

@router.get("/events/{event_id}/wine-guesses")
async def get_wine_guesses(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """All guesses grouped by category"""
    return success_response(
        message="Guesses retrieved",
        data=ScoringService.event_wine_guesses(db, event_id)
    )

@router.get("/events/{event_id}/category-accuracy")
async def get_category_accuracy(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """How often each category was guessed right"""
    return success_response(
        message="Category accuracy calculated",
        data=ScoringService.category_accuracy(db, event_id)
    )

@router.get("/events/{event_id}/wine-data")
async def get_wine_data(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Every player's answers next to the guesses they made"""
    return success_response(
        message="Wine data retrieved",
        data=ScoringService.wine_data(db, event_id)
    )

@router.get("/events/{event_id}/common-mistakes")
async def get_common_mistakes(
    event_id: str,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Most frequent wrong guesses per category"""
    return success_response(
        message="Common mistakes calculated",
        data=ScoringService.common_mistakes(db, event_id, limit)
    )

@router.put("/wine-answer")
async def correct_wine_answer(
    correction: AnswerCorrection,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Fix a player's answer about their own wine"""
    answer = await collector_service.correct_answer(
        db,
        correction.participant_id,
        correction.category_id,
        correction.new_answer
    )
    return success_response(
        message="Wine answer updated",
        data={
            "participant_id": answer.participant_id,
            "category_id": answer.category_id,
            "wine_answer": answer.value
        }
    )

@router.get("/events/{event_id}/export/results.xlsx")
async def export_results(
    event_id: str,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Download leaderboard, ratings and guesses as a workbook"""
    event = EventService.get_event(db, event_id)
    content = ExportService.export_results(db, event_id)
    
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=results_{event.join_code}.xlsx"}
    )
