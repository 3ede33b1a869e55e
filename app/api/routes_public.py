"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.services.event_service import EventService, event_payload
from app.services.qr_service import QRService
from app.services.repositories import CategoryRepo
from app.services.scoring_service import ScoringService
from app.utils.responses import success_response

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events/join/{join_code}")
async def get_event_by_join_code(
    join_code: str,
    db: Session = Depends(get_db)
):
    """Look up an event by the code participants type in"""
    event = EventService.get_event_by_join_code(db, join_code)
    return success_response(
        message="Event found",
        data=event_payload(db, event)
    )

@router.get("/events/{event_id}")
async def get_event(
    event_id: str,
    db: Session = Depends(get_db)
):
    """Get an event with its categories and players"""
    event = EventService.get_event(db, event_id)
    return success_response(
        message="Event retrieved",
        data=event_payload(db, event)
    )

@router.get("/events/{event_id}/categories")
async def get_categories(
    event_id: str,
    db: Session = Depends(get_db)
):
    """Get the guessing elements of an event"""
    EventService.get_event(db, event_id)
    categories = CategoryRepo.list_for_event(db, event_id)
    return success_response(
        message="Categories retrieved",
        data=[
            {
                "id": c.id,
                "guessing_element": c.guessing_element,
                "difficulty_factor": c.difficulty_factor
            }
            for c in categories
        ]
    )

@router.get("/events/{event_id}/leaderboard")
async def get_leaderboard(
    event_id: str,
    db: Session = Depends(get_db)
):
    """Current standings and average rating per wine"""
    return success_response(
        message="Leaderboard calculated",
        data=ScoringService.get_leaderboard(db, event_id)
    )

@router.get("/events/{event_id}/qr.png")
async def get_join_qr(
    event_id: str,
    db: Session = Depends(get_db)
):
    """QR code pointing at the event's join page"""
    event = EventService.get_event(db, event_id)
    qr_bytes = QRService.generate_join_qr(event.join_code)
    
    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=join_{event.join_code}.png"}
    )
