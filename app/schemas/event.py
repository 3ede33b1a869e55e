"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from app.schemas.participant import ParticipantResponse

class CategoryCreate(BaseModel):
    """One guessable attribute supplied at event creation"""
    guessing_element: str = Field(..., min_length=1, max_length=100)
    difficulty_factor: int = Field(1, ge=1)

class CategoryResponse(BaseModel):
    id: str
    guessing_element: str
    difficulty_factor: int
    
    class Config:
        from_attributes = True

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str = Field(..., min_length=1, max_length=255)
    date: datetime
    max_participants: int = Field(..., ge=1)
    wine_type: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    description: str = ""
    budget: str = ""
    duration: str = ""
    wine_notes: str = ""
    categories: List[CategoryCreate] = []

class EventResponse(BaseModel):
    """Basic event response"""
    id: str
    name: str
    date: datetime
    max_participants: int
    wine_type: str
    location: str
    description: Optional[str] = ""
    budget: Optional[str] = ""
    duration: Optional[str] = ""
    wine_notes: Optional[str] = ""
    join_code: str
    auto_shuffle: bool
    started: bool
    current_wine_number: int
    created_at: datetime
    
    class Config:
        from_attributes = True

class EventDetail(EventResponse):
    """Event with its categories and active participants"""
    categories: List[CategoryResponse] = []
    players: List[ParticipantResponse] = []

class AutoShuffleUpdate(BaseModel):
    auto_shuffle: bool

class CurrentWineUpdate(BaseModel):
    wine_number: int

class PlayerOrderUpdate(BaseModel):
    """Full serving order as a list of participant ids"""
    participant_ids: List[str]
