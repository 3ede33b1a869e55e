"""
Participant-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class JoinRequest(BaseModel):
    """Join an event with its code"""
    join_code: str = Field(..., min_length=1, max_length=6)
    name: str = Field(..., min_length=1)

class ParticipantResponse(BaseModel):
    """Participant response schema"""
    id: str
    event_id: str
    name: str
    presentation_order: int
    is_ready: bool
    joined_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True

class OrderUpdate(BaseModel):
    """Move one participant to a new position"""
    presentation_order: int

class ReadyUpdate(BaseModel):
    ready: bool = True
