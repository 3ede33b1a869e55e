"""
Event model
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.orm import relationship

from app.core.db import Base

def new_id() -> str:
    return uuid.uuid4().hex

class Event(Base):
    __tablename__ = "events"
    
    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False)
    max_participants = Column(Integer, nullable=False)
    wine_type = Column(String(100), nullable=False)
    location = Column(String(255), nullable=False)
    description = Column(Text, default="")
    budget = Column(String(100), default="")
    duration = Column(String(100), default="")
    wine_notes = Column(Text, default="")
    # Uniqueness among active events is checked by the service; old codes may be reused
    join_code = Column(String(6), nullable=False, index=True)
    auto_shuffle = Column(Boolean, default=False, nullable=False)
    started = Column(Boolean, default=False, nullable=False)
    current_wine_number = Column(Integer, default=1, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    participants = relationship("Participant", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    categories = relationship("Category", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
    scores = relationship("Score", back_populates="event", cascade="all, delete-orphan", passive_deletes=True)
