"""
Participant model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.event import new_id

class Participant(Base):
    __tablename__ = "participants"
    
    id = Column(String(32), primary_key=True, default=new_id)
    event_id = Column(String(32), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    # Also the number of the wine this participant brought
    presentation_order = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_ready = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    event = relationship("Event", back_populates="participants")
    answers = relationship("Answer", back_populates="participant", cascade="all, delete-orphan", passive_deletes=True)
    guesses = relationship("Guess", back_populates="participant", cascade="all, delete-orphan", passive_deletes=True)
    scores = relationship("Score", back_populates="participant", cascade="all, delete-orphan", passive_deletes=True)
    
    __table_args__ = (
        Index("ix_participants_event_order", "event_id", "presentation_order"),
    )
