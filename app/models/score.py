"""
Score model - a participant's numeric rating of one wine
"""

from datetime import datetime
from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.event import new_id

class Score(Base):
    __tablename__ = "scores"
    
    id = Column(String(32), primary_key=True, default=new_id)
    event_id = Column(String(32), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_id = Column(String(32), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True)
    wine_number = Column(Integer, nullable=False)
    value = Column(Float, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    event = relationship("Event", back_populates="scores")
    participant = relationship("Participant", back_populates="scores")
    
    __table_args__ = (
        UniqueConstraint("event_id", "participant_id", "wine_number", name="uq_score_event_participant_wine"),
    )
