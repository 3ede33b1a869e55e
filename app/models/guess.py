"""
Guess model

wine_number points at the target participant's presentation_order, not at a
participant id. A guess stays attached to a serving position when the order
changes mid-event.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.event import new_id

class Guess(Base):
    __tablename__ = "guesses"
    
    id = Column(String(32), primary_key=True, default=new_id)
    participant_id = Column(String(32), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String(32), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    wine_number = Column(Integer, nullable=False)
    value = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    participant = relationship("Participant", back_populates="guesses")
    category = relationship("Category")
    
    __table_args__ = (
        UniqueConstraint("participant_id", "category_id", "wine_number", name="uq_guess_participant_category_wine"),
    )
