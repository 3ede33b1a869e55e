"""
Answer model - what a participant declares about their own wine
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.event import new_id

class Answer(Base):
    __tablename__ = "answers"
    
    id = Column(String(32), primary_key=True, default=new_id)
    participant_id = Column(String(32), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String(32), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    participant = relationship("Participant", back_populates="answers")
    category = relationship("Category")
    
    __table_args__ = (
        UniqueConstraint("participant_id", "category_id", name="uq_answer_participant_category"),
    )
