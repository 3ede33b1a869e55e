"""
Database models package
"""

from .event import Event
from .participant import Participant
from .category import Category
from .answer import Answer
from .guess import Guess
from .score import Score

__all__ = ["Event", "Participant", "Category", "Answer", "Guess", "Score"]
