"""
Pydantic schemas package
"""

from .common import *
from .participant import *
from .event import *
from .tasting import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "CategoryCreate",
    "CategoryResponse",
    "EventCreate",
    "EventResponse",
    "EventDetail",
    "AutoShuffleUpdate",
    "CurrentWineUpdate",
    "PlayerOrderUpdate",
    "JoinRequest",
    "ParticipantResponse",
    "OrderUpdate",
    "ReadyUpdate",
    "CategoryValue",
    "AnswersSubmit",
    "GuessesSubmit",
    "ScoreSubmit",
    "LeaderboardEntry",
    "CategoryAccuracy",
    "AnswerCorrection",
]
