"""
Schemas for answers, guesses, ratings and computed results
"""

from typing import List
from pydantic import BaseModel

class CategoryValue(BaseModel):
    """A value for one category, used for both answers and guesses"""
    category_id: str
    value: str

class AnswersSubmit(BaseModel):
    answers: List[CategoryValue]

class GuessesSubmit(BaseModel):
    guesses: List[CategoryValue]

class ScoreSubmit(BaseModel):
    score: float

class LeaderboardEntry(BaseModel):
    participant_id: str
    name: str
    presentation_order: int
    total_points: int
    correct_guesses: int
    total_guesses: int
    accuracy: str

class CategoryAccuracy(BaseModel):
    category_id: str
    guessing_element: str
    difficulty_factor: int
    correct_guesses: int
    total_guesses: int
    accuracy: str

class AnswerCorrection(BaseModel):
    """Organizer override of one participant answer"""
    participant_id: str
    category_id: str
    new_answer: str
