"""
Excel export of a tasting's results
"""

import io
from typing import Dict, List

import pandas as pd
from sqlalchemy.orm import Session

from app.services.scoring_service import ScoringService, TastingSnapshot

class ExportService:
    """Service for building the organizer's results workbook"""
    
    LEADERBOARD_COLUMNS = ['Rank', 'Name', 'Wine No.', 'Points', 'Correct', 'Guesses', 'Accuracy %']
    AVERAGE_COLUMNS = ['Wine No.', 'Brought By', 'Average Rating', 'Ratings']
    GUESS_COLUMNS = ['Category', 'Guessed By', 'Wine No.', 'Guess', 'Answer', 'Correct']
    
    @staticmethod
    def leaderboard_frame(snapshot: TastingSnapshot) -> pd.DataFrame:
        rows = [
            [rank, e.name, e.presentation_order, e.total_points, e.correct_guesses, e.total_guesses, float(e.accuracy)]
            for rank, e in enumerate(ScoringService.build_leaderboard(snapshot), start=1)
        ]
        return pd.DataFrame(rows, columns=ExportService.LEADERBOARD_COLUMNS)
    
    @staticmethod
    def averages_frame(snapshot: TastingSnapshot) -> pd.DataFrame:
        owners: Dict[int, List[str]] = {}
        for p in snapshot.participants:
            owners.setdefault(p.presentation_order, []).append(p.name)
        counts: Dict[int, int] = {}
        for s in snapshot.scores:
            counts[s.wine_number] = counts.get(s.wine_number, 0) + 1
        
        rows = [
            [wine_number, ", ".join(owners.get(wine_number, [])), average, counts.get(wine_number, 0)]
            for wine_number, average in ScoringService.wine_averages(snapshot).items()
        ]
        return pd.DataFrame(rows, columns=ExportService.AVERAGE_COLUMNS)
    
    @staticmethod
    def guesses_frame(snapshot: TastingSnapshot) -> pd.DataFrame:
        categories = {c.id: c.guessing_element for c in snapshot.categories}
        names = {p.id: p.name for p in snapshot.participants}
        answers = {(a.participant_id, a.category_id): a.value for a in snapshot.answers}
        
        rows = [
            [
                categories.get(guess.category_id, ''),
                names.get(guess.participant_id, ''),
                guess.wine_number,
                guess.value,
                answers.get((owner.id, guess.category_id), ''),
                'Yes' if correct else 'No',
            ]
            for guess, owner, correct in ScoringService.evaluate_guesses(snapshot)
        ]
        df = pd.DataFrame(rows, columns=ExportService.GUESS_COLUMNS)
        return df.sort_values(['Category', 'Wine No.', 'Guessed By'], kind='stable').reset_index(drop=True)
    
    @staticmethod
    def export_results(db: Session, event_id: str) -> bytes:
        """Workbook with Leaderboard, Wine Averages and Guesses sheets"""
        snapshot = ScoringService.load_snapshot(db, event_id)
        
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            ExportService.leaderboard_frame(snapshot).to_excel(writer, index=False, sheet_name='Leaderboard')
            ExportService.averages_frame(snapshot).to_excel(writer, index=False, sheet_name='Wine Averages')
            ExportService.guesses_frame(snapshot).to_excel(writer, index=False, sheet_name='Guesses')
        
        return buffer.getvalue()
