"""
Scoring engine: leaderboard, wine averages and guess views for one event.

Nothing here writes. Every public entry point loads a TastingSnapshot from
one session and derives its result from that snapshot alone, so the answers,
guesses and participants it compares were all read together.

Guesses are joined to answers by position: a guess for wine N is compared
with the answers of whichever active participant currently has
presentation_order N. This is how the game is meant to work.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterator, List, Tuple

from sqlalchemy.orm import Session

from app.core.errors import EventNotFoundError
from app.models import Answer, Category, Event, Guess, Participant, Score
from app.schemas.tasting import CategoryAccuracy, LeaderboardEntry
from app.services.repositories import (
    AnswerRepo,
    CategoryRepo,
    EventRepo,
    GuessRepo,
    ParticipantRepo,
    ScoreRepo,
)

logger = logging.getLogger(__name__)


@dataclass
class TastingSnapshot:
    """Everything the scoring engine reads for one event"""
    event: Event
    participants: List[Participant]
    categories: List[Category]
    answers: List[Answer] = field(default_factory=list)
    guesses: List[Guess] = field(default_factory=list)
    scores: List[Score] = field(default_factory=list)


TENTH = Decimal("0.1")


def format_accuracy(correct: int, total: int) -> str:
    """Percentage with one decimal, ties rounded up (1 of 16 gives 6.3)"""
    if total == 0:
        return "0.0"
    percent = Decimal(correct) * 100 / Decimal(total)
    return str(percent.quantize(TENTH, rounding=ROUND_HALF_UP))


def average_tenths(values: List[float]) -> float:
    """Mean rounded to one decimal, ties rounded up"""
    total = sum(Decimal(repr(v)) for v in values)
    return float((total / len(values)).quantize(TENTH, rounding=ROUND_HALF_UP))


def guess_matches(guess_value: str, answer_value: str) -> bool:
    """Case-insensitive exact match, no trimming"""
    return guess_value.lower() == answer_value.lower()


class ScoringService:
    """Derived views over a tasting's answers, guesses and scores"""

    @staticmethod
    def load_snapshot(db: Session, event_id: str) -> TastingSnapshot:
        """Read all scoring inputs of an event in one session"""
        event = EventRepo.get_active(db, event_id)
        if not event:
            raise EventNotFoundError(event_id)

        participants = ParticipantRepo.list_active(db, event_id)
        participant_ids = [p.id for p in participants]
        active = set(participant_ids)
        return TastingSnapshot(
            event=event,
            participants=participants,
            categories=CategoryRepo.list_for_event(db, event_id),
            answers=AnswerRepo.list_for_participants(db, participant_ids),
            guesses=GuessRepo.list_for_participants(db, participant_ids),
            scores=[s for s in ScoreRepo.list_for_event(db, event_id) if s.participant_id in active],
        )

    # -------- core comparison --------

    @staticmethod
    def evaluate_guesses(snapshot: TastingSnapshot) -> Iterator[Tuple[Guess, Participant, bool]]:
        """Yield (guess, wine owner, correct) for every guess that targets an active wine.

        For each guesser and each wine owner (the guesser's own wine included),
        the guesser's guesses with wine_number == owner.presentation_order are
        compared against the owner's answer in the same category. A missing
        answer makes the guess incorrect. Rows that cannot be compared are
        skipped and logged.
        """
        answers_by_owner: Dict[str, Dict[str, str]] = defaultdict(dict)
        for answer in snapshot.answers:
            answers_by_owner[answer.participant_id][answer.category_id] = answer.value

        guesses_by_guesser: Dict[str, Dict[int, List[Guess]]] = defaultdict(lambda: defaultdict(list))
        for guess in snapshot.guesses:
            guesses_by_guesser[guess.participant_id][guess.wine_number].append(guess)

        for guesser in snapshot.participants:
            by_wine = guesses_by_guesser.get(guesser.id)
            if not by_wine:
                continue
            for owner in snapshot.participants:
                owner_answers = answers_by_owner.get(owner.id, {})
                for guess in by_wine.get(owner.presentation_order, []):
                    answer_value = owner_answers.get(guess.category_id)
                    try:
                        correct = answer_value is not None and guess_matches(guess.value, answer_value)
                    except (AttributeError, TypeError) as e:
                        logger.warning(
                            f"Skipping malformed guess {guess.id} in event {snapshot.event.id}: {e}"
                        )
                        continue
                    yield guess, owner, correct

    # -------- leaderboard --------

    @staticmethod
    def build_leaderboard(snapshot: TastingSnapshot) -> List[LeaderboardEntry]:
        """One row per active participant, best first.

        Sorted by total_points descending, then accuracy descending, then
        presentation_order ascending, so equal scores always come out in the
        same order.
        """
        difficulty = {c.id: c.difficulty_factor for c in snapshot.categories}
        totals = {p.id: {"points": 0, "correct": 0, "guesses": 0} for p in snapshot.participants}

        for guess, _owner, correct in ScoringService.evaluate_guesses(snapshot):
            row = totals[guess.participant_id]
            row["guesses"] += 1
            if correct:
                row["correct"] += 1
                # Unknown category: counted, worth nothing
                row["points"] += difficulty.get(guess.category_id) or 0

        leaderboard = [
            LeaderboardEntry(
                participant_id=p.id,
                name=p.name,
                presentation_order=p.presentation_order,
                total_points=totals[p.id]["points"],
                correct_guesses=totals[p.id]["correct"],
                total_guesses=totals[p.id]["guesses"],
                accuracy=format_accuracy(totals[p.id]["correct"], totals[p.id]["guesses"]),
            )
            for p in snapshot.participants
        ]
        leaderboard.sort(key=lambda e: (-e.total_points, -float(e.accuracy), e.presentation_order))
        return leaderboard

    @staticmethod
    def wine_averages(snapshot: TastingSnapshot) -> Dict[int, float]:
        """Average rating per wine number, rounded to one decimal"""
        grouped: Dict[int, List[float]] = defaultdict(list)
        for score in snapshot.scores:
            if score.value is None:
                continue
            grouped[score.wine_number].append(score.value)
        return {
            wine_number: average_tenths(values)
            for wine_number, values in sorted(grouped.items())
        }

    @staticmethod
    def get_leaderboard(db: Session, event_id: str) -> Dict:
        snapshot = ScoringService.load_snapshot(db, event_id)
        return {
            "leaderboard": [entry.model_dump() for entry in ScoringService.build_leaderboard(snapshot)],
            "wine_averages": ScoringService.wine_averages(snapshot),
        }

    # -------- organizer views --------

    @staticmethod
    def build_wine_guesses(snapshot: TastingSnapshot) -> List[Dict]:
        """Guesses grouped by category, for organizer review"""
        guessers = {p.id: p for p in snapshot.participants}
        by_category: Dict[str, List[Guess]] = defaultdict(list)
        for guess in snapshot.guesses:
            by_category[guess.category_id].append(guess)

        result = []
        for category in snapshot.categories:
            rows = [
                {
                    "guess_id": g.id,
                    "participant_id": g.participant_id,
                    "player_name": guessers[g.participant_id].name,
                    "presentation_order": guessers[g.participant_id].presentation_order,
                    "wine_number": g.wine_number,
                    "guess": g.value,
                }
                for g in by_category.get(category.id, [])
                if g.participant_id in guessers
            ]
            rows.sort(key=lambda r: (r["presentation_order"], r["wine_number"]))
            result.append({
                "category_id": category.id,
                "guessing_element": category.guessing_element,
                "difficulty_factor": category.difficulty_factor,
                "guesses": rows,
            })
        return result

    @staticmethod
    def build_category_accuracy(snapshot: TastingSnapshot) -> List[CategoryAccuracy]:
        counts = {c.id: [0, 0] for c in snapshot.categories}
        for guess, _owner, correct in ScoringService.evaluate_guesses(snapshot):
            bucket = counts.get(guess.category_id)
            if bucket is None:
                continue
            bucket[1] += 1
            if correct:
                bucket[0] += 1

        return [
            CategoryAccuracy(
                category_id=c.id,
                guessing_element=c.guessing_element,
                difficulty_factor=c.difficulty_factor,
                correct_guesses=counts[c.id][0],
                total_guesses=counts[c.id][1],
                accuracy=format_accuracy(counts[c.id][0], counts[c.id][1]),
            )
            for c in snapshot.categories
        ]

    @staticmethod
    def event_wine_guesses(db: Session, event_id: str) -> List[Dict]:
        return ScoringService.build_wine_guesses(ScoringService.load_snapshot(db, event_id))

    @staticmethod
    def category_accuracy(db: Session, event_id: str) -> List[Dict]:
        snapshot = ScoringService.load_snapshot(db, event_id)
        return [row.model_dump() for row in ScoringService.build_category_accuracy(snapshot)]

    @staticmethod
    def build_wine_data(snapshot: TastingSnapshot) -> Dict:
        """Each player's answers about their own wine beside the guesses they made"""
        answers: Dict[str, List[Answer]] = defaultdict(list)
        for a in snapshot.answers:
            answers[a.participant_id].append(a)
        guesses: Dict[str, List[Guess]] = defaultdict(list)
        for g in snapshot.guesses:
            guesses[g.participant_id].append(g)

        return {
            "event_id": snapshot.event.id,
            "categories": [
                {"id": c.id, "guessing_element": c.guessing_element, "difficulty_factor": c.difficulty_factor}
                for c in snapshot.categories
            ],
            "wine_answers": [
                {
                    "participant_id": p.id,
                    "player_name": p.name,
                    "presentation_order": p.presentation_order,
                    "answers": [
                        {"category_id": a.category_id, "wine_answer": a.value}
                        for a in sorted(answers[p.id], key=lambda a: a.category_id)
                    ],
                }
                for p in snapshot.participants
            ],
            "wine_guesses": [
                {
                    "participant_id": p.id,
                    "player_name": p.name,
                    "guesses": [
                        {"category_id": g.category_id, "guess": g.value, "wine_number": g.wine_number}
                        for g in sorted(guesses[p.id], key=lambda g: (g.wine_number, g.category_id))
                    ],
                }
                for p in snapshot.participants
            ],
        }

    @staticmethod
    def build_common_mistakes(snapshot: TastingSnapshot) -> List[Dict]:
        """Wrong guesses against a known answer, grouped and counted, most frequent first.

        Grouping ignores case; the first spelling seen is the one reported.
        """
        names = {c.id: c.guessing_element for c in snapshot.categories}
        answers = {(a.participant_id, a.category_id): a.value for a in snapshot.answers}
        groups: Dict[Tuple[str, str, str], Dict] = {}

        for guess, owner, correct in ScoringService.evaluate_guesses(snapshot):
            answer = answers.get((owner.id, guess.category_id))
            if correct or answer is None or guess.category_id not in names:
                continue
            key = (guess.category_id, answer.lower(), guess.value.lower())
            if key not in groups:
                groups[key] = {
                    "category_id": guess.category_id,
                    "category_name": names[guess.category_id],
                    "correct_answer": answer,
                    "wrong_guess": guess.value,
                    "count": 0,
                }
            groups[key]["count"] += 1

        return sorted(
            groups.values(),
            key=lambda m: (-m["count"], m["category_name"], m["wrong_guess"].lower()),
        )

    @staticmethod
    def wine_data(db: Session, event_id: str) -> Dict:
        return ScoringService.build_wine_data(ScoringService.load_snapshot(db, event_id))

    @staticmethod
    def common_mistakes(db: Session, event_id: str, limit: int = 10) -> List[Dict]:
        return ScoringService.build_common_mistakes(ScoringService.load_snapshot(db, event_id))[:limit]

    # -------- consolidated update --------

    @staticmethod
    def build_event_update(snapshot: TastingSnapshot) -> Dict:
        """State pushed to every client after a scoring-relevant change"""
        event = snapshot.event
        current = event.current_wine_number
        participants = {p.id: p for p in snapshot.participants}
        categories = {c.id: c for c in snapshot.categories}

        scores = [
            {
                "id": s.id,
                "participant_id": s.participant_id,
                "player_name": participants[s.participant_id].name,
                "presentation_order": participants[s.participant_id].presentation_order,
                "wine_number": s.wine_number,
                "score": s.value,
            }
            for s in snapshot.scores
        ]
        scores.sort(key=lambda r: (r["wine_number"], r["presentation_order"]))

        guesses = [
            {
                "id": g.id,
                "participant_id": g.participant_id,
                "player_name": participants[g.participant_id].name,
                "presentation_order": participants[g.participant_id].presentation_order,
                "category_id": g.category_id,
                "guessing_element": categories[g.category_id].guessing_element if g.category_id in categories else None,
                "wine_number": g.wine_number,
                "guess": g.value,
            }
            for g in snapshot.guesses
        ]
        guesses.sort(key=lambda r: (r["wine_number"], r["presentation_order"]))

        current_scores = [s["score"] for s in scores if s["wine_number"] == current]
        average = average_tenths(current_scores) if current_scores else 0.0

        return {
            "current_wine_number": current,
            "event_started": bool(event.started),
            "average_score": average,
            "score_count": len(current_scores),
            "scores": scores,
            "guesses": guesses,
            "leaderboard": [e.model_dump() for e in ScoringService.build_leaderboard(snapshot)],
            "wine_averages": ScoringService.wine_averages(snapshot),
        }

    @staticmethod
    def event_update(db: Session, event_id: str) -> Dict:
        return ScoringService.build_event_update(ScoringService.load_snapshot(db, event_id))
