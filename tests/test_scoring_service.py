"""
Tests for the scoring engine
"""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base, enable_sqlite_foreign_keys
from app.core.errors import EventNotFoundError
from app.models import Answer, Category, Event, Guess, Participant, Score
from app.services.scoring_service import ScoringService, TastingSnapshot, format_accuracy

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_scoring.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def tasting(db_session):
    """Two players, one category 'Grape' worth 2 points"""
    event = Event(
        name="Friday Tasting",
        date=datetime(2024, 9, 6, 19, 0),
        max_participants=8,
        wine_type="Red",
        location="Copenhagen",
        join_code="123456"
    )
    db_session.add(event)
    db_session.flush()
    
    grape = Category(event_id=event.id, guessing_element="Grape", difficulty_factor=2)
    alice = Participant(event_id=event.id, name="Alice", presentation_order=1)
    bob = Participant(event_id=event.id, name="Bob", presentation_order=2)
    db_session.add_all([grape, alice, bob])
    db_session.commit()
    return {"event": event, "grape": grape, "alice": alice, "bob": bob}

def _entry(leaderboard, name):
    return next(e for e in leaderboard["leaderboard"] if e["name"] == name)

def test_correct_guess_scores_difficulty_points(db_session, tasting):
    """Bob guesses Alice's wine right and gets the category's points"""
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Merlot"))
    db_session.commit()
    
    result = ScoringService.get_leaderboard(db_session, tasting["event"].id)
    
    bob = _entry(result, "Bob")
    assert bob["total_points"] == 2
    assert bob["correct_guesses"] == 1
    assert bob["total_guesses"] == 1
    assert bob["accuracy"] == "100.0"
    
    alice = _entry(result, "Alice")
    assert alice["total_points"] == 0
    assert alice["total_guesses"] == 0
    assert alice["accuracy"] == "0.0"
    
    assert [e["name"] for e in result["leaderboard"]] == ["Bob", "Alice"]

def test_guess_matching_ignores_case(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="merlot"))
    db_session.commit()
    
    bob = _entry(ScoringService.get_leaderboard(db_session, tasting["event"].id), "Bob")
    assert bob["correct_guesses"] == 1
    assert bob["total_points"] == 2

def test_guess_matching_does_not_trim(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Merlot "))
    db_session.commit()
    
    bob = _entry(ScoringService.get_leaderboard(db_session, tasting["event"].id), "Bob")
    assert bob["correct_guesses"] == 0
    assert bob["total_guesses"] == 1

def test_guess_without_answer_counts_but_is_wrong(db_session, tasting):
    """Partially completed tastings still score"""
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Merlot"))
    db_session.commit()
    
    bob = _entry(ScoringService.get_leaderboard(db_session, tasting["event"].id), "Bob")
    assert bob["total_guesses"] == 1
    assert bob["correct_guesses"] == 0
    assert bob["accuracy"] == "0.0"

def test_guess_on_own_wine_is_counted(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, wine_number=1, value="MERLOT"))
    db_session.commit()
    
    alice = _entry(ScoringService.get_leaderboard(db_session, tasting["event"].id), "Alice")
    assert alice["total_points"] == 2
    assert alice["correct_guesses"] == 1

def test_guesses_follow_serving_position(db_session, tasting):
    """A guess for wine 1 is judged against whoever serves wine 1 now"""
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Answer(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, value="Syrah"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Syrah"))
    db_session.commit()
    
    bob = _entry(ScoringService.get_leaderboard(db_session, tasting["event"].id), "Bob")
    assert bob["correct_guesses"] == 0
    
    tasting["alice"].presentation_order = 2
    tasting["bob"].presentation_order = 1
    db_session.commit()
    
    bob = _entry(ScoringService.get_leaderboard(db_session, tasting["event"].id), "Bob")
    assert bob["correct_guesses"] == 1

def test_inactive_participants_are_left_out(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Merlot"))
    tasting["alice"].is_active = False
    db_session.commit()
    
    result = ScoringService.get_leaderboard(db_session, tasting["event"].id)
    assert [e["name"] for e in result["leaderboard"]] == ["Bob"]
    # Wine 1 no longer has an active owner
    assert result["leaderboard"][0]["total_guesses"] == 0

def test_wine_averages(db_session, tasting):
    event_id = tasting["event"].id
    db_session.add_all([
        Score(event_id=event_id, participant_id=tasting["alice"].id, wine_number=2, value=3),
        Score(event_id=event_id, participant_id=tasting["bob"].id, wine_number=2, value=3.5),
        Score(event_id=event_id, participant_id=tasting["bob"].id, wine_number=1, value=4.5),
    ])
    db_session.commit()
    
    averages = ScoringService.get_leaderboard(db_session, event_id)["wine_averages"]
    # 3.25 rounds up
    assert averages == {1: 4.5, 2: 3.3}

def test_event_wine_guesses_groups_by_category(db_session, tasting):
    event_id = tasting["event"].id
    country = Category(event_id=event_id, guessing_element="Country", difficulty_factor=1)
    db_session.add(country)
    db_session.flush()
    db_session.add_all([
        Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Merlot"),
        Guess(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, wine_number=2, value="Syrah"),
        Guess(participant_id=tasting["alice"].id, category_id=country.id, wine_number=2, value="France"),
    ])
    db_session.commit()
    
    view = ScoringService.event_wine_guesses(db_session, event_id)
    by_element = {c["guessing_element"]: c for c in view}
    
    grape_rows = by_element["Grape"]["guesses"]
    assert [(r["player_name"], r["wine_number"]) for r in grape_rows] == [("Alice", 2), ("Bob", 1)]
    assert grape_rows[0]["presentation_order"] == 1
    assert [r["guess"] for r in by_element["Country"]["guesses"]] == ["France"]

def test_category_accuracy(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Answer(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, value="Syrah"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, wine_number=2, value="Pinot"))
    db_session.commit()
    
    rows = ScoringService.category_accuracy(db_session, tasting["event"].id)
    assert len(rows) == 1
    assert rows[0]["guessing_element"] == "Grape"
    assert rows[0]["correct_guesses"] == 1
    assert rows[0]["total_guesses"] == 2
    assert rows[0]["accuracy"] == "50.0"

def test_event_update_reports_current_wine(db_session, tasting):
    event_id = tasting["event"].id
    db_session.add_all([
        Score(event_id=event_id, participant_id=tasting["alice"].id, wine_number=1, value=4),
        Score(event_id=event_id, participant_id=tasting["bob"].id, wine_number=1, value=4.5),
        Score(event_id=event_id, participant_id=tasting["bob"].id, wine_number=2, value=2),
    ])
    db_session.commit()
    
    update = ScoringService.event_update(db_session, event_id)
    assert update["current_wine_number"] == 1
    assert update["event_started"] is False
    assert update["average_score"] == 4.3
    assert update["score_count"] == 2
    assert len(update["scores"]) == 3
    assert update["scores"][0]["player_name"] == "Alice"
    assert len(update["leaderboard"]) == 2

def test_unknown_event(db_session):
    with pytest.raises(EventNotFoundError):
        ScoringService.get_leaderboard(db_session, "missing")

# -------- snapshot-only tests, no database --------

def _snapshot(participants, categories, answers=(), guesses=(), scores=()):
    event = Event(id="evt", name="Snapshot", current_wine_number=1, started=True)
    return TastingSnapshot(
        event=event,
        participants=list(participants),
        categories=list(categories),
        answers=list(answers),
        guesses=list(guesses),
        scores=list(scores),
    )

def test_format_accuracy():
    assert format_accuracy(0, 0) == "0.0"
    assert format_accuracy(1, 3) == "33.3"
    assert format_accuracy(2, 3) == "66.7"
    assert format_accuracy(4, 4) == "100.0"
    # Exact ties round up
    assert format_accuracy(1, 16) == "6.3"
    assert format_accuracy(5, 16) == "31.3"
    assert format_accuracy(1, 8) == "12.5"

def test_leaderboard_is_sorted_with_deterministic_ties():
    players = [Participant(id=f"p{i}", name=f"P{i}", presentation_order=i) for i in range(1, 5)]
    grape = Category(id="c1", guessing_element="Grape", difficulty_factor=3)
    answers = [Answer(participant_id=p.id, category_id="c1", value=f"wine{p.presentation_order}") for p in players]
    guesses = [
        # p4: one right out of one -> 3 points, 100%
        Guess(id="g1", participant_id="p4", category_id="c1", wine_number=1, value="wine1"),
        # p2: one right out of two -> 3 points, 50%
        Guess(id="g2", participant_id="p2", category_id="c1", wine_number=1, value="wine1"),
        Guess(id="g3", participant_id="p2", category_id="c1", wine_number=3, value="nope"),
    ]
    leaderboard = ScoringService.build_leaderboard(_snapshot(players, [grape], answers, guesses))
    
    assert [e.participant_id for e in leaderboard] == ["p4", "p2", "p1", "p3"]
    points = [e.total_points for e in leaderboard]
    assert points == sorted(points, reverse=True)

def test_malformed_guess_is_skipped():
    players = [Participant(id="a", name="A", presentation_order=1), Participant(id="b", name="B", presentation_order=2)]
    grape = Category(id="c1", guessing_element="Grape", difficulty_factor=1)
    answers = [Answer(participant_id="a", category_id="c1", value="Merlot")]
    guesses = [
        Guess(id="bad", participant_id="b", category_id="c1", wine_number=1, value=None),
        Guess(id="ok", participant_id="b", category_id="c1", wine_number=1, value="merlot"),
    ]
    leaderboard = ScoringService.build_leaderboard(_snapshot(players, [grape], answers, guesses))
    b = next(e for e in leaderboard if e.participant_id == "b")
    
    assert b.total_guesses == 1
    assert b.correct_guesses == 1

def test_guess_for_unknown_category_earns_no_points():
    players = [Participant(id="a", name="A", presentation_order=1), Participant(id="b", name="B", presentation_order=2)]
    answers = [Answer(participant_id="a", category_id="gone", value="Merlot")]
    guesses = [Guess(id="g", participant_id="b", category_id="gone", wine_number=1, value="Merlot")]
    leaderboard = ScoringService.build_leaderboard(_snapshot(players, [], answers, guesses))
    b = next(e for e in leaderboard if e.participant_id == "b")
    
    assert b.total_points == 0
    assert b.total_guesses == 1

def test_guess_for_wine_nobody_serves_is_ignored():
    players = [Participant(id="a", name="A", presentation_order=1)]
    grape = Category(id="c1", guessing_element="Grape", difficulty_factor=1)
    guesses = [Guess(id="g", participant_id="a", category_id="c1", wine_number=7, value="Merlot")]
    leaderboard = ScoringService.build_leaderboard(_snapshot(players, [grape], guesses=guesses))
    
    assert leaderboard[0].total_guesses == 0

def test_wine_averages_round_to_one_decimal():
    scores = [
        Score(participant_id="a", wine_number=3, value=3),
        Score(participant_id="b", wine_number=3, value=4),
        Score(participant_id="c", wine_number=3, value=4),
    ]
    assert ScoringService.wine_averages(_snapshot([], [], scores=scores)) == {3: 3.7}

def test_players_sharing_a_position_are_both_judged():
    """After a leave and a join two players can serve the same wine number"""
    players = [
        Participant(id="a", name="A", presentation_order=1),
        Participant(id="b", name="B", presentation_order=2),
        Participant(id="c", name="C", presentation_order=2),
    ]
    grape = Category(id="c1", guessing_element="Grape", difficulty_factor=2)
    answers = [
        Answer(participant_id="b", category_id="c1", value="Syrah"),
        Answer(participant_id="c", category_id="c1", value="Syrah"),
    ]
    guesses = [Guess(id="g", participant_id="a", category_id="c1", wine_number=2, value="syrah")]
    leaderboard = ScoringService.build_leaderboard(_snapshot(players, [grape], answers, guesses))
    a = next(e for e in leaderboard if e.participant_id == "a")
    
    assert a.total_guesses == 2
    assert a.total_points == 4

def test_wine_data_lists_answers_beside_guesses(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Syrah"))
    db_session.commit()
    
    data = ScoringService.wine_data(db_session, tasting["event"].id)
    
    assert data["event_id"] == tasting["event"].id
    assert [c["guessing_element"] for c in data["categories"]] == ["Grape"]
    answers = {row["player_name"]: row["answers"] for row in data["wine_answers"]}
    assert answers == {
        "Alice": [{"category_id": tasting["grape"].id, "wine_answer": "Merlot"}],
        "Bob": [],
    }
    guesses = {row["player_name"]: row["guesses"] for row in data["wine_guesses"]}
    assert guesses["Bob"] == [{"category_id": tasting["grape"].id, "guess": "Syrah", "wine_number": 1}]
    assert guesses["Alice"] == []

def test_common_mistakes_are_counted_and_ranked():
    players = [Participant(id=p, name=p.upper(), presentation_order=i) for i, p in enumerate("abcd", start=1)]
    grape = Category(id="c1", guessing_element="Grape", difficulty_factor=1)
    country = Category(id="c2", guessing_element="Country", difficulty_factor=1)
    answers = [
        Answer(participant_id="a", category_id="c1", value="Merlot"),
        Answer(participant_id="a", category_id="c2", value="France"),
    ]
    guesses = [
        Guess(id="g1", participant_id="b", category_id="c1", wine_number=1, value="Syrah"),
        Guess(id="g2", participant_id="c", category_id="c1", wine_number=1, value="syrah"),
        Guess(id="g3", participant_id="d", category_id="c1", wine_number=1, value="Merlot"),
        Guess(id="g4", participant_id="b", category_id="c2", wine_number=1, value="Italy"),
        # Wine 2 has no answer yet, so nothing to be wrong about
        Guess(id="g5", participant_id="c", category_id="c1", wine_number=2, value="Pinot"),
    ]
    mistakes = ScoringService.build_common_mistakes(_snapshot(players, [grape, country], answers, guesses))
    
    assert mistakes == [
        {"category_id": "c1", "category_name": "Grape", "correct_answer": "Merlot", "wrong_guess": "Syrah", "count": 2},
        {"category_id": "c2", "category_name": "Country", "correct_answer": "France", "wrong_guess": "Italy", "count": 1},
    ]

def test_common_mistakes_limit(db_session, tasting):
    db_session.add(Answer(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, value="Merlot"))
    db_session.add(Guess(participant_id=tasting["bob"].id, category_id=tasting["grape"].id, wine_number=1, value="Syrah"))
    db_session.add(Guess(participant_id=tasting["alice"].id, category_id=tasting["grape"].id, wine_number=1, value="Gamay"))
    db_session.commit()
    
    assert len(ScoringService.common_mistakes(db_session, tasting["event"].id)) == 2
    assert len(ScoringService.common_mistakes(db_session, tasting["event"].id, limit=1)) == 1
