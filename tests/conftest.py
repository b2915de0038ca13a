"""
Shared fixtures for Trivia Engine tests.
"""
import random
import pytest
from database.session import DatabaseSession, set_db_session
from game.constants import QUIZ_CATEGORIES, DIFFICULTY_LEVELS
from game.engine import GameEngine
from game.models import GameOptions, Player, Question
from questions.store import InMemoryQuestionStore

# Category the sparse question bank has no questions for
MISSING_CATEGORY = "Mythology and Religion"
CORRECT_INDEX = 1
WRONG_INDEX = 0


class StubRandom:
    """Predictable random source: no noise, never rolls under a probability, picks the first item."""

    def __init__(self, roll: float = 0.99, noise: float = 0.0):
        self.roll = roll
        self.noise = noise

    def uniform(self, a, b):
        return self.noise

    def random(self):
        return self.roll

    def choice(self, seq):
        return list(seq)[0]


def make_question(category: str, difficulty: float, question_id: str = None, **kwargs) -> Question:
    return Question(
        id=question_id or f"{category}-{difficulty}",
        prompt=kwargs.get("prompt", f"Question about {category}"),
        answers=kwargs.get("answers", ("A", "B", "C", "D")),
        correct_answer_index=kwargs.get("correct_answer_index", CORRECT_INDEX),
        categories=kwargs.get("categories", frozenset([category])),
        difficulty=difficulty,
    )


def build_question_bank(missing=()):
    return [
        make_question(category, difficulty)
        for category in QUIZ_CATEGORIES
        if category not in missing
        for difficulty in DIFFICULTY_LEVELS
    ]


def make_player(player_id: str, is_ai: bool = False, personality=None) -> Player:
    return Player(id=player_id, name=player_id.title(), is_ai=is_ai, personality=personality)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def question_store(rng):
    return InMemoryQuestionStore(build_question_bank(), rng=rng)


@pytest.fixture
def sparse_store(rng):
    return InMemoryQuestionStore(build_question_bank(missing=(MISSING_CATEGORY,)), rng=rng)


@pytest.fixture
def options():
    return GameOptions(
        questions_per_game=3,
        question_time_limit=5,
        selection_time_limit=5,
        i_know_powerups_per_player=2,
    )


@pytest.fixture
def humans():
    return [make_player("alice"), make_player("bob"), make_player("carol")]


@pytest.fixture
def events():
    return []


@pytest.fixture
def engine(humans, question_store, options, rng, events):
    game_engine = GameEngine(humans, question_store, options=options, rng=rng, ai_thinking_delay=0)
    game_engine.add_listener(events.append)
    return game_engine


@pytest.fixture
def database(tmp_path):
    db = DatabaseSession(f"sqlite:///{tmp_path / 'test.db'}")
    db.create_tables()
    set_db_session(db)
    yield db
    set_db_session(None)
    db.engine.dispose()
