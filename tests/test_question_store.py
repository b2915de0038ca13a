"""
Tests for the in-memory and database question stores.
"""
import json
import pytest
from database.queries import QuestionQueries
from database.session import db_session
from game.models import DifficultyUpdate
from questions.manager import QuestionManager
from questions.store import InMemoryQuestionStore, question_from_dict
from utils.errors import DatabaseError, ValidationError
from tests.conftest import make_question


QUESTION_DATA = {
    "id": "q-1",
    "question": "Which planet is known as the red planet?",
    "answers": ["Venus", "Mars", "Jupiter", "Saturn"],
    "correct_answer_index": 1,
    "categories": ["Natural Sciences"],
    "difficulty": 0.2,
}


def make_update(**kwargs):
    values = {
        "new_difficulty": 0.3,
        "confidence": 0.4,
        "adjustment": 0.1,
        "correct_count": 1,
        "incorrect_count": 2,
        "recent_history": [True, False, False],
    }
    values.update(kwargs)
    return DifficultyUpdate(**values)


class TestInMemoryQuestionStore:

    @pytest.fixture
    def store(self, rng):
        return InMemoryQuestionStore(
            [
                make_question("History", 0.3, "h-3"),
                make_question("History", 0.5, "h-5"),
                make_question("Geography", 0.5, "g-5"),
                make_question("History", 0.5, "hg-5", categories=["History", "Geography"]),
            ],
            rng=rng,
        )

    def test_draw_matches_category_and_range(self, store):
        for _ in range(10):
            question = store.draw_question("History", 0.4, 0.6)
            assert question.id in ("h-5", "hg-5")

    def test_draw_excludes_ids(self, store):
        assert store.draw_question("Geography", 0.4, 0.6, exclude_ids=["g-5"]).id == "hg-5"
        assert store.draw_question("Geography", 0.4, 0.6, exclude_ids=["g-5", "hg-5"]) is None

    def test_draw_nothing_matches(self, store):
        assert store.draw_question("Music and Performing Arts", 0.0, 1.0) is None
        assert store.draw_question("History", 0.8, 1.0) is None

    def test_record_outcome(self, store):
        store.record_outcome("h-3", make_update())

        assert store.get_question("h-3").difficulty == 0.3
        stats = store.get_stats("h-3")
        assert (stats.correct_count, stats.incorrect_count) == (1, 2)
        assert stats.recent_history == [True, False, False]
        assert store.confidence["h-3"] == 0.4

    def test_stats_are_copies(self, store):
        store.get_stats("h-3").recent_history.append(True)
        assert store.get_stats("h-3").recent_history == []

    def test_record_outcome_unknown_question(self, store):
        store.record_outcome("missing", make_update())
        assert store.get_question("missing") is None

    def test_from_json_file(self, tmp_path, rng):
        path = tmp_path / "questions.json"
        path.write_text(json.dumps({"questions": [QUESTION_DATA]}), encoding="utf-8")

        store = InMemoryQuestionStore.from_json_file(path, rng=rng)

        assert len(store) == 1
        question = store.get_question("q-1")
        assert question.prompt == QUESTION_DATA["question"]
        assert question.categories == frozenset(["Natural Sciences"])
        assert question.is_correct(1)


def test_question_from_dict_validation():
    assert question_from_dict(dict(QUESTION_DATA, question=None, prompt="Prompt")).prompt == "Prompt"
    with pytest.raises(ValidationError):
        question_from_dict({"id": "broken"})
    with pytest.raises(ValidationError):
        question_from_dict(dict(QUESTION_DATA, correct_answer_index=7))
    with pytest.raises(ValidationError):
        question_from_dict(dict(QUESTION_DATA, difficulty=1.5))


class TestQuestionManager:

    @pytest.fixture
    def manager(self, database, rng):
        with db_session() as session:
            QuestionQueries.add_question(
                session,
                text=QUESTION_DATA["question"],
                answers=QUESTION_DATA["answers"],
                correct_answer_index=1,
                categories=["Natural Sciences", "Geography"],
                difficulty=0.5,
                question_id="db-1",
            )
            QuestionQueries.add_question(
                session,
                text="Hardest question",
                answers=["Yes", "No"],
                correct_answer_index=0,
                categories=["Natural Sciences"],
                difficulty=0.9,
                question_id="db-2",
            )
        return QuestionManager(rng=rng)

    def test_draw_question(self, manager):
        question = manager.draw_question("Geography", 0.4, 0.6)

        assert question.id == "db-1"
        assert question.answers == tuple(QUESTION_DATA["answers"])
        assert question.categories == frozenset(["Natural Sciences", "Geography"])
        assert question.difficulty == 0.5

    def test_draw_question_filters(self, manager):
        assert manager.draw_question("Geography", 0.8, 1.0) is None
        assert manager.draw_question("Natural Sciences", 0.4, 1.0, exclude_ids=["db-1"]).id == "db-2"
        assert manager.draw_question("History", 0.0, 1.0) is None

    def test_stats_start_empty(self, manager):
        stats = manager.get_stats("db-1")
        assert stats.total_answers == 0
        assert stats.recent_history == []

    def test_record_outcome_persists(self, manager):
        manager.record_outcome("db-1", make_update())

        stats = manager.get_stats("db-1")
        assert (stats.correct_count, stats.incorrect_count) == (1, 2)
        assert stats.recent_history == [True, False, False]
        with db_session() as session:
            record = QuestionQueries.get_question_by_id(session, "db-1")
            assert record.difficulty == 0.3
            assert record.confidence == 0.4
            assert record.last_adjustment == 0.1

    def test_unknown_question(self, manager):
        with pytest.raises(DatabaseError):
            manager.get_stats("missing")
        with pytest.raises(DatabaseError):
            manager.record_outcome("missing", make_update())

    def test_count_questions(self, manager):
        with db_session() as session:
            assert QuestionQueries.count_questions(session) == 2

    def test_draw_matches_whole_category_names(self, manager):
        assert manager.draw_question("Sciences", 0.0, 1.0) is None
        with db_session() as session:
            found = QuestionQueries.get_questions_in_range(session, "Natural Sciences", 0.0, 1.0, limit=1)
            assert len(found) == 1

    def test_connection_errors_are_wrapped(self, manager, monkeypatch):
        def reset(*args, **kwargs):
            raise ConnectionError("connection reset")

        monkeypatch.setattr(manager, "_draw", reset)
        monkeypatch.setattr(manager, "_load_stats", reset)

        with pytest.raises(DatabaseError):
            manager.draw_question("Geography", 0.0, 1.0)
        with pytest.raises(DatabaseError):
            manager.get_stats("db-1")
