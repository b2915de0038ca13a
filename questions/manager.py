"""
Question manager - database-backed question store.
"""
import random
from typing import Iterable, Optional
from sqlalchemy.exc import SQLAlchemyError
from database.session import db_session
from database.models import Question as QuestionRecord
from database.queries import QuestionQueries
from game.models import DifficultyUpdate, Question, QuestionStats
from questions.store import QuestionStore
from utils.errors import DatabaseError
from utils.logging import get_logger
from utils.retry import database_retry
import config

logger = get_logger(__name__)

# Raised once database_retry gives up, or by the driver outside SQLAlchemy
STORE_ERRORS = (SQLAlchemyError, ConnectionError)


def to_game_question(record: QuestionRecord) -> Question:
    """Convert a database row to an immutable game question."""
    return Question(
        id=str(record.id),
        prompt=record.text,
        answers=tuple(record.answers or ()),
        correct_answer_index=record.correct_answer_index,
        categories=frozenset(record.categories or ()),
        difficulty=record.difficulty,
    )


class QuestionManager(QuestionStore):
    """Manages question selection and calibration persistence in the database."""

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize question manager."""
        self.config = config.config
        self.rng = rng or random.Random()

    @database_retry
    def _draw(self, category, min_difficulty, max_difficulty, exclude_ids) -> Optional[Question]:
        with db_session() as session:
            candidates = QuestionQueries.get_questions_in_range(
                session,
                category,
                min_difficulty,
                max_difficulty,
                exclude_ids=exclude_ids
            )
            if not candidates:
                return None
            return to_game_question(self.rng.choice(candidates))

    def draw_question(
        self,
        category: str,
        min_difficulty: float,
        max_difficulty: float,
        exclude_ids: Iterable[str] = ()
    ) -> Optional[Question]:
        """
        Get a random question for a round.

        Args:
            category: Category the question must be tagged with
            min_difficulty: Lower difficulty bound, inclusive
            max_difficulty: Upper difficulty bound, inclusive
            exclude_ids: Questions already drawn in this game

        Returns:
            Question or None if not found
        """
        try:
            question = self._draw(category, min_difficulty, max_difficulty, list(exclude_ids))
        except STORE_ERRORS as e:
            raise DatabaseError(
                f"Failed to draw question: {e}",
                {"category": category, "min_difficulty": min_difficulty, "max_difficulty": max_difficulty}
            ) from e
        if question is None:
            logger.info(
                f"No question for {category!r} in [{min_difficulty}, {max_difficulty}]"
            )
        return question

    @database_retry
    def _load_stats(self, question_id: str) -> QuestionStats:
        with db_session() as session:
            record = QuestionQueries.get_question_by_id(session, question_id)
            if not record:
                raise DatabaseError(f"Question {question_id} not found")
            return QuestionStats(
                correct_count=record.correct_count or 0,
                incorrect_count=record.incorrect_count or 0,
                recent_history=list(record.recent_history or []),
            )

    def get_stats(self, question_id: str) -> QuestionStats:
        try:
            return self._load_stats(question_id)
        except STORE_ERRORS as e:
            raise DatabaseError(f"Failed to load stats for question {question_id}: {e}") from e

    def record_outcome(self, question_id: str, update: DifficultyUpdate) -> None:
        """Persist new difficulty, confidence, adjustment and stats."""
        try:
            with db_session() as session:
                record = QuestionQueries.update_question_stats(
                    session,
                    question_id,
                    difficulty=update.new_difficulty,
                    correct_count=update.correct_count,
                    incorrect_count=update.incorrect_count,
                    recent_history=update.recent_history,
                    confidence=update.confidence,
                    adjustment=update.adjustment,
                )
        except STORE_ERRORS as e:
            raise DatabaseError(f"Failed to record outcome for question {question_id}: {e}") from e
        if record is None:
            raise DatabaseError(f"Question {question_id} not found")
        logger.info(
            f"Question {question_id} difficulty set to {update.new_difficulty:.4f} "
            f"(adjustment {update.adjustment:+.4f}, confidence {update.confidence:.3f})"
        )
