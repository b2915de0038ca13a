"""
Question store interface and an in-memory implementation.
"""
import json
import random
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
from game.models import DifficultyUpdate, Question, QuestionStats
from utils.errors import ValidationError
from utils.logging import get_logger

logger = get_logger(__name__)


class QuestionStore(ABC):
    """Narrow read/write interface the game engine uses for questions."""

    @abstractmethod
    def draw_question(
        self,
        category: str,
        min_difficulty: float,
        max_difficulty: float,
        exclude_ids: Iterable[str] = ()
    ) -> Optional[Question]:
        """
        Draw a random question tagged with the category whose difficulty
        lies within [min_difficulty, max_difficulty].

        Returns:
            Question or None if nothing matches
        """

    @abstractmethod
    def get_stats(self, question_id: str) -> QuestionStats:
        """Get the answer statistics of a question."""

    @abstractmethod
    def record_outcome(self, question_id: str, update: DifficultyUpdate) -> None:
        """Persist a calibration result: difficulty, confidence and updated stats."""


def question_from_dict(data: dict) -> Question:
    """Build a Question from a JSON-like dict."""
    try:
        return Question(
            id=str(data["id"]),
            prompt=data.get("question") or data["prompt"],
            answers=tuple(data["answers"]),
            correct_answer_index=int(data["correct_answer_index"]),
            categories=frozenset(data.get("categories", ())),
            difficulty=float(data.get("difficulty", 0.5)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid question data: {e}", {"data": data}) from e


class InMemoryQuestionStore(QuestionStore):
    """Dict-backed question store for local games and tests."""

    def __init__(self, questions: Iterable[Question] = (), rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._questions: Dict[str, Question] = {}
        self._stats: Dict[str, QuestionStats] = {}
        self.confidence: Dict[str, float] = {}
        for question in questions:
            self.add_question(question)

    @classmethod
    def from_dicts(cls, items: Iterable[dict], rng: Optional[random.Random] = None) -> "InMemoryQuestionStore":
        return cls((question_from_dict(item) for item in items), rng=rng)

    @classmethod
    def from_json_file(cls, path: Union[str, Path], rng: Optional[random.Random] = None) -> "InMemoryQuestionStore":
        """Load questions from a JSON list or a {"questions": [...]} document."""
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        items = data.get("questions", []) if isinstance(data, dict) else data
        store = cls.from_dicts(items, rng=rng)
        logger.info(f"Loaded {len(store)} questions from {path}")
        return store

    def __len__(self):
        return len(self._questions)

    def add_question(self, question: Question, stats: Optional[QuestionStats] = None):
        self._questions[question.id] = question
        self._stats[question.id] = stats or QuestionStats()

    def get_question(self, question_id: str) -> Optional[Question]:
        return self._questions.get(question_id)

    def draw_question(
        self,
        category: str,
        min_difficulty: float,
        max_difficulty: float,
        exclude_ids: Iterable[str] = ()
    ) -> Optional[Question]:
        excluded = set(exclude_ids)
        candidates: List[Question] = [
            q for q in self._questions.values()
            if category in q.categories
            and min_difficulty <= q.difficulty <= max_difficulty
            and q.id not in excluded
        ]
        if not candidates:
            return None
        return self.rng.choice(candidates)

    def get_stats(self, question_id: str) -> QuestionStats:
        stats = self._stats.get(question_id, QuestionStats())
        return QuestionStats(
            correct_count=stats.correct_count,
            incorrect_count=stats.incorrect_count,
            recent_history=list(stats.recent_history),
        )

    def record_outcome(self, question_id: str, update: DifficultyUpdate) -> None:
        question = self._questions.get(question_id)
        if question is None:
            logger.warning(f"Outcome recorded for unknown question {question_id}")
            return
        # Questions are immutable; the stored copy is replaced for future draws
        self._questions[question_id] = Question(
            id=question.id,
            prompt=question.prompt,
            answers=question.answers,
            correct_answer_index=question.correct_answer_index,
            categories=question.categories,
            difficulty=update.new_difficulty,
        )
        self._stats[question_id] = QuestionStats(
            correct_count=update.correct_count,
            incorrect_count=update.incorrect_count,
            recent_history=list(update.recent_history),
        )
        self.confidence[question_id] = update.confidence
