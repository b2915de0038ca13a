"""
Database query helpers - question operations.
"""
import json
from typing import Iterable, List, Optional
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session
from sqlalchemy import String, and_, cast, func
from database.models import Question


class QuestionQueries:
    """Question-related database queries."""

    @staticmethod
    def get_question_by_id(session: Session, question_id: str) -> Optional[Question]:
        return session.query(Question).filter(Question.id == question_id).first()

    @staticmethod
    def get_questions_in_range(
        session: Session,
        category: str,
        min_difficulty: float,
        max_difficulty: float,
        exclude_ids: Iterable[str] = (),
        limit: int = 100
    ) -> List[Question]:
        """Get approved questions of a category within a difficulty range, in random order."""
        query = session.query(Question).filter(
            and_(
                Question.difficulty >= min_difficulty,
                Question.difficulty <= max_difficulty,
                Question.is_approved == True
            )
        )
        exclude_ids = list(exclude_ids)
        if exclude_ids:
            query = query.filter(Question.id.notin_(exclude_ids))
        query = query.filter(QuestionQueries._category_filter(session, category))

        candidates = query.order_by(func.random()).limit(limit).all()
        # LIKE reads % and _ in a category name as wildcards
        return [q for q in candidates if category in (q.categories or [])]

    @staticmethod
    def _category_filter(session: Session, category: str):
        """SQL condition for a category inside the JSON categories list."""
        if session.get_bind().dialect.name == "postgresql":
            return cast(Question.categories, JSONB).contains([category])
        return cast(Question.categories, String).like(f'%{json.dumps(category)}%')

    @staticmethod
    def update_question_stats(
        session: Session,
        question_id: str,
        difficulty: float,
        correct_count: int,
        incorrect_count: int,
        recent_history: List[bool],
        confidence: Optional[float] = None,
        adjustment: Optional[float] = None
    ) -> Optional[Question]:
        """Store a calibration result."""
        question = QuestionQueries.get_question_by_id(session, question_id)
        if not question:
            return None
        question.difficulty = difficulty
        question.correct_count = correct_count
        question.incorrect_count = incorrect_count
        question.recent_history = list(recent_history)
        question.confidence = confidence
        question.last_adjustment = adjustment
        session.flush()
        return question

    @staticmethod
    def add_question(
        session: Session,
        text: str,
        answers: List[str],
        correct_answer_index: int,
        categories: List[str],
        difficulty: float,
        question_id: Optional[str] = None
    ) -> Question:
        question = Question(
            text=text,
            answers=list(answers),
            correct_answer_index=correct_answer_index,
            categories=list(categories),
            difficulty=difficulty,
        )
        if question_id:
            question.id = question_id
        session.add(question)
        session.flush()
        return question

    @staticmethod
    def count_questions(session: Session) -> int:
        return session.query(func.count(Question.id)).scalar() or 0
