"""
Calibration tasks - recalibrate question difficulty outside the game loop.
"""
from typing import Dict, Optional
from tasks.celery_app import celery_app
from game.difficulty import DifficultyCalibrator
from questions.manager import QuestionManager
from utils.errors import DatabaseError
from utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="tasks.calibration.record_question_outcome")
def record_question_outcome(
    question_id: str,
    difficulty: float,
    correct_count: int,
    incorrect_count: int
) -> Optional[Dict[str, float]]:
    """
    Calibrate a question from one round of human answers and persist it.

    Args:
        question_id: Question ID
        difficulty: Difficulty the question was played at
        correct_count: Human players who answered correctly
        incorrect_count: Human players who answered incorrectly

    Returns:
        Dict with new_difficulty, confidence and adjustment, or None on failure
    """
    manager = QuestionManager()
    calibrator = DifficultyCalibrator()
    try:
        stats = manager.get_stats(question_id)
        update = calibrator.calibrate(difficulty, stats, correct_count, incorrect_count)
        manager.record_outcome(question_id, update)
    except DatabaseError as e:
        logger.error(f"Calibration of question {question_id} failed: {e}")
        return None

    return {
        "new_difficulty": update.new_difficulty,
        "confidence": update.confidence,
        "adjustment": update.adjustment,
    }


def dispatch_question_outcome(
    question_id: str,
    difficulty: float,
    correct_count: int,
    incorrect_count: int
):
    """Outcome recorder for GameEngine that queues calibration on Celery."""
    logger.debug(f"Queueing calibration for question {question_id}")
    return record_question_outcome.delay(question_id, difficulty, correct_count, incorrect_count)
