"""
Celery tasks module for Trivia Engine.
Contains background tasks for difficulty calibration.
"""
from tasks.celery_app import celery_app
from tasks.calibration import record_question_outcome, dispatch_question_outcome

__all__ = [
    "celery_app",
    "record_question_outcome",
    "dispatch_question_outcome",
]
