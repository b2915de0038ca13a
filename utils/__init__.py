"""
Utilities module for Trivia Engine.
Contains retry decorators, error handling, and logging setup.
"""
from utils.retry import retry_with_backoff, database_retry
from utils.errors import (
    TriviaEngineError,
    GameError,
    NoMatchingQuestionError,
    DatabaseError,
    ValidationError,
    ConfigurationError,
)
from utils.logging import setup_logging, get_logger

__all__ = [
    "retry_with_backoff",
    "database_retry",
    "TriviaEngineError",
    "GameError",
    "NoMatchingQuestionError",
    "DatabaseError",
    "ValidationError",
    "ConfigurationError",
    "setup_logging",
    "get_logger",
]
