"""
Exception hierarchy for Trivia Engine.

Every error carries a readable message plus a details dict with the values
that caused it (player ids, category, difficulty), so hosts can log or show
them without parsing text.
"""
from typing import Optional


class TriviaEngineError(Exception):
    """Base exception for Trivia Engine."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize error.

        Args:
            message: Error message
            details: Values describing the failure, e.g. {"category": ..., "difficulty": ...}
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __repr__(self):
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details})"


class GameError(TriviaEngineError):
    """Invalid game setup or lifecycle misuse, e.g. an empty roster or starting twice."""
    pass


class NoMatchingQuestionError(GameError):
    """No question matches the selected category and difficulty window. Recoverable by reselecting."""
    pass


class DatabaseError(TriviaEngineError):
    """Question store failure: drawing, loading stats or persisting a calibration."""
    pass


class ValidationError(TriviaEngineError):
    """Malformed question data or out-of-range game options."""
    pass


class ConfigurationError(TriviaEngineError):
    """Invalid environment configuration, raised by Config.validate()."""
    pass
