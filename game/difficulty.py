"""
Adaptive difficulty - recalibrates a question's difficulty from human answers.
"""
import math
from typing import Sequence
from game.constants import clamp01
from game.models import DifficultyUpdate, QuestionStats


RECENT_HISTORY_SIZE = 10
MAX_CONFIDENCE_SAMPLES = 1000
MIN_ADJUSTMENT = 0.001
MAX_ADJUSTMENT = 0.10


class DifficultyCalibrator:
    """Confidence-weighted difficulty calibration.

    Confidence grows with sample size and with how closely recent answers
    match the success rate the current difficulty predicts. Low confidence
    allows swings of up to 0.10 per round, high confidence shrinks them
    toward 0.001.
    """

    def expected_success_rate(self, difficulty: float) -> float:
        """Difficulty 0 expects 90% correct answers, difficulty 1 expects 10%."""
        return 1 - (difficulty * 0.8 + 0.1)

    def calculate_confidence(
        self,
        total_answers: int,
        recent_history: Sequence[bool],
        difficulty: float
    ) -> float:
        """
        Calculate confidence in the current difficulty rating.

        Args:
            total_answers: Total answers ever recorded for the question
            recent_history: Most recent outcomes, True = correct
            difficulty: Current difficulty

        Returns:
            Confidence in [0, 1]
        """
        sample_confidence = min(total_answers / MAX_CONFIDENCE_SAMPLES, 1)
        if not recent_history:
            return sample_confidence * 0.5

        actual_success_rate = sum(1 for outcome in recent_history if outcome) / len(recent_history)
        variance = abs(self.expected_success_rate(difficulty) - actual_success_rate)
        variance_confidence = 1 - min(variance * 2, 1)
        # Geometric mean penalizes either factor being low
        return math.sqrt(sample_confidence * variance_confidence)

    def calculate_adjustment_magnitude(self, confidence: float) -> float:
        return MIN_ADJUSTMENT + (1 - confidence) ** 2 * (MAX_ADJUSTMENT - MIN_ADJUSTMENT)

    def calibrate(
        self,
        current_difficulty: float,
        stats: QuestionStats,
        new_correct_count: int,
        new_incorrect_count: int
    ) -> DifficultyUpdate:
        """
        Calculate the new difficulty after a round.

        Only human answers should be passed in.

        Args:
            current_difficulty: Difficulty the question was played at
            stats: Stats before this round
            new_correct_count: Correct answers this round
            new_incorrect_count: Incorrect answers this round

        Returns:
            DifficultyUpdate with new difficulty, confidence, signed
            adjustment and the updated stats
        """
        if new_correct_count < 0 or new_incorrect_count < 0:
            raise ValueError("Answer counts cannot be negative")

        correct_count = stats.correct_count + new_correct_count
        incorrect_count = stats.incorrect_count + new_incorrect_count

        history = list(stats.recent_history)
        history.extend([True] * new_correct_count)
        history.extend([False] * new_incorrect_count)
        history = history[-RECENT_HISTORY_SIZE:]

        confidence = self.calculate_confidence(
            correct_count + incorrect_count, history, current_difficulty
        )
        magnitude = self.calculate_adjustment_magnitude(confidence)

        round_answers = new_correct_count + new_incorrect_count
        expected_correct = round_answers * self.expected_success_rate(current_difficulty)
        normalized_difference = (
            (new_correct_count - expected_correct) / round_answers if round_answers else 0
        )
        scale_factor = min(abs(normalized_difference) * 2, 1)

        adjustment = 0.0
        if normalized_difference > 0:
            # More correct than expected: question is easier than rated
            adjustment = -magnitude * scale_factor
        elif normalized_difference < 0:
            adjustment = magnitude * scale_factor

        return DifficultyUpdate(
            new_difficulty=clamp01(current_difficulty + adjustment),
            confidence=confidence,
            adjustment=adjustment,
            correct_count=correct_count,
            incorrect_count=incorrect_count,
            recent_history=history,
        )
