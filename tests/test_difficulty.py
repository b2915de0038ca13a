"""
Tests for adaptive difficulty calibration.
"""
import pytest
from game.difficulty import DifficultyCalibrator, MAX_ADJUSTMENT, MIN_ADJUSTMENT, RECENT_HISTORY_SIZE
from game.models import QuestionStats


@pytest.fixture
def calibrator():
    return DifficultyCalibrator()


def test_expected_success_rate(calibrator):
    assert calibrator.expected_success_rate(0.0) == pytest.approx(0.9)
    assert calibrator.expected_success_rate(0.5) == pytest.approx(0.5)
    assert calibrator.expected_success_rate(1.0) == pytest.approx(0.1)


def test_no_answers_leaves_difficulty(calibrator):
    update = calibrator.calibrate(0.5, QuestionStats(), 0, 0)

    assert update.adjustment == 0.0
    assert update.new_difficulty == 0.5
    assert update.confidence == 0.0
    assert update.recent_history == []


def test_more_correct_than_expected_lowers_difficulty(calibrator):
    update = calibrator.calibrate(0.5, QuestionStats(), 3, 0)

    assert update.adjustment == pytest.approx(-MAX_ADJUSTMENT)
    assert update.new_difficulty == pytest.approx(0.4)
    assert update.correct_count == 3
    assert update.incorrect_count == 0
    assert update.recent_history == [True, True, True]


def test_fewer_correct_than_expected_raises_difficulty(calibrator):
    update = calibrator.calibrate(0.5, QuestionStats(), 0, 3)

    assert update.adjustment == pytest.approx(MAX_ADJUSTMENT)
    assert update.new_difficulty == pytest.approx(0.6)


@pytest.mark.parametrize("difficulty,correct,incorrect,bound", [
    (0.99, 0, 5, 1.0),
    (0.01, 5, 0, 0.0),
])
def test_difficulty_is_clamped(calibrator, difficulty, correct, incorrect, bound):
    update = calibrator.calibrate(difficulty, QuestionStats(), correct, incorrect)
    assert update.new_difficulty == bound


def test_history_keeps_most_recent(calibrator):
    stats = QuestionStats(correct_count=9, recent_history=[True] * 9)

    update = calibrator.calibrate(0.5, stats, 1, 2)

    assert len(update.recent_history) == RECENT_HISTORY_SIZE
    # Correct outcomes are appended before incorrect ones
    assert update.recent_history[-3:] == [True, False, False]
    assert update.correct_count == 10
    assert update.incorrect_count == 2


def test_stats_are_not_mutated(calibrator):
    stats = QuestionStats(correct_count=1, recent_history=[True])
    calibrator.calibrate(0.5, stats, 2, 2)
    assert stats.recent_history == [True]
    assert stats.correct_count == 1


def test_confidence_grows_with_matching_samples(calibrator):
    history = [True, False] * 5
    assert calibrator.calculate_confidence(1000, history, 0.5) == pytest.approx(1.0)
    assert calibrator.calculate_confidence(10, history, 0.5) < 0.2
    assert calibrator.calculate_confidence(500, [], 0.5) == pytest.approx(0.25)


def test_high_confidence_makes_small_adjustments(calibrator):
    stats = QuestionStats(correct_count=600, incorrect_count=600, recent_history=[True, False] * 5)

    update = calibrator.calibrate(0.5, stats, 1, 1)

    # Matches expectation exactly, so no move at all
    assert update.adjustment == 0.0
    assert calibrator.calculate_adjustment_magnitude(update.confidence) == pytest.approx(MIN_ADJUSTMENT)


def test_adjustment_magnitude_bounds(calibrator):
    assert calibrator.calculate_adjustment_magnitude(0.0) == pytest.approx(MAX_ADJUSTMENT)
    assert calibrator.calculate_adjustment_magnitude(1.0) == pytest.approx(MIN_ADJUSTMENT)


def test_negative_counts_rejected(calibrator):
    with pytest.raises(ValueError):
        calibrator.calibrate(0.5, QuestionStats(), -1, 0)


def test_repeated_calibration_stays_bounded(calibrator, rng):
    stats = QuestionStats()
    difficulty = 0.5

    for _ in range(200):
        correct = rng.randint(0, 4)
        incorrect = rng.randint(0, 4)
        update = calibrator.calibrate(difficulty, stats, correct, incorrect)

        assert len(update.recent_history) <= RECENT_HISTORY_SIZE
        assert 0 <= update.confidence <= 1
        assert 0 <= update.new_difficulty <= 1
        assert abs(update.adjustment) <= MAX_ADJUSTMENT + 1e-12

        difficulty = update.new_difficulty
        stats = QuestionStats(
            correct_count=update.correct_count,
            incorrect_count=update.incorrect_count,
            recent_history=update.recent_history,
        )

    assert stats.total_answers > 0
