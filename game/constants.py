"""
Game value spaces - quiz categories and the difficulty ladder.
"""
from typing import Tuple

QUIZ_CATEGORIES: Tuple[str, ...] = (
    "Geography",
    "Nature and Ecology",
    "Natural Sciences",
    "Technology and Engineering",
    "Visual Arts and Design",
    "Literature and Narrative Arts",
    "History",
    "Sports, Games, and Entertainment",
    "Food and Cooking",
    "Music and Performing Arts",
    "Business and Economics",
    "Mythology and Religion",
    "Philosophy and Critical Thinking",
    "Medicine and Health Sciences",
    "Law, Government, and Politics",
    "General Knowledge",
)

# Difficulties a turn player can pick from
DIFFICULTY_LEVELS: Tuple[float, ...] = tuple(round(0.1 * step, 1) for step in range(1, 10))

# Upper bound of each named level, ascending
DIFFICULTY_LEVEL_NAMES: Tuple[Tuple[float, str], ...] = (
    (0.1, "Trivial"),
    (0.2, "Easy Pickings"),
    (0.3, "Comfort Zone"),
    (0.4, "Brain Tickler"),
    (0.5, "Requires Finesse"),
    (0.6, "Tricky Territory"),
    (0.7, "Brain Buster"),
    (0.8, "High-Wire Act"),
    (0.9, "PhD-Level Madness"),
)

# Marker stored for players who did not answer before the timer ran out
NO_ANSWER = -1

# Difficulty tiers used by the AI when pairing categories with difficulties
LOW_DIFFICULTY_MAX = 0.3
MEDIUM_DIFFICULTY_MAX = 0.6


def clamp01(value: float) -> float:
    """Clamp a value between 0 and 1."""
    return max(0.0, min(1.0, value))


def normalize_difficulty(value: float) -> float:
    """Round a difficulty so ladder values compare equal after float arithmetic."""
    return round(clamp01(float(value)), 4)


def describe_difficulty(difficulty: float) -> str:
    """
    Get the readable level name for a difficulty value.

    Values above the last level fall into the hardest level.
    """
    clamped = clamp01(difficulty)
    for upper_bound, name in DIFFICULTY_LEVEL_NAMES:
        if clamped <= upper_bound:
            return name
    return DIFFICULTY_LEVEL_NAMES[-1][1]
