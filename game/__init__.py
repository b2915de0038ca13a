"""
Game module for Trivia Engine.
Contains the round engine, scoring, difficulty calibration and bot AI.
"""
from game.engine import GameEngine
from game.scoring import ScoringEngine
from game.difficulty import DifficultyCalibrator
from game.bots import BotAI
from game.models import (
    AIPersonality,
    GameOptions,
    GamePhase,
    Player,
    Question,
    QuestionStats,
    DifficultyUpdate,
    RoundState,
)

__all__ = [
    "GameEngine",
    "ScoringEngine",
    "DifficultyCalibrator",
    "BotAI",
    "AIPersonality",
    "GameOptions",
    "GamePhase",
    "Player",
    "Question",
    "QuestionStats",
    "DifficultyUpdate",
    "RoundState",
]
