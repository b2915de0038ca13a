"""
Game data model - questions, players, AI personalities and round state.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple
import config
from game.constants import normalize_difficulty
from utils.errors import ValidationError


class GamePhase(Enum):
    """Phases of a single round."""
    CATEGORY_SELECTION = "category-selection"
    ANSWERING = "answering"
    RESULTS = "results"


@dataclass(frozen=True)
class Question:
    """A question drawn into a round. Never mutated once drawn."""
    id: str
    prompt: str
    answers: Tuple[str, ...]
    correct_answer_index: int
    categories: FrozenSet[str]
    difficulty: float

    def __post_init__(self):
        # Accept lists from callers while keeping the instance immutable
        object.__setattr__(self, "answers", tuple(self.answers))
        object.__setattr__(self, "categories", frozenset(self.categories))
        if not 0 <= self.correct_answer_index < len(self.answers):
            raise ValidationError(
                f"Question {self.id} has correct answer index out of range",
                {"correct_answer_index": self.correct_answer_index, "answers": len(self.answers)}
            )
        if not 0 <= self.difficulty <= 1:
            raise ValidationError(
                f"Question {self.id} difficulty must be within [0, 1]",
                {"difficulty": self.difficulty}
            )

    def is_correct(self, answer_index: Optional[int]) -> bool:
        """Check if an answer index is the correct one."""
        return answer_index == self.correct_answer_index


@dataclass(frozen=True)
class AIPersonality:
    """Behavioral traits of an AI opponent."""
    id: str
    name: str
    base_success_rate: float
    category_modifiers: Mapping[str, float] = field(default_factory=dict)
    consistency: float = 0.5
    boost_usage_rate: float = 0.0
    description: str = ""

    def modifier_for(self, category: str) -> float:
        """Get the modifier for a category, 0 when the personality has none."""
        return self.category_modifiers.get(category, 0.0)


@dataclass
class RoundPlayerState:
    """Player fields that are reset at the start of every round."""
    has_answered: bool = False
    selected_answer: Optional[int] = None
    used_i_know_this_round: bool = False
    timed_out: bool = False


@dataclass
class GamePlayerState:
    """Player fields that persist until the game ends."""
    i_know_powerups_remaining: int = 0
    used_categories: Set[str] = field(default_factory=set)
    used_difficulties: Set[float] = field(default_factory=set)

    def available_categories(self, categories: Tuple[str, ...]) -> List[str]:
        """Categories not used yet. Clears the used set if it would block every choice."""
        remaining = [c for c in categories if c not in self.used_categories]
        if not remaining:
            self.used_categories.clear()
            remaining = list(categories)
        return remaining

    def available_difficulties(self, difficulties: Tuple[float, ...]) -> List[float]:
        """Difficulties not used yet. Clears the used set if it would block every choice."""
        remaining = [d for d in difficulties if normalize_difficulty(d) not in self.used_difficulties]
        if not remaining:
            self.used_difficulties.clear()
            remaining = list(difficulties)
        return remaining

    def mark_used(
        self,
        category: str,
        difficulty: float,
        categories: Tuple[str, ...],
        difficulties: Tuple[float, ...]
    ):
        """Mark a category/difficulty pair as used, resetting exhausted sets immediately."""
        self.used_categories.add(category)
        self.used_difficulties.add(normalize_difficulty(difficulty))
        if self.used_categories.issuperset(categories):
            self.used_categories.clear()
        if self.used_difficulties.issuperset(normalize_difficulty(d) for d in difficulties):
            self.used_difficulties.clear()


@dataclass
class Player:
    """Player in a game session."""
    id: str
    name: str
    is_ai: bool = False
    score: float = 0.0
    is_ready: bool = True
    personality: Optional[AIPersonality] = None
    round_state: RoundPlayerState = field(default_factory=RoundPlayerState)
    game_state: GamePlayerState = field(default_factory=GamePlayerState)

    @property
    def has_answered(self) -> bool:
        return self.round_state.has_answered

    @property
    def selected_answer(self) -> Optional[int]:
        return self.round_state.selected_answer

    @property
    def used_i_know_this_round(self) -> bool:
        return self.round_state.used_i_know_this_round

    @property
    def i_know_powerups_remaining(self) -> int:
        return self.game_state.i_know_powerups_remaining

    def reset_round_state(self):
        """Reset per-round fields."""
        self.round_state = RoundPlayerState()

    def reset_game_state(self, i_know_powerups: int):
        """Reset per-game fields and score at game start."""
        self.score = 0.0
        self.game_state = GamePlayerState(i_know_powerups_remaining=i_know_powerups)
        self.reset_round_state()

    def __repr__(self):
        return f"<Player(id={self.id}, name={self.name!r}, ai={self.is_ai}, score={self.score})>"


@dataclass
class GameOptions:
    """Per-game options supplied by the lobby."""
    questions_per_game: int = field(default_factory=lambda: config.config.QUESTIONS_PER_GAME)
    question_time_limit: int = field(default_factory=lambda: config.config.QUESTION_TIME_LIMIT)
    selection_time_limit: int = field(default_factory=lambda: config.config.SELECTION_TIME_LIMIT)
    i_know_powerups_per_player: int = field(
        default_factory=lambda: config.config.I_KNOW_POWERUPS_PER_PLAYER
    )

    def validate(self) -> bool:
        """Validate option ranges."""
        if self.questions_per_game < 1:
            raise ValidationError("questions_per_game must be at least 1",
                                  {"questions_per_game": self.questions_per_game})
        if self.question_time_limit <= 0 or self.selection_time_limit <= 0:
            raise ValidationError(
                "Time limits must be positive",
                {
                    "question_time_limit": self.question_time_limit,
                    "selection_time_limit": self.selection_time_limit,
                }
            )
        if self.i_know_powerups_per_player < 0:
            raise ValidationError("i_know_powerups_per_player cannot be negative",
                                  {"i_know_powerups_per_player": self.i_know_powerups_per_player})
        return True


@dataclass
class QuestionStats:
    """Answer statistics kept by the question store."""
    correct_count: int = 0
    incorrect_count: int = 0
    recent_history: List[bool] = field(default_factory=list)

    @property
    def total_answers(self) -> int:
        return self.correct_count + self.incorrect_count


@dataclass
class DifficultyUpdate:
    """Result of a calibration, with the updated stats to persist."""
    new_difficulty: float
    confidence: float
    adjustment: float
    correct_count: int
    incorrect_count: int
    recent_history: List[bool]


@dataclass
class RoundResult:
    """Outcome of a resolved round."""
    question_id: str
    turn_player_id: str
    category: str
    difficulty: float
    answers: Dict[str, Optional[int]]
    deltas: Dict[str, float]

    def __repr__(self):
        return f"<RoundResult(question_id={self.question_id}, turn_player={self.turn_player_id}, deltas={self.deltas})>"


@dataclass
class RoundState:
    """Mutable state of a running game."""
    players: List[Player]
    started_at: datetime
    phase: GamePhase = GamePhase.CATEGORY_SELECTION
    question_index: int = 0
    turn_player_index: int = 0
    selection_time_remaining: int = 0
    answer_time_remaining: int = 0
    tentative_category: Optional[str] = None
    tentative_difficulty: Optional[float] = None
    selected_category: Optional[str] = None
    selected_difficulty: Optional[float] = None
    questions: List[Question] = field(default_factory=list)
    round_results: List[RoundResult] = field(default_factory=list)
    is_finished: bool = False
    last_error: Optional[str] = None

    @property
    def turn_player(self) -> Player:
        return self.players[self.turn_player_index]

    @property
    def current_question(self) -> Optional[Question]:
        """Question of the current round, once it has been drawn."""
        if self.phase == GamePhase.CATEGORY_SELECTION:
            return None
        return self.questions[-1] if self.questions else None

    def get_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def index_of(self, player_id: str) -> Optional[int]:
        return next((i for i, p in enumerate(self.players) if p.id == player_id), None)


__all__ = [
    "GamePhase",
    "Question",
    "AIPersonality",
    "RoundPlayerState",
    "GamePlayerState",
    "Player",
    "GameOptions",
    "QuestionStats",
    "DifficultyUpdate",
    "RoundResult",
    "RoundState",
]
