"""
Game engine - round state machine for turn-based trivia.

Each round the turn player picks a category and a difficulty, every player
answers, points are distributed and the question's difficulty is
recalibrated. The engine is driven by synchronous calls and one-second
ticks; it never blocks on I/O itself.
"""
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Set, Tuple
from datetime import datetime
import pytz
import random
from game.bots import BotAI, pick_random_selection
from game.constants import QUIZ_CATEGORIES, DIFFICULTY_LEVELS, NO_ANSWER, normalize_difficulty
from game.difficulty import DifficultyCalibrator
from game.events import (
    EventEmitter,
    Listener,
    GAME_STARTED,
    ROUND_STARTED,
    CATEGORY_SELECTED,
    DIFFICULTY_SELECTED,
    QUESTION_REQUESTED,
    QUESTION_NOT_FOUND,
    ANSWERING_STARTED,
    ANSWER_SUBMITTED,
    I_KNOW_USED,
    ROUND_RESOLVED,
    DIFFICULTY_CALIBRATED,
    CALIBRATION_FAILED,
    GAME_FINISHED,
    GAME_ENDED,
)
from game.models import GameOptions, GamePhase, Player, Question, RoundResult, RoundState
from game.scoring import ScoringEngine
from utils.errors import GameError, NoMatchingQuestionError
from utils.logging import get_logger
import config

if TYPE_CHECKING:
    from questions.store import QuestionStore

logger = get_logger(__name__)

# Called as recorder(question_id, difficulty, correct_count, incorrect_count)
OutcomeRecorder = Callable[[str, float, int, int], Any]


class GameEngine:
    """Main game engine class. Owns the only mutable state of a game."""

    def __init__(
        self,
        players: Iterable[Player],
        question_store: "QuestionStore",
        options: Optional[GameOptions] = None,
        scoring_engine: Optional[ScoringEngine] = None,
        calibrator: Optional[DifficultyCalibrator] = None,
        rng: Optional[random.Random] = None,
        categories: Iterable[str] = QUIZ_CATEGORIES,
        difficulty_levels: Iterable[float] = DIFFICULTY_LEVELS,
        ai_thinking_delay: Optional[int] = None,
        difficulty_window: Optional[float] = None,
        defer_question_requests: bool = False,
        outcome_recorder: Optional[OutcomeRecorder] = None
    ):
        """
        Initialize game engine.

        Args:
            players: Ordered roster, turn order follows it
            question_store: Store questions are drawn from and outcomes recorded to
            options: Per-game options, defaults from config
            rng: Random source shared by bots and auto-selection
            ai_thinking_delay: Ticks between an AI's category and difficulty reveals
            defer_question_requests: If True the host draws questions itself and
                reports them through resolve_question()
            outcome_recorder: Replaces in-process calibration, e.g. a Celery dispatch
        """
        self.config = config.config
        self.players: List[Player] = list(players)
        if not self.players:
            raise GameError("A game needs at least one player")
        player_ids = [p.id for p in self.players]
        if len(set(player_ids)) != len(player_ids):
            raise GameError("Player ids must be unique", {"player_ids": player_ids})

        self.options = options or GameOptions()
        self.options.validate()
        self.question_store = question_store
        self.scoring_engine = scoring_engine or ScoringEngine()
        self.calibrator = calibrator or DifficultyCalibrator()
        self.rng = rng or random.Random()
        self.categories: Tuple[str, ...] = tuple(categories)
        self.difficulty_levels: Tuple[float, ...] = tuple(
            normalize_difficulty(d) for d in difficulty_levels
        )
        if not self.categories or not self.difficulty_levels:
            raise GameError("Categories and difficulty levels cannot be empty")
        self.ai_thinking_delay = (
            self.config.AI_THINKING_DELAY if ai_thinking_delay is None else ai_thinking_delay
        )
        self.difficulty_window = (
            self.config.DIFFICULTY_WINDOW if difficulty_window is None else difficulty_window
        )
        self.defer_question_requests = defer_question_requests
        self.outcome_recorder = outcome_recorder

        self.events = EventEmitter()
        self.state: Optional[RoundState] = None
        self._bots: Dict[str, BotAI] = {
            p.id: BotAI(p.personality, self.rng) for p in self.players if p.is_ai
        }
        self._request_counter = 0
        self._pending_request_id: Optional[int] = None
        self._used_before_selection: Optional[Tuple[Set[str], Set[float]]] = None
        self._failed_categories: Set[str] = set()
        self._reveal_countdown = 0

    # ------------------------------------------------------------------
    # Listeners

    def add_listener(self, listener: Listener):
        self.events.subscribe(listener)

    def remove_listener(self, listener: Listener):
        self.events.unsubscribe(listener)

    # ------------------------------------------------------------------
    # Properties

    @property
    def is_active(self) -> bool:
        return self.state is not None and not self.state.is_finished

    @property
    def phase(self) -> Optional[GamePhase]:
        return self.state.phase if self.state else None

    @property
    def turn_player(self) -> Optional[Player]:
        return self.state.turn_player if self.state else None

    @property
    def pending_request_id(self) -> Optional[int]:
        return self._pending_request_id

    # ------------------------------------------------------------------
    # Game lifecycle

    def start_game(self) -> RoundState:
        """
        Start a game - reset players and enter the first round.

        Returns:
            The new round state
        """
        if self.state is not None:
            raise GameError("Game already started")

        for player in self.players:
            player.reset_game_state(self.options.i_know_powerups_per_player)

        self.state = RoundState(players=self.players, started_at=datetime.now(pytz.UTC))
        logger.info(
            f"Game started: {len(self.players)} players, "
            f"{self.options.questions_per_game} questions"
        )
        self.events.emit(
            GAME_STARTED,
            player_ids=[p.id for p in self.players],
            questions_per_game=self.options.questions_per_game,
        )
        self._begin_round()
        return self.state

    def next_round(self) -> bool:
        """
        Advance from results to the next round, or finish the game.

        Returns:
            True if the game advanced or finished, False if not in results
        """
        state = self.state
        if not self.is_active or state.phase != GamePhase.RESULTS:
            logger.debug("next_round rejected: not in results phase")
            return False

        if len(state.questions) >= self.options.questions_per_game:
            self._finish_game()
            return True

        state.question_index += 1
        state.turn_player_index = (state.turn_player_index + 1) % len(self.players)
        self._begin_round()
        return True

    def end_game(self):
        """Leave the game at any phase. Timers and pending requests are discarded."""
        state = self.state
        if state is None or state.is_finished:
            return
        phase = state.phase
        self._stop(state)
        logger.info(f"Game ended during {phase.value} of round {state.question_index + 1}")
        self.events.emit(GAME_ENDED, phase=phase.value, round_number=state.question_index + 1)

    def _stop(self, state: RoundState):
        state.is_finished = True
        state.selection_time_remaining = 0
        state.answer_time_remaining = 0
        self._pending_request_id = None
        self._reveal_countdown = 0

    def _finish_game(self):
        state = self.state
        self._stop(state)
        standings = self.get_standings()
        logger.info(
            "Game finished: " + ", ".join(f"{p.name}={p.score}" for p in standings)
        )
        self.events.emit(
            GAME_FINISHED,
            standings=[{"player_id": p.id, "score": p.score} for p in standings],
        )

    # ------------------------------------------------------------------
    # Category selection

    def _begin_round(self):
        state = self.state
        for player in self.players:
            player.reset_round_state()

        state.phase = GamePhase.CATEGORY_SELECTION
        state.selection_time_remaining = self.options.selection_time_limit
        state.answer_time_remaining = 0
        state.tentative_category = None
        state.tentative_difficulty = None
        state.selected_category = None
        state.selected_difficulty = None
        state.last_error = None
        self._pending_request_id = None
        self._used_before_selection = None
        self._failed_categories = set()
        self._reveal_countdown = 0

        turn_player = state.turn_player
        logger.info(
            f"Round {state.question_index + 1} started, turn player {turn_player.name} ({turn_player.id})"
        )
        self.events.emit(
            ROUND_STARTED,
            round_number=state.question_index + 1,
            turn_player_id=turn_player.id,
        )
        if turn_player.is_ai:
            self._plan_ai_selection()

    def _selection_options(self, player: Player) -> Tuple[List[str], List[float]]:
        """Unused categories and difficulties, without categories that already failed this round."""
        categories = [
            c for c in player.game_state.available_categories(self.categories)
            if c not in self._failed_categories
        ]
        difficulties = player.game_state.available_difficulties(self.difficulty_levels)
        return categories, difficulties

    def _can_select(self, player_id: Optional[str]) -> bool:
        state = self.state
        if not self.is_active or state.phase != GamePhase.CATEGORY_SELECTION:
            return False
        if self._pending_request_id is not None:
            return False
        return player_id is None or player_id == state.turn_player.id

    def select_category(self, category: str, player_id: Optional[str] = None) -> bool:
        """
        Choose the round's category for the turn player.

        Returns:
            False if rejected (wrong phase or player, unknown or used category)
        """
        if not self._can_select(player_id):
            logger.debug(f"select_category rejected for player {player_id}: not their selection phase")
            return False
        if category not in self.categories:
            logger.debug(f"select_category rejected: unknown category {category!r}")
            return False
        turn_player = self.state.turn_player
        if category in turn_player.game_state.used_categories:
            logger.debug(f"select_category rejected: {category!r} already used by {turn_player.id}")
            return False

        self.state.selected_category = category
        self.events.emit(CATEGORY_SELECTED, player_id=turn_player.id, category=category)
        self._maybe_request_question()
        return True

    def select_difficulty(self, difficulty: float, player_id: Optional[str] = None) -> bool:
        """
        Choose the round's difficulty for the turn player.

        Returns:
            False if rejected (wrong phase or player, unknown or used difficulty)
        """
        if not self._can_select(player_id):
            logger.debug(f"select_difficulty rejected for player {player_id}: not their selection phase")
            return False
        difficulty = normalize_difficulty(difficulty)
        if difficulty not in self.difficulty_levels:
            logger.debug(f"select_difficulty rejected: unknown difficulty {difficulty}")
            return False
        turn_player = self.state.turn_player
        if difficulty in turn_player.game_state.used_difficulties:
            logger.debug(f"select_difficulty rejected: {difficulty} already used by {turn_player.id}")
            return False

        self.state.selected_difficulty = difficulty
        self.events.emit(DIFFICULTY_SELECTED, player_id=turn_player.id, difficulty=difficulty)
        self._maybe_request_question()
        return True

    def _plan_ai_selection(self):
        """Let an AI turn player decide now; the reveal is staged over ticks."""
        state = self.state
        turn_player = state.turn_player
        categories, difficulties = self._selection_options(turn_player)
        if not categories:
            logger.warning(f"AI {turn_player.id} has no category left to try this round")
            return

        bot = self._bots[turn_player.id]
        category, difficulty = bot.select_category_and_difficulty(categories, difficulties)
        state.tentative_category = category
        state.tentative_difficulty = difficulty
        logger.debug(f"AI {turn_player.id} plans {category!r} at {difficulty}")

        if self.ai_thinking_delay <= 0:
            self.select_category(category, turn_player.id)
            self.select_difficulty(difficulty, turn_player.id)
        else:
            self._reveal_countdown = self.ai_thinking_delay

    def _advance_ai_reveal(self):
        state = self.state
        self._reveal_countdown -= 1
        if self._reveal_countdown > 0:
            return
        turn_player_id = state.turn_player.id
        if state.selected_category is None:
            self.select_category(state.tentative_category, turn_player_id)
            self._reveal_countdown = self.ai_thinking_delay
        else:
            self._reveal_countdown = 0
            self.select_difficulty(state.tentative_difficulty, turn_player_id)

    def _auto_select(self):
        """Selection timer ran out: fill in whatever the turn player has not chosen."""
        state = self.state
        turn_player = state.turn_player
        if state.tentative_category is not None:
            category = state.selected_category or state.tentative_category
            difficulty = (
                state.selected_difficulty
                if state.selected_difficulty is not None
                else state.tentative_difficulty
            )
        else:
            categories, difficulties = self._selection_options(turn_player)
            if not categories:
                # Every category failed this round; allow them again
                self._failed_categories.clear()
                categories, difficulties = self._selection_options(turn_player)
            random_category, random_difficulty = pick_random_selection(
                categories, difficulties, self.rng
            )
            category = state.selected_category or random_category
            difficulty = (
                state.selected_difficulty
                if state.selected_difficulty is not None
                else random_difficulty
            )

        logger.info(f"Selection time is up for {turn_player.id}: auto-selected {category!r} at {difficulty}")
        state.selected_category = category
        state.selected_difficulty = difficulty
        self._maybe_request_question()

    def _maybe_request_question(self):
        state = self.state
        if state.selected_category is None or state.selected_difficulty is None:
            return

        game_state = state.turn_player.game_state
        self._used_before_selection = (
            set(game_state.used_categories),
            set(game_state.used_difficulties),
        )
        game_state.mark_used(
            state.selected_category,
            state.selected_difficulty,
            self.categories,
            self.difficulty_levels,
        )
        self._request_question(state.selected_category, state.selected_difficulty)

    def _request_question(self, category: str, difficulty: float):
        state = self.state
        self._request_counter += 1
        request_id = self._request_counter
        self._pending_request_id = request_id

        min_difficulty = normalize_difficulty(difficulty - self.difficulty_window)
        max_difficulty = normalize_difficulty(difficulty + self.difficulty_window)
        exclude_ids = [q.id for q in state.questions]
        self.events.emit(
            QUESTION_REQUESTED,
            request_id=request_id,
            category=category,
            min_difficulty=min_difficulty,
            max_difficulty=max_difficulty,
            exclude_ids=exclude_ids,
        )
        if self.defer_question_requests:
            return

        try:
            question = self.question_store.draw_question(
                category, min_difficulty, max_difficulty, exclude_ids
            )
        except Exception as e:
            logger.error(f"Question store failed for {category!r} at {difficulty}: {e}")
            question = None
        self.resolve_question(request_id, question)

    def resolve_question(self, request_id: int, question: Optional[Question]) -> bool:
        """
        Complete a question request.

        Args:
            request_id: Id from the question_requested event
            question: Drawn question, or None if nothing matched

        Returns:
            False if the request is stale and was discarded
        """
        state = self.state
        if (
            not self.is_active
            or state.phase != GamePhase.CATEGORY_SELECTION
            or request_id != self._pending_request_id
        ):
            logger.debug(f"Discarding stale question result for request {request_id}")
            return False

        self._pending_request_id = None
        if question is None:
            self._handle_missing_question()
        else:
            self._start_answering(question)
        return True

    def _handle_missing_question(self):
        state = self.state
        turn_player = state.turn_player
        category = state.selected_category
        difficulty = state.selected_difficulty

        # Undo the marks so the retry consumes them exactly once
        if self._used_before_selection is not None:
            used_categories, used_difficulties = self._used_before_selection
            turn_player.game_state.used_categories = used_categories
            turn_player.game_state.used_difficulties = used_difficulties
            self._used_before_selection = None

        error = NoMatchingQuestionError(
            f"No question found for {category} at difficulty {difficulty}",
            {"category": category, "difficulty": difficulty}
        )
        self._failed_categories.add(category)
        state.last_error = error.message
        state.selected_category = None
        state.selected_difficulty = None
        state.tentative_category = None
        state.tentative_difficulty = None
        state.selection_time_remaining = self.options.selection_time_limit
        logger.warning(state.last_error)
        self.events.emit(
            QUESTION_NOT_FOUND,
            player_id=turn_player.id,
            category=category,
            difficulty=difficulty,
            error=error.message,
            details=error.details,
        )

        if turn_player.is_ai:
            self._plan_ai_selection()

    # ------------------------------------------------------------------
    # Answering

    def _start_answering(self, question: Question):
        state = self.state
        state.questions.append(question)
        state.phase = GamePhase.ANSWERING
        state.answer_time_remaining = self.options.question_time_limit
        state.last_error = None
        self._used_before_selection = None
        logger.info(
            f"Round {state.question_index + 1}: question {question.id} "
            f"({state.selected_category}, difficulty {question.difficulty})"
        )
        self.events.emit(
            ANSWERING_STARTED,
            round_number=state.question_index + 1,
            question_id=question.id,
            category=state.selected_category,
            difficulty=question.difficulty,
        )
        self._process_ai_players(question)

    def _process_ai_players(self, question: Question):
        """AI players decide on the power-up first, then answer immediately."""
        turn_player_index = self.state.turn_player_index
        ai_players = [(i, p) for i, p in enumerate(self.players) if p.is_ai]
        for index, player in ai_players:
            bot = self._bots[player.id]
            if bot.should_use_i_know(player, question, index == turn_player_index):
                self.use_i_know(player.id)
        for _, player in ai_players:
            if self.state.phase != GamePhase.ANSWERING:
                break
            self.submit_answer(player.id, self._bots[player.id].generate_answer(question))

    def submit_answer(self, player_id: str, answer_index: int) -> bool:
        """
        Submit a player's answer. Only the first answer of a round counts.

        Returns:
            False if rejected
        """
        state = self.state
        if not self.is_active or state.phase != GamePhase.ANSWERING:
            logger.debug(f"submit_answer rejected for {player_id}: not answering")
            return False
        player = state.get_player(player_id)
        if player is None or player.has_answered:
            logger.debug(f"submit_answer rejected for {player_id}: unknown or already answered")
            return False

        player.round_state.has_answered = True
        player.round_state.selected_answer = answer_index
        self.events.emit(ANSWER_SUBMITTED, player_id=player_id)

        if all(p.has_answered for p in self.players):
            self._resolve_round()
        return True

    def use_i_know(self, player_id: str) -> bool:
        """
        Use the "I KNOW!" power-up for this round.

        Returns:
            False if rejected (turn player, none left, already used or answered)
        """
        state = self.state
        if not self.is_active or state.phase != GamePhase.ANSWERING:
            return False
        index = state.index_of(player_id)
        if index is None or index == state.turn_player_index:
            return False
        player = self.players[index]
        if (
            player.i_know_powerups_remaining <= 0
            or player.used_i_know_this_round
            or player.has_answered
        ):
            logger.debug(f"use_i_know rejected for {player_id}")
            return False

        player.game_state.i_know_powerups_remaining -= 1
        player.round_state.used_i_know_this_round = True
        logger.info(f"Player {player_id} used I KNOW! ({player.i_know_powerups_remaining} left)")
        self.events.emit(
            I_KNOW_USED,
            player_id=player_id,
            remaining=player.i_know_powerups_remaining,
        )
        return True

    def _expire_answers(self):
        stragglers = [p for p in self.players if not p.has_answered]
        for player in stragglers:
            player.round_state.has_answered = True
            player.round_state.selected_answer = NO_ANSWER
            player.round_state.timed_out = True
        logger.info(f"Answer time is up, {len(stragglers)} players did not answer")
        self._resolve_round()

    # ------------------------------------------------------------------
    # Results

    def _resolve_round(self):
        state = self.state
        question = state.questions[-1]
        deltas = self.scoring_engine.apply_scores(
            self.players, state.turn_player_index, question
        )
        result = RoundResult(
            question_id=question.id,
            turn_player_id=state.turn_player.id,
            category=state.selected_category,
            difficulty=state.selected_difficulty,
            answers={p.id: p.selected_answer for p in self.players},
            deltas={p.id: delta for p, delta in zip(self.players, deltas)},
        )
        state.round_results.append(result)
        state.phase = GamePhase.RESULTS
        state.answer_time_remaining = 0

        logger.info(f"Round {state.question_index + 1} resolved: {result.deltas}")
        self.events.emit(
            ROUND_RESOLVED,
            round_number=state.question_index + 1,
            result=result,
            scores={p.id: p.score for p in self.players},
        )
        self._record_question_outcome(question)

    def _record_question_outcome(self, question: Question):
        """Recalibrate difficulty from human answers. Failures never block the game."""
        humans = [p for p in self.players if not p.is_ai and not p.round_state.timed_out]
        if not humans:
            logger.debug(f"No human answers for question {question.id}, skipping calibration")
            return
        correct = sum(1 for p in humans if question.is_correct(p.selected_answer))
        incorrect = len(humans) - correct

        try:
            if self.outcome_recorder is not None:
                self.outcome_recorder(question.id, question.difficulty, correct, incorrect)
                return
            stats = self.question_store.get_stats(question.id)
            update = self.calibrator.calibrate(question.difficulty, stats, correct, incorrect)
            self.question_store.record_outcome(question.id, update)
        except Exception as e:
            logger.error(f"Failed to record outcome for question {question.id}: {e}")
            self.events.emit(CALIBRATION_FAILED, question_id=question.id, error=str(e))
            return

        logger.debug(
            f"Question {question.id} difficulty {question.difficulty} -> {update.new_difficulty} "
            f"(confidence {update.confidence:.3f})"
        )
        self.events.emit(
            DIFFICULTY_CALIBRATED,
            question_id=question.id,
            new_difficulty=update.new_difficulty,
            confidence=update.confidence,
            adjustment=update.adjustment,
        )

    # ------------------------------------------------------------------
    # Timers

    def tick(self):
        """Advance phase timers by one second."""
        state = self.state
        if not self.is_active:
            return

        if state.phase == GamePhase.CATEGORY_SELECTION:
            if self._pending_request_id is not None:
                return
            if self._reveal_countdown > 0:
                self._advance_ai_reveal()
                if state.phase != GamePhase.CATEGORY_SELECTION or self._pending_request_id is not None:
                    return
            state.selection_time_remaining = max(0, state.selection_time_remaining - 1)
            if state.selection_time_remaining == 0:
                self._auto_select()
        elif state.phase == GamePhase.ANSWERING:
            state.answer_time_remaining = max(0, state.answer_time_remaining - 1)
            if state.answer_time_remaining == 0:
                self._expire_answers()

    # ------------------------------------------------------------------
    # Read access

    def get_standings(self) -> List[Player]:
        """Players ordered by score, highest first."""
        return sorted(self.players, key=lambda p: -p.score)

    def get_snapshot(self) -> Dict[str, Any]:
        """
        Get a snapshot of the game for callers.

        The correct answer is only revealed in the results phase.
        """
        state = self.state
        if state is None:
            return {"started": False, "players": [self._player_view(p) for p in self.players]}

        snapshot: Dict[str, Any] = {
            "started": True,
            "is_finished": state.is_finished,
            "phase": state.phase.value,
            "round_number": state.question_index + 1,
            "questions_per_game": self.options.questions_per_game,
            "turn_player_id": state.turn_player.id,
            "selection_time_remaining": state.selection_time_remaining,
            "answer_time_remaining": state.answer_time_remaining,
            "selected_category": state.selected_category,
            "selected_difficulty": state.selected_difficulty,
            "awaiting_question": self._pending_request_id is not None,
            "last_error": state.last_error,
            "players": [self._player_view(p) for p in self.players],
            "question": None,
        }
        question = state.current_question
        if question is not None:
            question_view = {
                "id": question.id,
                "prompt": question.prompt,
                "answers": list(question.answers),
                "categories": sorted(question.categories),
                "difficulty": question.difficulty,
            }
            if state.phase == GamePhase.RESULTS:
                question_view["correct_answer_index"] = question.correct_answer_index
            snapshot["question"] = question_view
        return snapshot

    def _player_view(self, player: Player) -> Dict[str, Any]:
        return {
            "id": player.id,
            "name": player.name,
            "is_ai": player.is_ai,
            "score": player.score,
            "has_answered": player.has_answered,
            "used_i_know_this_round": player.used_i_know_this_round,
            "i_know_powerups_remaining": player.i_know_powerups_remaining,
        }
