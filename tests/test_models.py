"""
Tests for game data types, events and configuration.
"""
import pytest
import config
from game.constants import DIFFICULTY_LEVELS, describe_difficulty, normalize_difficulty
from game.events import EventEmitter, ROUND_STARTED
from game.models import GameOptions, GamePlayerState, Question
from utils.errors import ConfigurationError, ValidationError
from utils.retry import retry_with_backoff
from tests.conftest import make_player


def test_difficulty_ladder():
    assert DIFFICULTY_LEVELS == (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)
    assert normalize_difficulty(0.1 + 0.2) == 0.3
    assert normalize_difficulty(1.3) == 1.0
    assert describe_difficulty(0.1) == "Trivial"
    assert describe_difficulty(0.45) == "Requires Finesse"
    assert describe_difficulty(1.0) == "PhD-Level Madness"


def test_question_is_immutable():
    question = Question(
        id="q", prompt="?", answers=["a", "b"], correct_answer_index=0,
        categories=["History"], difficulty=0.5,
    )
    assert question.answers == ("a", "b")
    with pytest.raises(AttributeError):
        question.difficulty = 0.9
    with pytest.raises(ValidationError):
        Question(id="q", prompt="?", answers=["a"], correct_answer_index=2,
                 categories=["History"], difficulty=0.5)


def test_available_choices_reset_when_exhausted():
    game_state = GamePlayerState(used_categories={"A", "B"}, used_difficulties={0.1})

    assert game_state.available_categories(("A", "B")) == ["A", "B"]
    assert game_state.used_categories == set()
    assert game_state.available_difficulties((0.1, 0.2)) == [0.2]


def test_player_resets():
    player = make_player("alice")
    player.reset_game_state(3)
    player.score = 4.5
    player.round_state.has_answered = True
    player.game_state.used_categories.add("History")

    player.reset_round_state()
    assert not player.has_answered
    assert player.game_state.used_categories == {"History"}
    assert player.score == 4.5

    player.reset_game_state(2)
    assert player.score == 0.0
    assert player.i_know_powerups_remaining == 2
    assert player.game_state.used_categories == set()


@pytest.mark.parametrize("field,value", [
    ("questions_per_game", 0),
    ("question_time_limit", 0),
    ("selection_time_limit", -1),
    ("i_know_powerups_per_player", -1),
])
def test_game_options_validation(field, value):
    with pytest.raises(ValidationError):
        GameOptions(**{field: value}).validate()


def test_event_emitter_isolates_failing_listener():
    received = []

    def broken(event):
        raise RuntimeError("boom")

    emitter = EventEmitter()
    emitter.subscribe(broken)
    emitter.subscribe(received.append)
    emitter.subscribe(received.append)

    event = emitter.emit(ROUND_STARTED, round_number=1)

    assert received == [event]
    assert event.payload == {"round_number": 1}
    assert event.created_at.tzinfo is not None

    emitter.unsubscribe(received.append)
    emitter.emit(ROUND_STARTED, round_number=2)
    assert len(received) == 1


def test_config_validation(monkeypatch):
    assert config.Config.validate()
    monkeypatch.setattr(config.Config, "DIFFICULTY_WINDOW", 2.0)
    with pytest.raises(ConfigurationError):
        config.Config.validate()


def test_retry_with_backoff(monkeypatch):
    monkeypatch.setattr("utils.retry.time.sleep", lambda seconds: None)
    calls = []

    @retry_with_backoff(max_attempts=3, exceptions=(ConnectionError,))
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("down")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3

    @retry_with_backoff(max_attempts=2, exceptions=(ConnectionError,))
    def always_down():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        always_down()
