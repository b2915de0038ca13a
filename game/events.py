"""
Game events - notifications scoped to a single game session.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List
import pytz
from utils.logging import get_logger

logger = get_logger(__name__)

GAME_STARTED = "game_started"
ROUND_STARTED = "round_started"
CATEGORY_SELECTED = "category_selected"
DIFFICULTY_SELECTED = "difficulty_selected"
QUESTION_REQUESTED = "question_requested"
QUESTION_NOT_FOUND = "question_not_found"
ANSWERING_STARTED = "answering_started"
ANSWER_SUBMITTED = "answer_submitted"
I_KNOW_USED = "i_know_used"
ROUND_RESOLVED = "round_resolved"
DIFFICULTY_CALIBRATED = "difficulty_calibrated"
CALIBRATION_FAILED = "calibration_failed"
GAME_FINISHED = "game_finished"
GAME_ENDED = "game_ended"


@dataclass
class GameEvent:
    """A state change reported to listeners."""
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(pytz.UTC))

    def __repr__(self):
        return f"<GameEvent(name={self.name}, payload={self.payload})>"


Listener = Callable[[GameEvent], None]


class EventEmitter:
    """Listener registry owned by one game engine."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener):
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear(self):
        self._listeners = []

    def emit(self, name: str, **payload: Any) -> GameEvent:
        """Deliver an event to every listener. A failing listener is logged and skipped."""
        event = GameEvent(name=name, payload=payload)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener {listener!r} failed on event {name}: {e}")
        return event
