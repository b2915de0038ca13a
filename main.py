"""
Main entry point for Trivia Engine.

Runs a local AI-only game for trying out personalities, scoring and
difficulty calibration:

    python main.py simulate --questions-file questions.json
    python main.py simulate --use-database --players professor wildcard novice
"""
import argparse
import random
import sys
from typing import List, Optional
from game.constants import QUIZ_CATEGORIES, DIFFICULTY_LEVELS, describe_difficulty
from game.engine import GameEngine
from game.events import GameEvent, ROUND_RESOLVED, QUESTION_NOT_FOUND
from game.models import GameOptions, GamePhase, Player, Question
from game.personalities import AI_PERSONALITIES
from questions.store import InMemoryQuestionStore, QuestionStore
from utils.errors import TriviaEngineError
from utils.logging import setup_logging, get_logger
import config

logger = get_logger(__name__)

# Upper bound on ticks, protects the loop against a game that cannot progress
MAX_TICKS_PER_ROUND = 600


def build_practice_questions(answers_per_question: int = 4) -> List[Question]:
    """One placeholder question per category and difficulty level."""
    questions = []
    for category in QUIZ_CATEGORIES:
        for difficulty in DIFFICULTY_LEVELS:
            questions.append(Question(
                id=f"practice-{len(questions) + 1}",
                prompt=f"{category}: {describe_difficulty(difficulty)} practice question",
                answers=tuple(f"Option {i + 1}" for i in range(answers_per_question)),
                correct_answer_index=len(questions) % answers_per_question,
                categories=frozenset([category]),
                difficulty=difficulty,
            ))
    return questions


def build_roster(personality_ids: List[str]) -> List[Player]:
    roster = []
    for index, personality_id in enumerate(personality_ids, 1):
        personality = AI_PERSONALITIES.get(personality_id)
        if personality is None:
            raise TriviaEngineError(
                f"Unknown personality {personality_id!r}",
                {"available": sorted(AI_PERSONALITIES)}
            )
        roster.append(Player(
            id=f"bot-{index}",
            name=f"{personality.name} #{index}",
            is_ai=True,
            personality=personality,
        ))
    return roster


def build_store(args: argparse.Namespace, rng: random.Random) -> QuestionStore:
    if args.use_database:
        from questions.manager import QuestionManager
        return QuestionManager(rng=rng)
    if args.questions_file:
        return InMemoryQuestionStore.from_json_file(args.questions_file, rng=rng)
    return InMemoryQuestionStore(build_practice_questions(), rng=rng)


def log_event(event: GameEvent):
    if event.name == ROUND_RESOLVED:
        result = event.payload["result"]
        logger.info(
            f"Round {event.payload['round_number']} ({result.category}, {result.difficulty}): "
            f"deltas={result.deltas}"
        )
    elif event.name == QUESTION_NOT_FOUND:
        logger.warning(event.payload["error"])


def simulate(args: argparse.Namespace) -> int:
    rng = random.Random(args.seed)
    options = GameOptions(questions_per_game=args.questions)
    engine = GameEngine(
        build_roster(args.players),
        build_store(args, rng),
        options=options,
        rng=rng,
        ai_thinking_delay=0,
    )
    engine.add_listener(log_event)
    engine.start_game()

    while engine.is_active:
        ticks = 0
        while engine.phase != GamePhase.RESULTS and engine.is_active:
            engine.tick()
            ticks += 1
            if ticks > MAX_TICKS_PER_ROUND:
                logger.error("Round did not finish, stopping the simulation")
                engine.end_game()
                return 1
        engine.next_round()

    for place, player in enumerate(engine.get_standings(), 1):
        print(f"{place}. {player.name}: {player.score:.2f}")
    return 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Trivia Engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate_parser = subparsers.add_parser("simulate", help="Run an AI-only game")
    simulate_parser.add_argument(
        "--players",
        nargs="+",
        default=["professor", "sports_fanatic", "jack_of_all_trades", "wildcard"],
        help=f"AI personalities, one per player ({', '.join(sorted(AI_PERSONALITIES))})"
    )
    simulate_parser.add_argument(
        "--questions", type=int, default=config.config.QUESTIONS_PER_GAME,
        help="Questions per game"
    )
    simulate_parser.add_argument("--questions-file", help="JSON file with questions")
    simulate_parser.add_argument(
        "--use-database", action="store_true", help="Draw questions from DATABASE_URL"
    )
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = parse_args(argv)
    try:
        config.config.validate()
        if args.command == "simulate":
            return simulate(args)
    except TriviaEngineError as e:
        logger.error(f"{e.message} {e.details}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
