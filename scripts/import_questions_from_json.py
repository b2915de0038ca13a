#!/usr/bin/env python3
"""
Import questions from a JSON file into the database.
Usage: python scripts/import_questions_from_json.py [path_to_json]

The file holds a list of questions (or {"questions": [...]}) with the keys
id, question, answers, correct_answer_index, categories and difficulty.
"""
import sys
import os
import json
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.session import db_session
from database.queries import QuestionQueries
from game.constants import QUIZ_CATEGORIES
from questions.store import question_from_dict
from utils.errors import ValidationError
from utils.logging import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)

# Commit in batches to keep transactions short
COMMIT_BATCH_SIZE = 50


def import_questions_from_json(json_file_path: str) -> dict:
    """
    Import questions from a JSON file into the database.

    Args:
        json_file_path: Path to the JSON file

    Returns:
        Dict with import statistics
    """
    json_path = Path(json_file_path)
    if not json_path.exists():
        raise FileNotFoundError(f"File not found: {json_file_path}")

    logger.info(f"Reading {json_path}")
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    questions_data = data.get("questions", []) if isinstance(data, dict) else data
    if not isinstance(questions_data, list):
        raise ValueError("JSON file must contain a list of questions")

    logger.info(f"Found {len(questions_data)} questions in file")

    stats = {
        "total": len(questions_data),
        "imported": 0,
        "skipped": 0,
        "errors": 0,
    }

    with db_session() as session:
        for idx, item in enumerate(questions_data, 1):
            try:
                question = question_from_dict(item)
            except ValidationError as e:
                logger.warning(f"Question {idx}: {e.message}, skipping")
                stats["errors"] += 1
                continue

            unknown = question.categories.difference(QUIZ_CATEGORIES)
            if unknown:
                logger.warning(f"Question {idx}: unknown categories {sorted(unknown)}")

            if QuestionQueries.get_question_by_id(session, question.id):
                logger.debug(f"Question {idx}: {question.id} already exists, skipping")
                stats["skipped"] += 1
                continue

            QuestionQueries.add_question(
                session,
                text=question.prompt,
                answers=list(question.answers),
                correct_answer_index=question.correct_answer_index,
                categories=sorted(question.categories),
                difficulty=question.difficulty,
                question_id=question.id,
            )
            stats["imported"] += 1

            if stats["imported"] % COMMIT_BATCH_SIZE == 0:
                session.commit()
                logger.info(f"Imported {stats['imported']} questions...")

    return stats


def main():
    if len(sys.argv) > 1:
        json_file = sys.argv[1]
    else:
        project_root = Path(__file__).parent.parent
        json_file = project_root / "questions_data.json"

    if not Path(json_file).exists():
        print(f"[ERROR] File not found: {json_file}")
        print(f"Usage: python {sys.argv[0]} [path_to_json]")
        sys.exit(1)

    print("=" * 60)
    print("IMPORTING QUESTIONS")
    print("=" * 60)
    print(f"File: {json_file}")
    print()

    try:
        stats = import_questions_from_json(str(json_file))
    except Exception as e:
        logger.error(f"Import failed: {e}", exc_info=True)
        print(f"\n[ERROR] Import failed: {e}")
        sys.exit(1)

    print("=" * 60)
    print(f"Questions in file: {stats['total']}")
    print(f"Imported: {stats['imported']}")
    print(f"Skipped (already stored): {stats['skipped']}")
    print(f"Invalid: {stats['errors']}")
    print("=" * 60)


if __name__ == "__main__":
    main()
