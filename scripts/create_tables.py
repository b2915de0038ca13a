#!/usr/bin/env python
"""
Script to create the question tables.
Usage: python scripts/create_tables.py [--drop]
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from database.queries import QuestionQueries
from database.session import get_db_session, db_session
from utils.errors import TriviaEngineError
from utils.logging import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def main():
    """Create database tables, optionally dropping existing ones first."""
    drop = "--drop" in sys.argv[1:]
    try:
        db = get_db_session()
        if drop:
            logger.warning("Dropping existing tables")
            db.drop_tables()
        logger.info("Creating database tables...")
        db.create_tables()
        with db_session() as session:
            count = QuestionQueries.count_questions(session)
        logger.info(f"Database ready, {count} questions stored")
    except TriviaEngineError as e:
        logger.error(f"Error creating tables: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
