"""
Database module for Trivia Engine.
Contains models, database session management, and queries.
"""
from database.session import get_db_session, set_db_session, db_session, DatabaseSession
from database.models import Base, Question

__all__ = [
    "get_db_session",
    "set_db_session",
    "db_session",
    "DatabaseSession",
    "Base",
    "Question",
]
