"""
Database session management.
"""
from contextlib import contextmanager
from typing import Generator, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
import config


class DatabaseSession:
    """Database session manager class."""

    def __init__(self, database_url: str):
        """Initialize database engine and session factory."""
        engine_options = {
            "pool_pre_ping": True,  # Verify connections before using
            "echo": config.config.DEBUG and config.config.LOG_LEVEL.upper() == "DEBUG",
        }
        if not database_url.startswith("sqlite"):
            engine_options["pool_size"] = config.config.DATABASE_POOL_SIZE
            engine_options["max_overflow"] = config.config.DATABASE_MAX_OVERFLOW
        self.engine = create_engine(database_url, **engine_options)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self):
        """Create all database tables."""
        from database.models import Base
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """Drop all database tables."""
        from database.models import Base
        Base.metadata.drop_all(bind=self.engine)


# Global database session instance
_db_session: Optional[DatabaseSession] = None


def get_db_session() -> DatabaseSession:
    """Get or create global database session instance."""
    global _db_session
    if _db_session is None:
        config.config.validate()
        _db_session = DatabaseSession(config.config.DATABASE_URL)
    return _db_session


def set_db_session(db: Optional[DatabaseSession]):
    """Replace the global database session, e.g. with a test database."""
    global _db_session
    _db_session = db


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """Context manager for database session."""
    db = get_db_session()
    with db.get_session() as session:
        yield session
