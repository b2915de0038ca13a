"""
Database models.
"""
import uuid
from datetime import datetime
import pytz
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(pytz.UTC)


class Question(Base):
    """Trivia question with its calibration stats."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    text = Column(Text, nullable=False)
    answers = Column(JSON, nullable=False)
    correct_answer_index = Column(Integer, nullable=False)
    categories = Column(JSON, nullable=False, default=list)
    difficulty = Column(Float, nullable=False, default=0.5, index=True)

    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    recent_history = Column(JSON, nullable=False, default=list)
    confidence = Column(Float, nullable=True)
    last_adjustment = Column(Float, nullable=True)

    is_approved = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<Question(id={self.id}, difficulty={self.difficulty}, categories={self.categories})>"
