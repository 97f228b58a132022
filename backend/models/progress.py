from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Float, Boolean, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from database import Base


class Progress(Base):
    __tablename__ = "progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    habit_id = Column(Integer, ForeignKey("habits.id"), nullable=False)
    date = Column(Date, nullable=False)  # calendar day in APP_TIMEZONE
    value = Column(Float, nullable=False, default=0.0)

    # Completion record, see services/completion.py
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    completed_time = Column(String(5), nullable=True)  # "HH:MM"
    duration = Column(Float, nullable=True)  # minutes
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)

    notes = Column(Text, nullable=True)
    mood = Column(String(20), nullable=True)  # excellent/good/okay/bad/terrible
    difficulty = Column(String(20), nullable=True)  # very-easy/easy/moderate/hard/very-hard
    location = Column(String(200), nullable=True)
    weather = Column(String(100), nullable=True)
    tags = Column(Text, nullable=True)  # JSON array string

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    habit = relationship("Habit", back_populates="entries")

    __table_args__ = (
        UniqueConstraint("user_id", "habit_id", "date", name="uq_progress_user_habit_date"),
        Index("ix_progress_user_date", "user_id", "date"),
        Index("ix_progress_habit_date", "habit_id", "date"),
    )
