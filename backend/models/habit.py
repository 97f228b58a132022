from datetime import datetime, timezone, date

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from database import Base


class Habit(Base):
    __tablename__ = "habits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), default="other")
    frequency = Column(String(20), default="daily")
    target = Column(Integer, default=1, nullable=False)
    unit = Column(String(50), default="times")  # e.g. "glasses", "pages"
    color = Column(String(7), default="#3B82F6")
    icon = Column(String(10), default="📝")  # emoji
    is_active = Column(Boolean, default=True)
    start_date = Column(Date, default=date.today)
    end_date = Column(Date, nullable=True)

    # Reminder window
    reminder_enabled = Column(Boolean, default=False)
    reminder_start_time = Column(String(5), nullable=True)  # "HH:MM"
    reminder_end_time = Column(String(5), nullable=True)
    reminder_frequency = Column(String(20), nullable=True)  # once/hourly/every-2-hours/every-4-hours
    reminder_message = Column(String(200), nullable=True)

    # Streak counters, derived from progress history after each write
    streak_current = Column(Integer, default=0)
    streak_longest = Column(Integer, default=0)
    streak_last_completed = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    entries = relationship("Progress", back_populates="habit", passive_deletes=True)

    __table_args__ = (
        Index("ix_habits_user_active", "user_id", "is_active"),
        Index("ix_habits_user_category", "user_id", "category"),
    )
