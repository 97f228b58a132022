"""
habit_service.py — Habit catalog
Account-scoped CRUD over habit definitions, list filtering with a rolling
completion rate, active toggling, cascade delete and an overview of counts.
"""

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from errors import InvalidInput, validate
from models.habit import Habit
from models.progress import Progress
from repository import AccountScope, paginate
from schemas import HabitCreate, HabitUpdate
from services.days import local_today

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Habit.name,
    "createdAt": Habit.created_at,
    "startDate": Habit.start_date,
    "category": Habit.category,
}
RATE_WINDOW = 30  # most recent entries used for completionRate


def _apply_reminder(h: Habit, reminder) -> None:
    h.reminder_enabled = reminder.enabled
    h.reminder_start_time = reminder.start_time
    h.reminder_end_time = reminder.end_time
    h.reminder_frequency = reminder.frequency
    h.reminder_message = reminder.message


def _check_window(h: Habit) -> None:
    if h.end_date is not None and h.start_date is not None and h.end_date < h.start_date:
        raise InvalidInput.for_field("endDate", "End date cannot be before start date")


class HabitService:
    @staticmethod
    def create(db: Session, user_id: int, data: dict) -> Habit:
        body = validate(HabitCreate, data)
        h = Habit(
            name=body.name,
            description=body.description,
            category=body.category,
            frequency=body.frequency,
            target=body.target,
            unit=body.unit,
            color=body.color,
            icon=body.icon,
            is_active=body.is_active,
            start_date=body.start_date or local_today(),
            end_date=body.end_date,
        )
        if body.reminder is not None:
            _apply_reminder(h, body.reminder)
        _check_window(h)
        AccountScope(db, user_id).add(h)
        db.commit()
        db.refresh(h)
        logger.info(f"Habit created: id={h.id} user={user_id}")
        return h

    @staticmethod
    def get(db: Session, user_id: int, habit_id: int) -> tuple[Habit, list[Progress]]:
        """The habit and its 7 most recent entries."""
        scope = AccountScope(db, user_id)
        h = scope.habit(habit_id)
        recent = (
            scope.progress().filter(Progress.habit_id == h.id)
            .order_by(Progress.date.desc()).limit(7).all()
        )
        return h, recent

    @staticmethod
    def completion_rate(db: Session, user_id: int, habit_id: int) -> tuple[float, int]:
        """Percentage of completed entries among the last RATE_WINDOW entries, and how many were inspected."""
        recent = (
            AccountScope(db, user_id).progress()
            .filter(Progress.habit_id == habit_id)
            .with_entities(Progress.is_completed)
            .order_by(Progress.date.desc())
            .limit(RATE_WINDOW)
            .all()
        )
        if not recent:
            return 0, 0
        done = sum(1 for (completed,) in recent if completed)
        return round(done / len(recent) * 100, 2), len(recent)

    @staticmethod
    def list(db: Session, user_id: int, category: str | None = None, status: str | None = None,
             sort_by: str = "createdAt", sort_order: str = "desc", page: int = 1, limit: int = 20):
        query = AccountScope(db, user_id).habits()
        if category:
            query = query.filter(Habit.category == category)
        if status == "active":
            query = query.filter(Habit.is_active.is_(True))
        elif status == "inactive":
            query = query.filter(Habit.is_active.is_(False))

        column = SORT_COLUMNS.get(sort_by)
        if column is None:
            raise InvalidInput.for_field("sortBy", f"Cannot sort by {sort_by}")
        order = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(order, Habit.id.asc())

        habits, pagination = paginate(query, page, limit, total_key="totalHabits")
        rows = []
        for h in habits:
            rate, inspected = HabitService.completion_rate(db, user_id, h.id)
            rows.append((h, rate, inspected))
        return rows, pagination

    @staticmethod
    def update(db: Session, user_id: int, habit_id: int, data: dict) -> Habit:
        body = validate(HabitUpdate, data)
        h = AccountScope(db, user_id).habit(habit_id)
        for k in body.model_fields_set:
            if k == "reminder":
                if body.reminder is not None:
                    _apply_reminder(h, body.reminder)
                continue
            v = getattr(body, k)
            if v is None and k in ("name", "category", "frequency", "target", "unit", "color", "icon", "is_active", "start_date"):
                continue
            setattr(h, k, v)
        _check_window(h)
        db.commit()
        db.refresh(h)
        return h

    @staticmethod
    def delete(db: Session, user_id: int, habit_id: int) -> int:
        """Delete a habit after all of its progress entries. Returns the number of entries removed."""
        scope = AccountScope(db, user_id)
        h = scope.habit(habit_id)
        removed = (
            scope.progress()
            .filter(Progress.habit_id == h.id)
            .delete(synchronize_session="fetch")
        )
        db.delete(h)
        db.commit()
        logger.info(f"Habit deleted: id={habit_id} user={user_id} entries_removed={removed}")
        return removed

    @staticmethod
    def toggle_active(db: Session, user_id: int, habit_id: int) -> Habit:
        h = AccountScope(db, user_id).habit(habit_id)
        h.is_active = not h.is_active
        db.commit()
        db.refresh(h)
        return h

    @staticmethod
    def overview(db: Session, user_id: int, now: datetime | None = None) -> dict:
        scope = AccountScope(db, user_id)
        total = scope.habits().count()
        active = scope.habits().filter(Habit.is_active.is_(True)).count()
        categories = (
            scope.habits()
            .with_entities(Habit.category, func.count(Habit.id))
            .group_by(Habit.category)
            .order_by(func.count(Habit.id).desc(), Habit.category.asc())
            .all()
        )
        total_streak = scope.habits().with_entities(func.coalesce(func.sum(Habit.streak_current), 0)).scalar()
        completed_today = (
            scope.progress()
            .filter(Progress.date == local_today(now), Progress.is_completed.is_(True))
            .count()
        )
        return {
            "totalHabits": total,
            "activeHabits": active,
            "categoryStats": [{"category": c, "count": n} for c, n in categories],
            "totalStreak": int(total_streak or 0),
            "completedToday": completed_today,
        }
