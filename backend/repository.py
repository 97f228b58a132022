"""
repository.py — Account-scoped access to habits and progress entries.
Every read, update and delete of a Habit or Progress row goes through an
AccountScope, so a query can never be issued without the owner filter.
"""

import math

from sqlalchemy.orm import Session

from errors import NotFound
from models.habit import Habit
from models.progress import Progress


class AccountScope:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id

    # ------------------------------------------------------------------
    def habits(self):
        return self.db.query(Habit).filter(Habit.user_id == self.user_id)

    def progress(self):
        return self.db.query(Progress).filter(Progress.user_id == self.user_id)

    # ------------------------------------------------------------------
    def habit(self, habit_id: int) -> Habit:
        h = self.habits().filter(Habit.id == habit_id).first()
        if not h:
            raise NotFound("Habit not found")
        return h

    def entry(self, entry_id: int) -> Progress:
        p = self.progress().filter(Progress.id == entry_id).first()
        if not p:
            raise NotFound("Progress entry not found")
        return p

    def entry_for_day(self, habit_id: int, day, exclude_id: int | None = None) -> Progress | None:
        query = self.progress().filter(Progress.habit_id == habit_id, Progress.date == day)
        if exclude_id is not None:
            query = query.filter(Progress.id != exclude_id)
        return query.first()

    # ------------------------------------------------------------------
    def add(self, obj):
        """Stamp the owner on a new Habit/Progress and stage it."""
        obj.user_id = self.user_id
        self.db.add(obj)
        return obj


def paginate(query, page: int, limit: int, total_key: str = "totalEntries") -> tuple[list, dict]:
    """Apply offset/limit to an already-sorted query and build the pagination block."""
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        total_key: total,
        "hasNextPage": page * limit < total,
        "hasPrevPage": page > 1,
    }
