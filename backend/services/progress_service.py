"""
progress_service.py — Progress ledger
Upserts one entry per (account, habit, calendar day), derives completion from
the habit target, recomputes the habit streak as an explicit post-write step,
and aggregates entries into calendar and summary views.
"""

import calendar
import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import Conflict, InvalidInput, validate
from models.habit import Habit
from models.progress import Progress
from repository import AccountScope, paginate
from schemas import ProgressCreate, ProgressUpdate
from services.completion import Completion, compute_streak, derive_completion, toggle_completion
from services.days import day_range, local_today, parse_day, utcnow

logger = logging.getLogger(__name__)

DUPLICATE_DAY = "Progress already exists for this habit and date"


@dataclass
class ProgressWrite:
    """Outcome of a progress mutation: the stored entry and the habit after its streak update."""

    entry: Progress
    habit: Habit
    created: bool = False

    @property
    def event(self) -> str:
        return "progressCreated" if self.created else "progressUpdated"


def _resolve_day(raw, now: datetime):
    day = parse_day(raw)
    if day > local_today(now):
        raise InvalidInput.for_field("date", "Date cannot be in the future")
    return day


def _apply_fields(entry: Progress, body) -> None:
    for field in ("mood", "difficulty", "location", "weather"):
        if field in body.model_fields_set:
            setattr(entry, field, getattr(body, field))
    if "tags" in body.model_fields_set:
        entry.tags = json.dumps(body.tags or [])


def _with_details(previous: Completion, body) -> Completion:
    details = body.completion
    if details is None:
        return previous
    changes = {k: getattr(details, k) for k in details.model_fields_set}
    return replace(previous, **changes)


def _commit_entry(db: Session, entry: Progress) -> None:
    try:
        db.commit()
    except IntegrityError:
        # Lost the race for the (account, habit, day) slot; the client may retry.
        db.rollback()
        raise Conflict(DUPLICATE_DAY)
    db.refresh(entry)


def update_streak(db: Session, habit: Habit) -> Habit:
    """Recompute the habit's streak counters from its stored completion history."""
    history = (
        AccountScope(db, habit.user_id).progress()
        .filter(Progress.habit_id == habit.id)
        .with_entities(Progress.date, Progress.is_completed, Progress.completed_at)
        .all()
    )
    streak = compute_streak([tuple(row) for row in history], habit.streak_longest or 0)
    habit.streak_current = streak.current
    habit.streak_longest = streak.longest
    habit.streak_last_completed = streak.last_completed
    db.commit()
    db.refresh(habit)
    logger.debug(f"Streak for habit {habit.id}: current={streak.current} longest={streak.longest}")
    return habit


class ProgressService:
    @staticmethod
    def record(db: Session, user_id: int, habit_id, day, value, notes: str | None = None,
               details: dict | None = None, now: datetime | None = None) -> ProgressWrite:
        """Create or update the single entry for (user, habit, day)."""
        now = now or utcnow()
        body = validate(ProgressCreate, {
            **(details or {}),
            "habit": habit_id,
            "date": day,
            "value": value,
            "notes": notes,
        })
        day = _resolve_day(body.date, now)

        scope = AccountScope(db, user_id)
        habit = scope.habit(body.habit)
        entry = scope.entry_for_day(habit.id, day)
        created = entry is None
        if created:
            entry = scope.add(Progress(habit_id=habit.id, date=day))
            previous = Completion()
        else:
            previous = Completion.of(entry)

        entry.value = body.value
        entry.notes = body.notes or ""
        _apply_fields(entry, body)
        derive_completion(body.value, habit.target, _with_details(previous, body), now).apply_to(entry)

        _commit_entry(db, entry)
        habit = update_streak(db, habit)
        logger.info(
            f"Progress {'created' if created else 'updated'}: entry={entry.id} habit={habit.id} "
            f"day={day} value={entry.value} completed={entry.is_completed}"
        )
        return ProgressWrite(entry, habit, created)

    @staticmethod
    def update(db: Session, user_id: int, entry_id: int, data: dict, now: datetime | None = None) -> ProgressWrite:
        """Edit an entry by id. Moving it onto an occupied (habit, day) slot is a Conflict."""
        now = now or utcnow()
        body = validate(ProgressUpdate, data)
        scope = AccountScope(db, user_id)
        entry = scope.entry(entry_id)

        old_habit_id = entry.habit_id
        habit = scope.habit(body.habit if body.habit is not None else entry.habit_id)
        day = _resolve_day(body.date, now) if body.date is not None else entry.date

        if (habit.id, day) != (entry.habit_id, entry.date):
            if scope.entry_for_day(habit.id, day, exclude_id=entry.id):
                raise Conflict(DUPLICATE_DAY)
            entry.habit_id = habit.id
            entry.date = day

        if body.value is not None:
            entry.value = body.value
        if "notes" in body.model_fields_set:
            entry.notes = body.notes or ""
        _apply_fields(entry, body)

        completion = _with_details(Completion.of(entry), body)
        if body.value is not None or habit.id != old_habit_id:
            completion = derive_completion(entry.value, habit.target, completion, now)
        completion.apply_to(entry)

        _commit_entry(db, entry)
        habit = update_streak(db, habit)
        if habit.id != old_habit_id:
            update_streak(db, scope.habit(old_habit_id))
        return ProgressWrite(entry, habit)

    @staticmethod
    def toggle_completion(db: Session, user_id: int, entry_id: int, now: datetime | None = None) -> ProgressWrite:
        now = now or utcnow()
        scope = AccountScope(db, user_id)
        entry = scope.entry(entry_id)
        toggle_completion(Completion.of(entry), now).apply_to(entry)
        db.commit()
        db.refresh(entry)
        habit = update_streak(db, scope.habit(entry.habit_id))
        return ProgressWrite(entry, habit)

    @staticmethod
    def delete(db: Session, user_id: int, entry_id: int) -> Habit:
        scope = AccountScope(db, user_id)
        entry = scope.entry(entry_id)
        habit = scope.habit(entry.habit_id)
        db.delete(entry)
        db.commit()
        return update_streak(db, habit)

    @staticmethod
    def get(db: Session, user_id: int, entry_id: int) -> Progress:
        return AccountScope(db, user_id).entry(entry_id)

    @staticmethod
    def list(db: Session, user_id: int, habit_id: int | None = None, start_date=None, end_date=None,
             completed: bool | None = None, page: int = 1, limit: int = 20) -> tuple[list[Progress], dict]:
        """Filtered page of entries, newest day first."""
        query = AccountScope(db, user_id).progress()
        if habit_id is not None:
            query = query.filter(Progress.habit_id == habit_id)
        if start_date is not None:
            query = query.filter(Progress.date >= parse_day(start_date, "startDate"))
        if end_date is not None:
            query = query.filter(Progress.date <= parse_day(end_date, "endDate"))
        if completed is not None:
            query = query.filter(Progress.is_completed.is_(completed))
        query = query.order_by(Progress.date.desc(), Progress.id.desc())
        return paginate(query, page, limit)

    @staticmethod
    def calendar(db: Session, user_id: int, year: int, month: int) -> dict:
        """Per-day entries and completion rate for one month."""
        if not 1 <= month <= 12:
            raise InvalidInput.for_field("month", "Month must be between 1 and 12")
        scope = AccountScope(db, user_id)
        days_in_month = calendar.monthrange(year, month)[1]
        first = datetime(year, month, 1).date()
        last = datetime(year, month, days_in_month).date()

        entries = (
            scope.progress()
            .filter(Progress.date >= first, Progress.date <= last)
            .order_by(Progress.date.asc(), Progress.id.asc())
            .all()
        )
        total_habits = scope.habits().filter(Habit.is_active.is_(True)).count()

        by_day: dict = {}
        for p in entries:
            by_day.setdefault(p.date, []).append(p)

        calendar_data = []
        for d in day_range(first, last):
            day_entries = by_day.get(d, [])
            completed = sum(1 for p in day_entries if p.is_completed)
            rate = (completed / total_habits * 100) if total_habits > 0 else 0
            calendar_data.append({
                "date": d.isoformat(),
                "dayOfWeek": (d.weekday() + 1) % 7,  # 0 = Sunday
                "progress": [
                    {
                        "habitId": p.habit_id,
                        "habitName": p.habit.name,
                        "category": p.habit.category,
                        "color": p.habit.color,
                        "icon": p.habit.icon,
                        "completed": bool(p.is_completed),
                        "value": p.value,
                        "notes": p.notes,
                        "mood": p.mood,
                    }
                    for p in day_entries
                ],
                "totalHabits": total_habits,
                "completedHabits": completed,
                "completionRate": round(rate, 2),
            })

        average = sum(d["completionRate"] for d in calendar_data) / days_in_month
        return {
            "year": year,
            "month": month,
            "calendarData": calendar_data,
            "summary": {
                "totalDays": days_in_month,
                "averageCompletionRate": round(average, 2),
                "totalProgressEntries": len(entries),
            },
        }

    @staticmethod
    def stats_summary(db: Session, user_id: int, days: int = 30, now: datetime | None = None) -> dict:
        """Completion rate over the trailing window, per category, plus last completion per habit."""
        scope = AccountScope(db, user_id)
        start = local_today(now) - timedelta(days=days)

        entries = scope.progress().filter(Progress.date >= start).all()
        active = scope.habits().filter(Habit.is_active.is_(True)).all()

        total = len(entries)
        completed = sum(1 for p in entries if p.is_completed)

        category_stats = {h.category: {"total": 0, "completed": 0, "completionRate": 0} for h in active}
        for p in entries:
            stats = category_stats.get(p.habit.category)
            if stats is None:
                continue
            stats["total"] += 1
            if p.is_completed:
                stats["completed"] += 1
        for stats in category_stats.values():
            if stats["total"] > 0:
                stats["completionRate"] = round(stats["completed"] / stats["total"] * 100, 2)

        last_completed = (
            scope.progress()
            .filter(Progress.is_completed.is_(True))
            .with_entities(Progress.habit_id, func.max(Progress.date))
            .group_by(Progress.habit_id)
            .all()
        )
        names = {h.id: h.name for h in scope.habits().all()}
        streak_data = sorted(
            (
                {"habitId": habit_id, "habitName": names.get(habit_id), "lastCompleted": last.isoformat()}
                for habit_id, last in last_completed
            ),
            key=lambda row: row["lastCompleted"],
            reverse=True,
        )

        return {
            "period": f"{days} days",
            "totalEntries": total,
            "completedEntries": completed,
            "completionRate": round(completed / total * 100, 2) if total > 0 else 0,
            "categoryStats": category_stats,
            "activeHabits": len(active),
            "streakData": streak_data,
        }
