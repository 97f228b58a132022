"""
completion.py — Completion record and streak rules.
Pure functions over plain values; nothing here touches the database.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta

from services.days import hhmm


@dataclass(frozen=True)
class Completion:
    """Structured completion state of one progress entry."""

    is_completed: bool = False
    completed_at: datetime | None = None
    completed_time: str | None = None  # "HH:MM"
    duration: float | None = None  # minutes
    start_time: str | None = None
    end_time: str | None = None

    @classmethod
    def of(cls, entry) -> "Completion":
        return cls(
            is_completed=bool(entry.is_completed),
            completed_at=entry.completed_at,
            completed_time=entry.completed_time,
            duration=entry.duration,
            start_time=entry.start_time,
            end_time=entry.end_time,
        )

    def apply_to(self, entry):
        entry.is_completed = self.is_completed
        entry.completed_at = self.completed_at
        entry.completed_time = self.completed_time
        entry.duration = self.duration
        entry.start_time = self.start_time
        entry.end_time = self.end_time
        return entry

    def mark(self, completed: bool, now: datetime) -> "Completion":
        """Set the flag. Entering completion stamps `now` unless a stamp exists; leaving clears it."""
        if not completed:
            return replace(self, is_completed=False, completed_at=None, completed_time=None)
        if self.is_completed and self.completed_at is not None:
            return self
        return replace(self, is_completed=True, completed_at=now, completed_time=hhmm(now))


def derive_completion(value: float, target: int, previous: Completion | None, now: datetime) -> Completion:
    """Completion after writing `value` against a habit with `target`.

    Deterministic in (value, target, previous): saving the same value twice
    yields the same record, and an existing completedAt survives repeat saves
    that stay completed.
    """
    return (previous or Completion()).mark(value >= target, now)


def toggle_completion(previous: Completion, now: datetime) -> Completion:
    return previous.mark(not previous.is_completed, now)


# ----------------------------------------------------------------------
def advance_streak(current: int, longest: int, completed: bool) -> tuple[int, int]:
    """One evaluation step: a completed day extends the run, anything else resets it."""
    if completed:
        current += 1
        return current, max(longest, current)
    return 0, longest


@dataclass(frozen=True)
class Streak:
    current: int = 0
    longest: int = 0
    last_completed: datetime | None = None


def compute_streak(history: list[tuple[date, bool, datetime | None]], previous_longest: int = 0) -> Streak:
    """Fold advance_streak over a habit's day history.

    `history` holds (day, is_completed, completed_at) per entry. Days with no
    entry count as not completed, so a gap breaks the run. `current` is the
    run ending at the most recent day that has an entry.
    """
    if not history:
        return Streak(0, previous_longest, None)

    ordered = sorted(history, key=lambda row: row[0])
    current, longest = 0, previous_longest
    last_completed = None
    prev_day = None
    for day, completed, completed_at in ordered:
        if prev_day is not None and day - prev_day > timedelta(days=1):
            current, longest = advance_streak(current, longest, False)
        current, longest = advance_streak(current, longest, completed)
        if completed:
            last_completed = completed_at or datetime(day.year, day.month, day.day)
        prev_day = day
    return Streak(current, longest, last_completed)
