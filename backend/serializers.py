"""
serializers.py — ORM rows to camelCase JSON dicts for responses and socket events.
"""

import json


def _iso(value):
    return value.isoformat() if value is not None else None


def habit_summary(h) -> dict:
    """The habit fields embedded in a progress entry."""
    return {
        "id": h.id,
        "name": h.name,
        "category": h.category,
        "color": h.color,
        "icon": h.icon,
        "target": h.target,
        "unit": h.unit,
    }


def habit_to_dict(h) -> dict:
    return {
        "id": h.id,
        "user": h.user_id,
        "name": h.name,
        "description": h.description,
        "category": h.category,
        "frequency": h.frequency,
        "target": h.target,
        "unit": h.unit,
        "color": h.color,
        "icon": h.icon,
        "isActive": bool(h.is_active),
        "startDate": _iso(h.start_date),
        "endDate": _iso(h.end_date),
        "reminder": {
            "enabled": bool(h.reminder_enabled),
            "startTime": h.reminder_start_time,
            "endTime": h.reminder_end_time,
            "frequency": h.reminder_frequency,
            "message": h.reminder_message,
        },
        "streak": {
            "current": h.streak_current or 0,
            "longest": h.streak_longest or 0,
            "lastCompleted": _iso(h.streak_last_completed),
        },
        "createdAt": _iso(h.created_at),
        "updatedAt": _iso(h.updated_at),
    }


def progress_percentage(value, target) -> float:
    """Share of the target reached, capped at 100."""
    if not target:
        return 0
    return round(min((value or 0) / target * 100, 100), 2)


def progress_to_dict(p) -> dict:
    return {
        "id": p.id,
        "user": p.user_id,
        "habit": habit_summary(p.habit) if p.habit is not None else p.habit_id,
        "date": _iso(p.date),
        "value": p.value,
        "progressPercentage": progress_percentage(p.value, p.habit.target) if p.habit is not None else 0,
        "completion": {
            "isCompleted": bool(p.is_completed),
            "completedAt": _iso(p.completed_at),
            "completedTime": p.completed_time,
            "duration": p.duration,
            "startTime": p.start_time,
            "endTime": p.end_time,
        },
        "notes": p.notes,
        "mood": p.mood,
        "difficulty": p.difficulty,
        "location": p.location,
        "weather": p.weather,
        "tags": json.loads(p.tags) if p.tags else [],
        "createdAt": _iso(p.created_at),
        "updatedAt": _iso(p.updated_at),
    }


def user_to_dict(u) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "createdAt": _iso(u.created_at),
    }
