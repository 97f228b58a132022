"""
Pydantic schemas for the habit tracker API.

Request bodies arrive in camelCase (`isActive`, `startDate`, ...); the
schemas also accept the snake_case field names so services can validate
plain dicts built in Python.
"""

import re
from datetime import date as dt_date
from typing import Any, Literal, Optional, List

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)
TIME_OF_DAY = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

Category = Literal["health", "fitness", "learning", "productivity", "mindfulness", "social", "other"]
Frequency = Literal["daily", "weekly", "monthly"]
ReminderFrequency = Literal["once", "hourly", "every-2-hours", "every-4-hours"]
Mood = Literal["excellent", "good", "okay", "bad", "terrible"]
Difficulty = Literal["very-easy", "easy", "moderate", "hard", "very-hard"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Auth ──────────────────────────────────────────────────────────
class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        return v


class LoginRequest(BaseModel):
    identifier: str = Field(..., min_length=1)  # username or email
    password: str = Field(..., min_length=1)


# ── Habits ────────────────────────────────────────────────────────
class Reminder(CamelModel):
    enabled: bool = False
    start_time: Optional[str] = Field(None, pattern=TIME_OF_DAY)
    end_time: Optional[str] = Field(None, pattern=TIME_OF_DAY)
    frequency: Optional[ReminderFrequency] = None
    message: Optional[str] = Field(None, max_length=200)


def _check_color(v):
    if v is not None and not HEX_COLOR.match(v):
        raise ValueError("Color must be a valid hex color")
    return v


class HabitCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Category = "other"
    frequency: Frequency = "daily"
    target: int = Field(1, ge=1)
    unit: str = Field("times", max_length=50)
    color: str = "#3B82F6"
    icon: str = Field("📝", max_length=10)
    is_active: bool = True
    start_date: Optional[dt_date] = None
    end_date: Optional[dt_date] = None
    reminder: Optional[Reminder] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Habit name is required")
        return v

    @field_validator("color")
    @classmethod
    def color_is_hex(cls, v):
        return _check_color(v)


class HabitUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[Category] = None
    frequency: Optional[Frequency] = None
    target: Optional[int] = Field(None, ge=1)
    unit: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=10)
    is_active: Optional[bool] = None
    start_date: Optional[dt_date] = None
    end_date: Optional[dt_date] = None
    reminder: Optional[Reminder] = None

    @field_validator("color")
    @classmethod
    def color_is_hex(cls, v):
        return _check_color(v)


# ── Progress ──────────────────────────────────────────────────────
class CompletionDetails(CamelModel):
    duration: Optional[float] = Field(None, ge=0)
    start_time: Optional[str] = Field(None, pattern=TIME_OF_DAY)
    end_time: Optional[str] = Field(None, pattern=TIME_OF_DAY)


class ProgressFields(CamelModel):
    notes: Optional[str] = Field(None, max_length=500)
    mood: Optional[Mood] = None
    difficulty: Optional[Difficulty] = None
    location: Optional[str] = Field(None, max_length=200)
    weather: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    completion: Optional[CompletionDetails] = None


class ProgressCreate(ProgressFields):
    habit: int
    date: Any  # ISO-8601 date or datetime, resolved by services.days.parse_day
    value: float = Field(..., ge=0)


class ProgressUpdate(ProgressFields):
    habit: Optional[int] = None
    date: Any = None
    value: Optional[float] = Field(None, ge=0)
