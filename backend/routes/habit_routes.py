from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from auth import get_current_user
from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from database import get_db
from schemas import Category, HabitCreate, HabitUpdate
from serializers import habit_to_dict, progress_to_dict
from services.habit_service import HabitService
from services.notification_hub import hub

router = APIRouter(prefix="/api/v1/habits", tags=["Habits"])


@router.get("")
async def list_habits(
    category: Optional[Category] = None,
    status_: Optional[Literal["active", "inactive"]] = Query(None, alias="status"),
    sort_by: Literal["name", "createdAt", "startDate", "category"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    rows, pagination = HabitService.list(db, user_id, category, status_, sort_by, sort_order, page, limit)
    habits = []
    for h, rate, inspected in rows:
        item = habit_to_dict(h)
        item["progress"] = inspected
        item["completionRate"] = rate
        habits.append(item)
    return {"habits": habits, "pagination": pagination}


@router.get("/stats/overview")
async def habit_overview(db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return HabitService.overview(db, user_id)


@router.get("/{habit_id}")
async def get_habit(habit_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    h, recent = HabitService.get(db, user_id, habit_id)
    data = habit_to_dict(h)
    data["recentProgress"] = [progress_to_dict(p) for p in recent]
    return {"habit": data}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_habit(
    body: HabitCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    h = HabitService.create(db, user_id, body.model_dump(exclude_unset=True))
    data = habit_to_dict(h)
    background_tasks.add_task(hub.emit, user_id, "habitCreated", {"habit": data})
    return {"message": "Habit created successfully", "habit": data}


@router.put("/{habit_id}")
async def update_habit(
    habit_id: int,
    body: HabitUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    h = HabitService.update(db, user_id, habit_id, body.model_dump(exclude_unset=True))
    data = habit_to_dict(h)
    background_tasks.add_task(hub.emit, user_id, "habitUpdated", {"habit": data})
    return {"message": "Habit updated successfully", "habit": data}


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    """Delete a habit and all associated progress."""
    HabitService.delete(db, user_id, habit_id)
    background_tasks.add_task(hub.emit, user_id, "habitDeleted", {"habitId": habit_id})
    return {"message": "Habit deleted successfully"}


@router.put("/{habit_id}/toggle")
async def toggle_habit(
    habit_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    h = HabitService.toggle_active(db, user_id, habit_id)
    data = habit_to_dict(h)
    background_tasks.add_task(hub.emit, user_id, "habitUpdated", {"habit": data})
    return {
        "message": f"Habit {'activated' if h.is_active else 'deactivated'} successfully",
        "habit": data,
    }
