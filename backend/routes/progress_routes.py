from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response, status
from sqlalchemy.orm import Session

from auth import get_current_user
from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from database import get_db
from schemas import ProgressCreate, ProgressUpdate
from serializers import progress_to_dict
from services.notification_hub import hub
from services.progress_service import ProgressService

router = APIRouter(prefix="/api/v1/progress", tags=["Progress"])


@router.get("")
async def list_progress(
    habit: Optional[int] = None,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    completed: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    """Progress entries with filtering and pagination, newest first."""
    entries, pagination = ProgressService.list(db, user_id, habit, start_date, end_date, completed, page, limit)
    return {"progress": [progress_to_dict(p) for p in entries], "pagination": pagination}


@router.get("/calendar")
async def progress_calendar(
    year: int = Query(..., ge=1970, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    return ProgressService.calendar(db, user_id, year, month)


@router.get("/stats/summary")
async def progress_summary(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    return ProgressService.stats_summary(db, user_id, days)


@router.get("/{entry_id}")
async def get_progress(entry_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user)):
    return {"progress": progress_to_dict(ProgressService.get(db, user_id, entry_id))}


@router.post("")
async def record_progress(
    body: ProgressCreate,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    """Create or update the progress for a habit on one day."""
    details = body.model_dump(exclude_unset=True, exclude={"habit", "date", "value", "notes"})
    result = ProgressService.record(db, user_id, body.habit, body.date, body.value, body.notes, details)
    data = progress_to_dict(result.entry)
    background_tasks.add_task(hub.emit, user_id, result.event, {"progress": data})
    if result.created:
        response.status_code = status.HTTP_201_CREATED
        return {"message": "Progress created successfully", "progress": data}
    return {"message": "Progress updated successfully", "progress": data}


@router.put("/{entry_id}")
async def update_progress(
    entry_id: int,
    body: ProgressUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    result = ProgressService.update(db, user_id, entry_id, body.model_dump(exclude_unset=True))
    data = progress_to_dict(result.entry)
    background_tasks.add_task(hub.emit, user_id, "progressUpdated", {"progress": data})
    return {"message": "Progress updated successfully", "progress": data}


@router.delete("/{entry_id}")
async def delete_progress(
    entry_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    ProgressService.delete(db, user_id, entry_id)
    background_tasks.add_task(hub.emit, user_id, "progressDeleted", {"progressId": entry_id})
    return {"message": "Progress entry deleted successfully"}


@router.patch("/{entry_id}/toggle-completion")
async def toggle_progress_completion(
    entry_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user),
):
    result = ProgressService.toggle_completion(db, user_id, entry_id)
    data = progress_to_dict(result.entry)
    background_tasks.add_task(hub.emit, user_id, "progressUpdated", {"progress": data})
    state = "marked as completed" if result.entry.is_completed else "marked as incomplete"
    return {"message": f"Progress {state}", "progress": data}
