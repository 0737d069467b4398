from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import InvalidRequest
from nutriplan.core.security import get_current_user
from nutriplan.models.schemas import AdherenceEntry, ProgressEntry
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

router = APIRouter(
    prefix="/progress",
    tags=["Progress"]
)


def adherence_percentage(meals_completed: int, meals_planned: int) -> float:
    return round(100 * meals_completed / meals_planned, 1)


@router.post("", status_code=201)
def record_progress(
    entry: ProgressEntry,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """Body measurements for a day (weight, body fat, circumferences)."""
    record = entry.model_dump(exclude_none=True)
    record["date"] = entry.date.isoformat()
    return store.insert_progress(db, {"user_id": str(current_user.id), **record})


@router.get("")
def progress_history(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(default=30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    rows = store.list_progress(
        db,
        str(current_user.id),
        limit=limit,
        start=start_date.isoformat() if start_date else None,
        end=end_date.isoformat() if end_date else None,
    )
    return {"progress": rows}


@router.post("/adherence", status_code=201)
def record_adherence(
    entry: AdherenceEntry,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    if entry.meals_completed > entry.meals_planned:
        raise InvalidRequest("meals_completed cannot exceed meals_planned")

    return store.insert_adherence(db, {
        "user_id": str(current_user.id),
        "date": entry.date.isoformat(),
        "meals_completed": entry.meals_completed,
        "meals_planned": entry.meals_planned,
        "adherence_percentage": adherence_percentage(entry.meals_completed, entry.meals_planned),
    })


@router.get("/adherence")
def adherence_history(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    rows = store.list_adherence(
        db,
        str(current_user.id),
        start=start_date.isoformat() if start_date else None,
        end=end_date.isoformat() if end_date else None,
    )
    return {"adherence": rows}
