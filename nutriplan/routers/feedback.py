import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import NutriPlanError
from nutriplan.core.security import get_current_user
from nutriplan.models.schemas import WeeklyFeedbackIn
from nutriplan.services.feedback_service import process_weekly_feedback
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/feedback",
    tags=["Weekly Feedback"]
)


@router.post("/weekly")
def submit_weekly_feedback(
    payload: WeeklyFeedbackIn,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    """
    Record this week's check-in (weight, energy, hunger, adherence) and adjust
    the calorie and macro targets when the answers call for it.
    """
    try:
        return process_weekly_feedback(db, str(current_user.id), payload).to_dict()
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Error processing weekly feedback")
        raise HTTPException(status_code=500, detail=f"Error processing feedback: {str(e)}")


@router.get("")
def feedback_history(
    limit: int = Query(default=12, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    return {"feedback": store.list_feedback(db, str(current_user.id), limit=limit)}


@router.get("/adjustments")
def adjustment_history(
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    return {"adjustments": store.list_adjustments(db, str(current_user.id), limit=limit)}
