import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import NutriPlanError
from nutriplan.core.security import get_current_user
from nutriplan.models.schemas import FoodItemCreate, MealPlanCreate, MealPlanGenerate
from nutriplan.services import meal_plan_service
from nutriplan.services.ai_gateway import LLMGateway, get_llm_gateway
from nutriplan.services.supabase_client import get_supabase
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/plans",
    tags=["Meal Plans"]
)


@router.post("", status_code=201, response_class=JSONResponse)
def create_meal_plan(
    data: MealPlanCreate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    plan = meal_plan_service.create_plan(db, str(current_user.id), data)
    return JSONResponse(content={"success": True, "plan": plan}, status_code=201)


@router.post("/generate", response_class=JSONResponse)
def generate_meal_plan(
    request: MealPlanGenerate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    """
    Generate a one day plan (five meals) from the user's stored profile and
    targets, and save it with its meals and food items.
    """
    user_id = str(current_user.id)
    try:
        logger.info("Generating meal plan for user: %s", user_id)
        return {"success": True, **meal_plan_service.generate_plan(db, gateway, user_id, request)}
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Meal plan generation failed for user %s", user_id)
        raise HTTPException(status_code=500, detail=f"Error generating meal plan: {str(e)}")


@router.get("")
def list_meal_plans(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    plans = store.list_meal_plans(
        db,
        str(current_user.id),
        start=start_date.isoformat() if start_date else None,
        end=end_date.isoformat() if end_date else None,
    )
    return {"plans": plans}


@router.get("/today")
def get_todays_plan(current_user: User = Depends(get_current_user), db: Client = Depends(get_supabase)):
    return {"plan": meal_plan_service.todays_plan(db, str(current_user.id))}


@router.get("/{plan_id}")
def get_meal_plan(
    plan_id: str,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    plan = meal_plan_service.owned_plan(db, str(current_user.id), plan_id)
    return {"plan": meal_plan_service.assemble_plan(db, plan)}


@router.patch("/meals/{meal_id}/toggle")
def toggle_meal(
    meal_id: str,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    return {"meal": meal_plan_service.toggle_meal(db, str(current_user.id), meal_id)}


@router.post("/meals/{meal_id}/foods", status_code=201)
def add_food_item(
    meal_id: str,
    food: FoodItemCreate,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    """Add a food to a meal. Omitted macros are filled in by the nutrition lookup."""
    return meal_plan_service.add_food(db, gateway, str(current_user.id), meal_id, food)


@router.delete("/foods/{food_id}")
def delete_food_item(
    food_id: str,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    return {"plan": meal_plan_service.remove_food(db, str(current_user.id), food_id)}
