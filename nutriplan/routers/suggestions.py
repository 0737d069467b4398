import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import NutriPlanError
from nutriplan.core.security import get_current_user
from nutriplan.models.schemas import AlternativeRequest, NutritionLookup
from nutriplan.services import suggestion_service
from nutriplan.services.ai_gateway import LLMGateway, get_llm_gateway
from nutriplan.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/suggestions",
    tags=["AI Suggestions"]
)


@router.post("/alternatives")
def suggest_alternatives(
    request: AlternativeRequest,
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    """Food substitutions, or a whole meal built to fit the remaining macros."""
    try:
        suggestion = suggestion_service.suggest_alternatives(db, gateway, str(current_user.id), request)
        return {"success": True, "suggestion": suggestion}
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Error generating alternatives")
        raise HTTPException(status_code=500, detail=f"Error generating suggestion: {str(e)}")


@router.post("/meals")
def suggest_meals(
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    try:
        return suggestion_service.generate_meal_suggestions(db, gateway, str(current_user.id))
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Error generating meal suggestions")
        raise HTTPException(status_code=500, detail=f"Error generating suggestions: {str(e)}")


@router.get("")
def suggestion_history(
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
):
    return {"suggestions": suggestion_service.suggestion_history(db, str(current_user.id), limit=limit)}


@router.post("/nutrition")
def nutrition_info(
    request: NutritionLookup,
    current_user: User = Depends(get_current_user),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    info = suggestion_service.lookup_nutrition(gateway, request.food_name, request.amount)
    return {"food_name": request.food_name, "amount": request.amount, **info}
