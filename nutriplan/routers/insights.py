import logging

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import NutriPlanError
from nutriplan.core.security import get_current_user
from nutriplan.services.ai_gateway import LLMGateway, get_llm_gateway
from nutriplan.services.insights_service import predict_patterns
from nutriplan.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/insights",
    tags=["Insights"]
)


@router.post("/predict")
def predict(
    current_user: User = Depends(get_current_user),
    db: Client = Depends(get_supabase),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    try:
        return {"success": True, "insights": predict_patterns(db, gateway, str(current_user.id))}
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Predictive analysis failed")
        raise HTTPException(status_code=500, detail=f"Error generating insights: {str(e)}")
