import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from supabase import Client
from supabase_auth.types import User

from nutriplan.core.errors import NutriPlanError
from nutriplan.core.security import current_role, ensure_client_access, require_role
from nutriplan.models.roles import Role
from nutriplan.models.schemas import BatchUpdateRequest
from nutriplan.services import nutritionist_service, report_service
from nutriplan.services.ai_gateway import LLMGateway, get_llm_gateway
from nutriplan.services.insights_service import analyze_client_groups
from nutriplan.services.supabase_client import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/nutritionist",
    tags=["Nutritionist"]
)

require_nutritionist = require_role(Role.NUTRITIONIST)


@router.get("/clients")
def list_clients(current_user: User = Depends(require_nutritionist), db: Client = Depends(get_supabase)):
    return {"clients": nutritionist_service.list_clients(db, str(current_user.id))}


@router.post("/groups/analyze")
def analyze_groups(
    current_user: User = Depends(require_nutritionist),
    db: Client = Depends(get_supabase),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    """Cluster the nutritionist's clients and get per-group recommendations."""
    try:
        clients = nutritionist_service.client_profiles(db, str(current_user.id))
        analysis = analyze_client_groups(db, gateway, clients, nutritionist_service.analysis_since())
        return analysis.model_dump(exclude_none=True)
    except (HTTPException, NutriPlanError):
        raise
    except Exception as e:
        logger.exception("Group analysis failed")
        raise HTTPException(status_code=500, detail=f"Error analysing client groups: {str(e)}")


@router.post("/clients/batch-update")
def batch_update(
    request: BatchUpdateRequest,
    current_user: User = Depends(require_nutritionist),
    role: Role = Depends(current_role),
    db: Client = Depends(get_supabase),
):
    return nutritionist_service.batch_update(db, str(current_user.id), role, request)


@router.get("/clients/{client_id}/report")
def client_report(
    client_id: str,
    format: Literal["json", "csv"] = "json",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(require_nutritionist),
    role: Role = Depends(current_role),
    db: Client = Depends(get_supabase),
):
    ensure_client_access(db, str(current_user.id), role, client_id)

    report = report_service.build_report(
        db,
        client_id,
        start_date=start_date.isoformat() if start_date else None,
        end_date=end_date.isoformat() if end_date else None,
    )
    if format == "csv":
        return Response(
            content=report_service.report_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="report_{client_id}.csv"'},
        )
    return report
