import logging
from typing import List

from google.genai import types
from supabase import Client

from nutriplan.core.errors import AIGatewayError, InsufficientData
from nutriplan.core.prompts import (
    GROUP_ANALYSIS_SYSTEM,
    PREDICTION_SYSTEM,
    group_analysis_prompt,
    prediction_prompt,
)
from nutriplan.models.schemas import ClientGroupAnalysis
from nutriplan.services.ai_gateway import LLMGateway
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

FEEDBACK_WINDOW = 12
PROGRESS_WINDOW = 30
ADJUSTMENT_WINDOW = 10
MIN_FEEDBACKS = 2

PREDICTION_KEYS = (
    "individual_patterns",
    "predictions",
    "adherence_risk",
    "actionable_insights",
    "success_indicators",
)

_NUMBER = types.Schema(type=types.Type.NUMBER)

GROUP_ANALYSIS_DECLARATION = types.FunctionDeclaration(
    name="analyze_client_groups",
    description="Group nutrition clients and give recommendations for each group.",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "groups": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "name": types.Schema(type=types.Type.STRING, description="Group name."),
                        "client_count": types.Schema(type=types.Type.INTEGER),
                        "avg_calories": _NUMBER,
                        "avg_protein": _NUMBER,
                        "avg_carbs": _NUMBER,
                        "avg_fats": _NUMBER,
                        "avg_adherence": _NUMBER,
                        "recommendations": types.Schema(
                            type=types.Type.ARRAY,
                            items=types.Schema(type=types.Type.STRING),
                        ),
                    },
                    required=["name", "client_count", "recommendations"],
                ),
            ),
            "overall_insights": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
                description="General insights across every client.",
            ),
        },
        required=["groups", "overall_insights"],
    ),
)


def _delta(row: dict, key: str):
    old, new = row.get(f"previous_{key}"), row.get(f"new_{key}")
    if old is None or new is None:
        return None
    return new - old


def summarize_adjustments(adjustments: List[dict]) -> List[dict]:
    return [
        {
            "date": row.get("adjustment_date"),
            "calories_change": _delta(row, "calories"),
            "protein_change": _delta(row, "protein"),
            "carbs_change": _delta(row, "carbs"),
            "fats_change": _delta(row, "fats"),
            "reason": row.get("adjustment_reason"),
        }
        for row in adjustments
    ]


def predict_patterns(db: Client, gateway: LLMGateway, user_id: str) -> dict:
    """
    Ask the LLM to read the user's history and predict what comes next.

    At least two weekly feedbacks are needed before a trend can be read.
    """
    profile = store.require_profile(db, user_id)
    feedbacks = store.list_feedback(db, user_id, limit=FEEDBACK_WINDOW)
    if len(feedbacks) < MIN_FEEDBACKS:
        raise InsufficientData(
            f"At least {MIN_FEEDBACKS} weekly feedbacks are needed for predictive analysis"
        )

    progress = store.list_progress(db, user_id, limit=PROGRESS_WINDOW)
    adjustments = store.list_adjustments(db, user_id, limit=ADJUSTMENT_WINDOW)

    analysis_data = {
        "profile": {
            "age": profile.get("age"),
            "gender": profile.get("gender"),
            "goal": profile.get("goal"),
            "activity_level": profile.get("activity_level"),
            "current_weight": profile.get("weight"),
            "target_calories": profile.get("target_calories"),
            "target_protein": profile.get("target_protein"),
            "target_carbs": profile.get("target_carbs"),
            "target_fats": profile.get("target_fats"),
        },
        "weekly_feedbacks": [
            {
                "week_date": f.get("week_date"),
                "weight": f.get("current_weight"),
                "energy_level": f.get("energy_level"),
                "hunger_satisfaction": f.get("hunger_satisfaction"),
                "adherence_level": f.get("adherence_level"),
                "notes": f.get("notes"),
            }
            for f in feedbacks
        ],
        "progress_data": progress,
        "adjustments_history": summarize_adjustments(adjustments),
    }

    result = gateway.generate_json(prediction_prompt(analysis_data), PREDICTION_SYSTEM)
    if not isinstance(result, dict):
        raise AIGatewayError("Unexpected AI response format. Please try again.")

    missing = [key for key in PREDICTION_KEYS if key not in result]
    if missing:
        logger.warning("Prediction for user %s is missing %s", user_id, ", ".join(missing))
    return result


def analyze_client_groups(db: Client, gateway: LLMGateway, clients: List[dict], since: str) -> ClientGroupAnalysis:
    if not clients:
        return ClientGroupAnalysis(message="No clients found")

    client_ids = [c["user_id"] for c in clients]
    feedbacks = store.feedback_for_users(db, client_ids, since)
    adherence = store.adherence_for_users(db, client_ids, since)

    args = gateway.generate_structured(
        group_analysis_prompt(clients, feedbacks, adherence),
        GROUP_ANALYSIS_DECLARATION,
        GROUP_ANALYSIS_SYSTEM,
    )
    logger.info("Grouped %s clients into %s groups", len(clients), len(args.get("groups") or []))
    return ClientGroupAnalysis(
        groups=list(args.get("groups") or []),
        overall_insights=list(args.get("overall_insights") or []),
    )
