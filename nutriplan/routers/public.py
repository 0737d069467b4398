from fastapi import APIRouter
from fastapi.responses import JSONResponse

from nutriplan.models.energy import activity_multiplier, calculate_targets
from nutriplan.models.schemas import TargetsRequest

router = APIRouter(
    prefix="/public",
    tags=["public"]
)


@router.post("/calculate-targets", response_class=JSONResponse)
def calculate_nutritional_targets(request: TargetsRequest):
    """Energy and macro targets for an anonymous visitor; nothing is stored."""
    targets = calculate_targets(
        gender=request.gender,
        weight_kg=request.weight,
        height_cm=request.height,
        age_years=request.age,
        activity_level=request.activity_level,
        goal=request.goal,
    )
    return {
        "success": True,
        "data": {
            "nutritional_targets": {
                "calories": targets.target_calories,
                "protein_grams": targets.target_protein_g,
                "carbs_grams": targets.target_carbs_g,
                "fat_grams": targets.target_fats_g,
            },
            "user_metrics": {
                "tdee": targets.tdee,
                "activity_level": request.activity_level,
                "activity_multiplier": activity_multiplier(request.activity_level),
                "goal": request.goal,
            },
        },
    }
