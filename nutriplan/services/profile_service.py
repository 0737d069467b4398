import logging

from supabase import Client

from nutriplan.core.errors import InvalidProfileInput
from nutriplan.models.energy import calculate_targets
from nutriplan.models.schemas import ProfileCreate, ProfileUpdate
from nutriplan.models.validators import CALORIE_FLOOR
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

# Changing any of these invalidates the stored targets
TARGET_INPUTS = ("weight", "height", "age", "gender", "activity_level", "goal")
TARGET_OVERRIDES = ("target_calories", "target_protein", "target_carbs", "target_fats")


def targets_for(data: dict):
    return calculate_targets(
        gender=data.get("gender"),
        weight_kg=data.get("weight"),
        height_cm=data.get("height"),
        age_years=data.get("age"),
        activity_level=data.get("activity_level"),
        goal=data.get("goal"),
    )


def onboard(db: Client, user_id: str, data: ProfileCreate) -> dict:
    """Store the onboarding profile together with its computed targets."""
    targets = targets_for(data.model_dump())
    record = {
        "name": data.name,
        "age": data.age,
        "gender": data.gender,
        "weight": data.weight,
        "height": data.height,
        "activity_level": data.activity_level,
        "work_type": data.work_type,
        "goal": data.goal,
        "diet_type": data.diet_type,
        "restrictions": data.restrictions,
        **targets.as_profile_fields(),
    }
    profile = store.save_profile(db, user_id, record)
    logger.info("Profile saved for user %s (target %s kcal)", user_id, targets.target_calories)
    return {"profile": profile, "targets": targets.to_dict()}


def _check_overrides(overrides: dict) -> None:
    calories = overrides.get("target_calories")
    if calories is not None and calories < CALORIE_FLOOR:
        raise InvalidProfileInput(f"target_calories must be at least {CALORIE_FLOOR}")
    for key in ("target_protein", "target_carbs", "target_fats"):
        if overrides.get(key) is not None and overrides[key] < 0:
            raise InvalidProfileInput(f"{key} must not be negative")


def edit_profile(db: Client, user_id: str, data: ProfileUpdate) -> dict:
    """
    Partially update a profile.

    Edits to anything the calculator depends on recompute the targets; explicit
    target values sent in the same request win over the recomputed ones.
    """
    current = store.require_profile(db, user_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    overrides = {k: changes.pop(k) for k in TARGET_OVERRIDES if k in changes}
    _check_overrides(overrides)

    fields = dict(changes)
    if any(key in changes for key in TARGET_INPUTS):
        fields.update(targets_for({**current, **changes}).as_profile_fields())
        logger.info("Recomputed targets for user %s", user_id)
    fields.update(overrides)

    if not fields:
        return current
    return store.update_profile(db, user_id, fields)
