import logging
from dataclasses import dataclass, field
from typing import List, Optional

from supabase import Client

from nutriplan.core.errors import DuplicateFeedback, PersistenceFailure
from nutriplan.models.adjustment import (
    AdjustmentDecision,
    FeedbackInput,
    MacroTargets,
    compute_adjustment,
)
from nutriplan.models.schemas import WeeklyFeedbackIn
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

NOT_ADJUSTED_MESSAGE = "Weight updated. Your macros do not need adjusting right now."


@dataclass
class FeedbackResult:
    feedback_id: str
    adjusted: bool
    weight_change: float
    calorie_delta: int
    adjustments: Optional[dict] = None
    reasons: List[str] = field(default_factory=list)
    message: Optional[str] = None

    def to_dict(self) -> dict:
        body = {
            "success": True,
            "feedback_id": self.feedback_id,
            "adjusted": self.adjusted,
            "weight_change": round(self.weight_change, 2),
            "calorie_delta": self.calorie_delta,
        }
        if self.adjusted:
            body["adjustments"] = self.adjustments
            body["reasons"] = self.reasons
        else:
            body["message"] = self.message
        return body


def resolve_reference_weight(db: Client, user_id: str) -> Optional[float]:
    """Weight from the most recent earlier feedback, if any."""
    previous = store.latest_feedback(db, user_id)
    if previous is None or previous.get("current_weight") is None:
        return None
    return float(previous["current_weight"])


def process_weekly_feedback(db: Client, user_id: str, payload: WeeklyFeedbackIn) -> FeedbackResult:
    """
    Record a week's feedback and, when warranted, adjust the user's targets.

    Input is validated before anything is written. If the feedback row is
    saved but a later write fails, PersistenceFailure is raised with
    `partial=True` so the caller knows the feedback itself was kept.
    """
    # 1. Validate (raises InvalidFeedbackInput)
    feedback = FeedbackInput.validated(
        payload.current_weight,
        payload.energy_level,
        payload.hunger_satisfaction,
        payload.adherence_level,
    )
    week_date = payload.week_date.isoformat()

    # 2. Profile (raises ProfileNotFound)
    profile = store.require_profile(db, user_id)

    # 3. One feedback per user per week
    if store.feedback_for_week(db, user_id, week_date) is not None:
        raise DuplicateFeedback(f"Feedback for the week of {week_date} was already submitted")

    # 4. Decide
    decision = compute_adjustment(
        feedback,
        goal=profile.get("goal"),
        current=MacroTargets.from_profile(profile),
        profile_weight_kg=float(profile["weight"]),
        reference_weight_kg=resolve_reference_weight(db, user_id),
    )

    # 5. Persist
    saved = store.insert_feedback(db, {
        "user_id": user_id,
        "week_date": week_date,
        "current_weight": feedback.current_weight_kg,
        "energy_level": feedback.energy_level,
        "hunger_satisfaction": feedback.hunger_satisfaction,
        "adherence_level": feedback.adherence_level,
        "notes": payload.notes,
    })
    feedback_id = saved["id"]

    try:
        _commit(db, user_id, feedback_id, feedback, decision)
    except PersistenceFailure as e:
        logger.error("Feedback %s saved but follow-up writes failed: %s", feedback_id, e)
        raise PersistenceFailure(
            f"Feedback saved, but updating your targets failed: {e.message}",
            partial=True,
            feedback_id=feedback_id,
        ) from e

    if not decision.adjusted:
        return FeedbackResult(
            feedback_id=feedback_id,
            adjusted=False,
            weight_change=decision.weight_change,
            calorie_delta=decision.calorie_delta,
            message=NOT_ADJUSTED_MESSAGE,
        )

    return FeedbackResult(
        feedback_id=feedback_id,
        adjusted=True,
        weight_change=decision.weight_change,
        calorie_delta=decision.calorie_delta,
        adjustments=decision.changes(),
        reasons=decision.reasons,
    )


def _commit(db: Client, user_id: str, feedback_id: str, feedback: FeedbackInput,
            decision: AdjustmentDecision) -> None:
    if not decision.adjusted:
        store.update_profile(db, user_id, {"weight": feedback.current_weight_kg})
        return

    store.insert_adjustment(db, {
        "user_id": user_id,
        "feedback_id": feedback_id,
        "previous_calories": decision.previous.calories,
        "new_calories": decision.new.calories,
        "previous_protein": decision.previous.protein,
        "new_protein": decision.new.protein,
        "previous_carbs": decision.previous.carbs,
        "new_carbs": decision.new.carbs,
        "previous_fats": decision.previous.fats,
        "new_fats": decision.new.fats,
        "adjustment_reason": decision.reason_text(),
    })
    store.update_profile(db, user_id, {
        "weight": feedback.current_weight_kg,
        **decision.new.as_profile_fields(),
    })
