"""
Weekly feedback driven calorie adjustment.

Every rule below is evaluated independently and the calorie deltas add up.
The new calorie target never goes under CALORIE_FLOOR, and macros are
rescaled against the *pre-adjustment* calories, so whatever ratio the
profile already stores is carried forward unchanged.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from nutriplan.core.errors import InvalidProfileInput
from nutriplan.models.validators import (
    CALORIE_FLOOR,
    require_ordinal,
    require_weight,
    round_half_up,
)

logger = logging.getLogger(__name__)

MIN_CALORIE_CHANGE = 50
LOW_SCORE = 2

REASON_NO_LOSS = "weight did not decrease as expected"
REASON_FAST_LOSS = "weight loss too fast"
REASON_NO_GAIN = "weight did not increase as expected"
REASON_FAST_GAIN = "weight gain too fast"
REASON_LOW_ENERGY = "low energy reported"
REASON_LOW_SATIETY = "low satiety reported"
REASON_LOW_ADHERENCE = "low plan adherence"


@dataclass(frozen=True)
class FeedbackInput:
    current_weight_kg: float
    energy_level: int
    hunger_satisfaction: int
    adherence_level: int

    @classmethod
    def validated(cls, current_weight_kg, energy_level, hunger_satisfaction, adherence_level):
        """Build a FeedbackInput, raising InvalidFeedbackInput on any bad field."""
        return cls(
            current_weight_kg=require_weight(current_weight_kg),
            energy_level=require_ordinal("energy_level", energy_level),
            hunger_satisfaction=require_ordinal("hunger_satisfaction", hunger_satisfaction),
            adherence_level=require_ordinal("adherence_level", adherence_level),
        )


@dataclass(frozen=True)
class MacroTargets:
    calories: int
    protein: int
    carbs: int
    fats: int

    @classmethod
    def from_profile(cls, profile: dict) -> "MacroTargets":
        keys = ("target_calories", "target_protein", "target_carbs", "target_fats")
        if any(profile.get(key) is None for key in keys):
            raise InvalidProfileInput("Profile has no nutrition targets yet")
        return cls(
            calories=int(profile["target_calories"]),
            protein=int(profile["target_protein"]),
            carbs=int(profile["target_carbs"]),
            fats=int(profile["target_fats"]),
        )

    def as_profile_fields(self) -> dict:
        return {
            "target_calories": self.calories,
            "target_protein": self.protein,
            "target_carbs": self.carbs,
            "target_fats": self.fats,
        }


@dataclass
class AdjustmentDecision:
    adjusted: bool
    calorie_delta: int
    weight_change: float
    previous: MacroTargets
    new: MacroTargets
    reasons: List[str] = field(default_factory=list)

    def reason_text(self) -> str:
        return "; ".join(self.reasons)

    def changes(self) -> dict:
        """Before/after pairs for the four targets."""
        return {
            "calories": {"old": self.previous.calories, "new": self.new.calories},
            "protein": {"old": self.previous.protein, "new": self.new.protein},
            "carbs": {"old": self.previous.carbs, "new": self.new.carbs},
            "fats": {"old": self.previous.fats, "new": self.new.fats},
        }


def evaluate_rules(goal: Optional[str], weight_change: float, feedback: FeedbackInput):
    """Return (calorie_delta, reasons) for every rule that fires."""
    delta = 0
    reasons = []

    if goal == "lose":
        if weight_change >= 0:
            delta -= 200
            reasons.append(REASON_NO_LOSS)
        if weight_change < -1:
            delta += 100
            reasons.append(REASON_FAST_LOSS)
    elif goal == "gain":
        if weight_change <= 0:
            delta += 200
            reasons.append(REASON_NO_GAIN)
        if weight_change > 1:
            delta -= 100
            reasons.append(REASON_FAST_GAIN)

    if feedback.energy_level <= LOW_SCORE:
        delta += 100
        reasons.append(REASON_LOW_ENERGY)

    if feedback.hunger_satisfaction <= LOW_SCORE:
        delta += 150
        reasons.append(REASON_LOW_SATIETY)

    if feedback.adherence_level <= LOW_SCORE:
        delta += 100
        reasons.append(REASON_LOW_ADHERENCE)

    return delta, reasons


def rescale_macros(current: MacroTargets, new_calories: int) -> MacroTargets:
    """Scale macro grams to `new_calories`, keeping the current gram/kcal ratios."""
    if current.calories <= 0:
        raise InvalidProfileInput("target_calories must be positive to rescale macros")

    def scale(grams: int) -> int:
        return round_half_up(new_calories * grams / current.calories)

    return MacroTargets(
        calories=new_calories,
        protein=scale(current.protein),
        carbs=scale(current.carbs),
        fats=scale(current.fats),
    )


def compute_adjustment(
    feedback: FeedbackInput,
    goal: Optional[str],
    current: MacroTargets,
    profile_weight_kg: float,
    reference_weight_kg: Optional[float] = None,
) -> AdjustmentDecision:
    """
    Decide whether a week's feedback warrants new targets.

    `reference_weight_kg` is the weight from the most recent earlier feedback;
    callers pass None when there is none and the profile weight is used.
    """
    if current.calories <= 0:
        raise InvalidProfileInput("target_calories must be positive")

    reference = profile_weight_kg if reference_weight_kg is None else reference_weight_kg
    weight_change = feedback.current_weight_kg - float(reference)

    delta, reasons = evaluate_rules(goal, weight_change, feedback)

    if abs(delta) < MIN_CALORIE_CHANGE:
        logger.info("No adjustment (delta=%s, weight_change=%.2f)", delta, weight_change)
        return AdjustmentDecision(
            adjusted=False,
            calorie_delta=delta,
            weight_change=weight_change,
            previous=current,
            new=current,
            reasons=reasons,
        )

    new_calories = max(CALORIE_FLOOR, current.calories + delta)
    new_targets = rescale_macros(current, new_calories)

    logger.info(
        "Adjusting calories %s -> %s (delta=%s): %s",
        current.calories, new_calories, delta, "; ".join(reasons),
    )
    return AdjustmentDecision(
        adjusted=True,
        calorie_delta=delta,
        weight_change=weight_change,
        previous=current,
        new=new_targets,
        reasons=reasons,
    )
