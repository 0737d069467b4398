from dataclasses import asdict, dataclass
from typing import Optional

from nutriplan.core.errors import InvalidProfileInput
from nutriplan.models.validators import round_half_up, require_positive

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.20,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.90,
}
DEFAULT_ACTIVITY_MULTIPLIER = ACTIVITY_MULTIPLIERS["sedentary"]

GOALS = ("lose", "maintain", "gain")
GENDERS = ("male", "female")

# Fraction of the calorie target given to each macro at onboarding
MACRO_SPLIT = {
    "protein": 0.30,
    "carbs": 0.40,
    "fats": 0.30,
}

LOSE_FACTOR = 0.85   # 15% deficit
GAIN_FACTOR = 1.10   # 10% surplus


@dataclass(frozen=True)
class NutritionTargets:
    tdee: int
    target_calories: int
    target_protein_g: int
    target_carbs_g: int
    target_fats_g: int

    def as_profile_fields(self) -> dict:
        """Column names used by the `profiles` table."""
        return {
            "tdee": self.tdee,
            "target_calories": self.target_calories,
            "target_protein": self.target_protein_g,
            "target_carbs": self.target_carbs_g,
            "target_fats": self.target_fats_g,
        }

    def to_dict(self) -> dict:
        return asdict(self)


def activity_multiplier(activity_level: Optional[str]) -> float:
    """Unknown or missing activity levels count as sedentary."""
    if not activity_level:
        return DEFAULT_ACTIVITY_MULTIPLIER
    return ACTIVITY_MULTIPLIERS.get(activity_level.lower(), DEFAULT_ACTIVITY_MULTIPLIER)


class EnergyProfile:
    """Anthropometric snapshot used to estimate energy needs (Mifflin-St Jeor)."""

    def __init__(self, gender, weight_kg, height_cm, age_years, activity_level=None):
        if gender not in GENDERS:
            raise InvalidProfileInput("gender must be 'male' or 'female'")
        self.gender = gender
        self.weight_kg = require_positive("weight_kg", weight_kg)
        self.height_cm = require_positive("height_cm", height_cm)
        self.age_years = require_positive("age_years", age_years)
        self.activity_level = activity_level

    def bmr(self) -> float:
        """Basal Metabolic Rate in kcal/day"""
        base = 10 * self.weight_kg + 6.25 * self.height_cm - 5 * self.age_years
        if self.gender == "male":
            return base + 5
        return base - 161

    def tdee(self) -> int:
        """Total Daily Energy Expenditure, rounded to whole kcal"""
        return round_half_up(self.bmr() * activity_multiplier(self.activity_level))

    def goal_calories(self, goal: Optional[str]) -> int:
        tdee = self.tdee()
        if goal == "lose":
            return round_half_up(tdee * LOSE_FACTOR)
        if goal == "gain":
            return round_half_up(tdee * GAIN_FACTOR)
        # maintain, and anything we don't recognise
        return tdee

    def targets(self, goal: Optional[str]) -> NutritionTargets:
        calories = self.goal_calories(goal)
        return NutritionTargets(
            tdee=self.tdee(),
            target_calories=calories,
            target_protein_g=round_half_up(calories * MACRO_SPLIT["protein"] / 4),
            target_carbs_g=round_half_up(calories * MACRO_SPLIT["carbs"] / 4),
            target_fats_g=round_half_up(calories * MACRO_SPLIT["fats"] / 9),
        )


def calculate_bmr(gender: str, weight_kg: float, height_cm: float, age_years: int) -> float:
    return EnergyProfile(gender, weight_kg, height_cm, age_years).bmr()


def calculate_targets(
    gender: str,
    weight_kg: float,
    height_cm: float,
    age_years: int,
    activity_level: Optional[str],
    goal: Optional[str],
) -> NutritionTargets:
    """
    Map a profile snapshot to daily energy and macro targets.

    The 1200 kcal safety floor is not applied here; only the
    weekly adjustment enforces it.
    """
    profile = EnergyProfile(gender, weight_kg, height_cm, age_years, activity_level)
    return profile.targets(goal)
