from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

from nutriplan.core.errors import InvalidFeedbackInput, InvalidProfileInput

# Energy per gram of each macronutrient (kcal/g)
KCAL_PER_GRAM = {
    "protein": 4,
    "carbs": 4,
    "fats": 9,
}

CALORIE_FLOOR = 1200


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def require_positive(name: str, value: Any) -> float:
    """Return `value` as a float or raise InvalidProfileInput if it is missing or <= 0."""
    if value is None or isinstance(value, bool):
        raise InvalidProfileInput(f"{name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidProfileInput(f"{name} must be a number, got {value!r}")
    if number <= 0:
        raise InvalidProfileInput(f"{name} must be positive, got {value!r}")
    return number


def require_ordinal(name: str, value: Any, low: int = 1, high: int = 5) -> int:
    """Validate a 1-5 self-reported score."""
    if value is None:
        raise InvalidFeedbackInput(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFeedbackInput(f"{name} must be an integer between {low} and {high}")
    if not low <= value <= high:
        raise InvalidFeedbackInput(f"{name} must be between {low} and {high}, got {value}")
    return value


def require_weight(value: Optional[float]) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidFeedbackInput("current_weight_kg is required")
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise InvalidFeedbackInput(f"current_weight_kg must be a number, got {value!r}")
    if weight <= 0:
        raise InvalidFeedbackInput(f"current_weight_kg must be positive, got {value!r}")
    return weight
