import logging
from typing import List

from google.genai import types
from supabase import Client

from nutriplan.core.errors import AIGatewayError, InvalidRequest
from nutriplan.core.prompts import (
    NUTRITION_FACTS_SYSTEM,
    SUGGESTIONS_SYSTEM,
    creative_meal_prompt,
    meal_suggestions_prompt,
    nutrition_facts_prompt,
    substitution_prompt,
)
from nutriplan.models.schemas import AlternativeRequest
from nutriplan.services.ai_gateway import LLMGateway
from nutriplan.tools import database_tools as store
from nutriplan.tools.query import best_pantry_match, describe_pantry, pantry_frame, pantry_matches

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 5

NUTRITION_INFO_DECLARATION = types.FunctionDeclaration(
    name="provide_nutrition_info",
    description="Return the nutrition facts of a food for the given amount.",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "calories": types.Schema(type=types.Type.INTEGER, description="Total calories (kcal)."),
            "protein": types.Schema(type=types.Type.NUMBER, description="Protein in grams."),
            "carbs": types.Schema(type=types.Type.NUMBER, description="Carbohydrates in grams."),
            "fats": types.Schema(type=types.Type.NUMBER, description="Fats in grams."),
        },
        required=["calories", "protein", "carbs", "fats"],
    ),
)


def lookup_nutrition(gateway: LLMGateway, food_name: str, amount: str) -> dict:
    """Calories (int) and macros (1 decimal) for `amount` of `food_name`."""
    args = gateway.generate_structured(
        nutrition_facts_prompt(food_name, amount),
        NUTRITION_INFO_DECLARATION,
        NUTRITION_FACTS_SYSTEM,
    )
    try:
        return {
            "calories": int(round(float(args["calories"]))),
            "protein": round(float(args["protein"]), 1),
            "carbs": round(float(args["carbs"]), 1),
            "fats": round(float(args["fats"]), 1),
        }
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Incomplete nutrition info for %s: %s", food_name, args)
        raise AIGatewayError("Could not read the nutrition information. Please try again.") from e


def _mark_pantry(foods: List[dict], pantry_df) -> None:
    # The model's own claim is replaced with a local check against the pantry
    if not all(isinstance(food, dict) for food in foods):
        raise AIGatewayError("Unexpected AI response format. Please try again.")
    for food in foods:
        food["available_in_pantry"] = best_pantry_match(food.get("food_name", ""), pantry_df) is not None


def suggest_alternatives(db: Client, gateway: LLMGateway, user_id: str, req: AlternativeRequest) -> dict:
    profile = store.require_profile(db, user_id)
    pantry = store.list_pantry(db, user_id)
    pantry_df = pantry_frame(pantry)
    pantry_text = describe_pantry(pantry)

    if req.type == "substitution":
        if not req.food_to_replace:
            raise InvalidRequest("food_to_replace is required for substitutions")
        prompt = substitution_prompt(req.food_to_replace, profile, pantry_text)
    else:
        if req.target_macros is None:
            raise InvalidRequest("target_macros is required for creative meals")
        prompt = creative_meal_prompt(req.target_macros.model_dump(), profile, pantry_text)

    suggestion = gateway.generate_json(prompt, SUGGESTIONS_SYSTEM)
    if not isinstance(suggestion, dict):
        raise AIGatewayError("Unexpected AI response format. Please try again.")

    macros = None
    if req.type == "substitution":
        _mark_pantry(suggestion.get("substitutions") or [], pantry_df)
    else:
        meal = suggestion.get("meal") or {}
        if not isinstance(meal, dict):
            raise AIGatewayError("Unexpected AI response format. Please try again.")
        _mark_pantry(meal.get("ingredients") or [], pantry_df)
        macros = meal.get("totals")

    store.insert_suggestion(db, {
        "user_id": user_id,
        "suggestion_type": req.type,
        "original_food": req.food_to_replace,
        "suggested_meal": suggestion,
        "macros": macros,
    })
    logger.info("Stored %s suggestion for user %s", req.type, user_id)
    return suggestion


def generate_meal_suggestions(db: Client, gateway: LLMGateway, user_id: str) -> dict:
    """Five meal ideas built around what is in the pantry."""
    profile = store.require_profile(db, user_id)
    pantry = store.list_pantry(db, user_id)
    pantry_df = pantry_frame(pantry)

    payload = gateway.generate_json(meal_suggestions_prompt(profile, describe_pantry(pantry)), SUGGESTIONS_SYSTEM)
    suggestions = payload.get("suggestions") if isinstance(payload, dict) else None
    if not isinstance(suggestions, list) or not all(isinstance(s, dict) for s in suggestions):
        raise AIGatewayError("Unexpected AI response format. Please try again.")

    suggestions = suggestions[:SUGGESTION_COUNT]
    for suggestion in suggestions:
        ingredients = [str(i).split(" - ")[0] for i in suggestion.get("ingredients") or []]
        suggestion["pantry_matches"] = pantry_matches(ingredients, pantry_df)

    return {"suggestions": suggestions, "pantry_items_count": len(pantry)}


def suggestion_history(db: Client, user_id: str, limit: int = 20) -> List[dict]:
    return store.list_suggestions(db, user_id, limit=limit)
