import logging
from datetime import date
from typing import List, Optional

from supabase import Client

from nutriplan.core.errors import AccessDenied, AIGatewayError, InvalidRequest, NotFound
from nutriplan.core.prompts import NUTRITIONIST_JSON_SYSTEM, meal_plan_prompt
from nutriplan.models.schemas import FoodItemCreate, MealPlanCreate, MealPlanGenerate
from nutriplan.services.ai_gateway import LLMGateway
from nutriplan.services.suggestion_service import lookup_nutrition
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

VALID_DIET_TYPES = ("weight_loss", "hypertrophy", "maintenance")
GOAL_TO_DIET_TYPE = {
    "lose": "weight_loss",
    "gain": "hypertrophy",
    "maintain": "maintenance",
}
MAX_PLAN_NAME = 200
MAX_PLAN_DESCRIPTION = 1000
MACRO_KEYS = ("calories", "protein", "carbs", "fats")


def sum_macros(foods: List[dict]) -> dict:
    totals = {key: 0.0 for key in MACRO_KEYS}
    for food in foods:
        for key in MACRO_KEYS:
            totals[key] += float(food.get(key) or 0)
    return {key: round(value, 1) for key, value in totals.items()}


def plan_total_fields(totals: dict) -> dict:
    return {
        "total_calories": totals["calories"],
        "total_protein": totals["protein"],
        "total_carbs": totals["carbs"],
        "total_fats": totals["fats"],
    }


def validate_manual_plan(data: MealPlanCreate) -> dict:
    """Check a hand-made plan and return the row to insert (without user_id)."""
    name = (data.plan_name or "").strip()
    if not name:
        raise InvalidRequest("Required field: plan_name")
    if not data.diet_type:
        raise InvalidRequest("Required field: diet_type")
    if not data.plan_date:
        raise InvalidRequest("Required field: plan_date")
    if data.diet_type not in VALID_DIET_TYPES:
        raise InvalidRequest(f"Invalid diet_type. Accepted values: {', '.join(VALID_DIET_TYPES)}")
    if len(name) > MAX_PLAN_NAME:
        raise InvalidRequest(f"plan_name must be at most {MAX_PLAN_NAME} characters")
    if data.plan_description and len(data.plan_description) > MAX_PLAN_DESCRIPTION:
        raise InvalidRequest(f"plan_description must be at most {MAX_PLAN_DESCRIPTION} characters")

    return {
        "plan_name": name,
        "plan_description": (data.plan_description or "").strip() or None,
        "diet_type": data.diet_type,
        "plan_date": data.plan_date.isoformat(),
        **plan_total_fields({key: 0 for key in MACRO_KEYS}),
    }


def create_plan(db: Client, user_id: str, data: MealPlanCreate) -> dict:
    record = validate_manual_plan(data)
    plan = store.insert_meal_plan(db, {"user_id": user_id, **record})
    logger.info("Plan %s created for user %s", plan.get("id"), user_id)
    return plan


def _parse_meals(payload) -> List[dict]:
    meals = payload.get("meals") if isinstance(payload, dict) else None
    if not isinstance(meals, list) or not meals:
        raise AIGatewayError("AI response did not contain any meals. Please try again.")
    for meal in meals:
        if not isinstance(meal, dict) or not isinstance(meal.get("foods"), list):
            raise AIGatewayError("AI response had a meal without foods. Please try again.")
        if not all(isinstance(food, dict) for food in meal["foods"]):
            raise AIGatewayError("AI response had a malformed food entry. Please try again.")
    return meals


def generate_plan(db: Client, gateway: LLMGateway, user_id: str, request: MealPlanGenerate) -> dict:
    """Ask the LLM for a day of meals and store it as a plan."""
    profile = store.require_profile(db, user_id)
    prompt = meal_plan_prompt(profile, request.model_dump())

    meals = _parse_meals(gateway.generate_json(prompt, NUTRITIONIST_JSON_SYSTEM))
    all_foods = [food for meal in meals for food in meal["foods"]]
    totals = sum_macros(all_foods)

    plan_date = (request.plan_date or date.today()).isoformat()
    plan = store.insert_meal_plan(db, {
        "user_id": user_id,
        "plan_name": request.plan_name or f"AI plan {plan_date}",
        "plan_description": "Generated from your profile and targets",
        "diet_type": profile.get("diet_type") or GOAL_TO_DIET_TYPE.get(profile.get("goal"), "maintenance"),
        "plan_date": plan_date,
        **plan_total_fields(totals),
    })

    meal_rows = store.insert_meals(db, [
        {
            "meal_plan_id": plan["id"],
            "name": meal.get("name", f"Meal {index}"),
            "time": meal.get("time", ""),
            "meal_order": meal.get("order") or index,
            "completed": False,
        }
        for index, meal in enumerate(meals, start=1)
    ])

    food_rows = []
    for meal, meal_row in zip(meals, meal_rows):
        for food in meal["foods"]:
            food_rows.append({
                "meal_id": meal_row["id"],
                "name": food.get("name", ""),
                "amount": str(food.get("amount", "")),
                **{key: food.get(key) or 0 for key in MACRO_KEYS},
            })
    store.insert_food_items(db, food_rows)

    logger.info("Generated plan %s with %s meals for user %s", plan["id"], len(meal_rows), user_id)
    return {"plan_id": plan["id"], "meals": meals, "totals": totals}


def assemble_plan(db: Client, plan: dict) -> dict:
    """Plan row plus its meals (ordered) and each meal's food items."""
    meals = sorted(store.list_meals(db, plan["id"]), key=lambda m: m.get("meal_order") or 0)
    foods = store.list_food_items(db, [meal["id"] for meal in meals])

    by_meal = {}
    for food in foods:
        by_meal.setdefault(food["meal_id"], []).append(food)

    return {
        **plan,
        "meals": [{**meal, "food_items": by_meal.get(meal["id"], [])} for meal in meals],
    }


def owned_plan(db: Client, user_id: str, plan_id: str) -> dict:
    plan = store.get_meal_plan(db, plan_id)
    if plan is None:
        raise NotFound("Meal plan not found")
    if plan["user_id"] != user_id:
        raise AccessDenied("Access denied")
    return plan


def owned_meal(db: Client, user_id: str, meal_id: str):
    meal = store.get_meal(db, meal_id)
    if meal is None:
        raise NotFound("Meal not found")
    plan = owned_plan(db, user_id, meal["meal_plan_id"])
    return meal, plan


def todays_plan(db: Client, user_id: str) -> Optional[dict]:
    plan = store.meal_plan_for_date(db, user_id, date.today().isoformat())
    if plan is None:
        return None
    return assemble_plan(db, plan)


def toggle_meal(db: Client, user_id: str, meal_id: str) -> dict:
    meal, _ = owned_meal(db, user_id, meal_id)
    return store.update_meal(db, meal_id, {"completed": not bool(meal.get("completed"))})


def refresh_plan_totals(db: Client, plan_id: str) -> dict:
    meals = store.list_meals(db, plan_id)
    foods = store.list_food_items(db, [meal["id"] for meal in meals])
    return store.update_meal_plan(db, plan_id, plan_total_fields(sum_macros(foods)))


def add_food(db: Client, gateway: LLMGateway, user_id: str, meal_id: str, food: FoodItemCreate) -> dict:
    """Add a food to a meal; missing macros are looked up through the LLM."""
    _, plan = owned_meal(db, user_id, meal_id)

    values = {key: getattr(food, key) for key in MACRO_KEYS}
    if any(value is None for value in values.values()):
        looked_up = lookup_nutrition(gateway, food.name, food.amount)
        values = {key: looked_up[key] if values[key] is None else values[key] for key in MACRO_KEYS}

    rows = store.insert_food_items(db, [{
        "meal_id": meal_id,
        "name": food.name,
        "amount": food.amount,
        **values,
    }])
    refreshed = refresh_plan_totals(db, plan["id"])
    return {"food_item": rows[0] if rows else None, "plan": refreshed}


def remove_food(db: Client, user_id: str, food_id: str) -> dict:
    food = store.get_food_item(db, food_id)
    if food is None:
        raise NotFound("Food item not found")
    _, plan = owned_meal(db, user_id, food["meal_id"])

    store.delete_food_item(db, food_id)
    return refresh_plan_totals(db, plan["id"])
