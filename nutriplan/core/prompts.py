import json

GOAL_LABELS = {
    "lose": "Weight loss",
    "gain": "Muscle gain",
    "maintain": "Weight maintenance",
}

DIET_TYPE_LABELS = {
    "weight_loss": "weight loss (calorie deficit)",
    "hypertrophy": "muscle gain (calorie surplus)",
    "maintenance": "weight maintenance",
}

MEAL_SCHEDULE = [
    ("Breakfast", "07:30"),
    ("Morning Snack", "10:00"),
    ("Lunch", "12:30"),
    ("Afternoon Snack", "16:00"),
    ("Dinner", "19:30"),
]

NUTRITIONIST_JSON_SYSTEM = (
    "You are a specialised nutritionist. Always answer with valid JSON only, "
    "without markdown or any additional text."
)

SUGGESTIONS_SYSTEM = (
    "You are a nutritionist who creates practical, healthy and personalised meal "
    "suggestions. Always answer with valid JSON only, without markdown."
)

NUTRITION_FACTS_SYSTEM = (
    "You are a nutrition expert. Answer with calories, protein, carbs and fats "
    "for the requested food and amount. Calories are whole kcal, macros are grams."
)

PREDICTION_SYSTEM = (
    "You are an expert in nutrition and predictive analysis. Answer ONLY with "
    "valid JSON, without markdown or additional text."
)

GROUP_ANALYSIS_SYSTEM = (
    "You are an assistant specialised in nutrition data analysis. Always answer "
    "through the provided function."
)


def goal_label(goal) -> str:
    return GOAL_LABELS.get(goal, GOAL_LABELS["maintain"])


def _listed(values, empty="none") -> str:
    values = [v for v in (values or []) if v]
    return ", ".join(values) if values else empty


def meal_plan_prompt(profile: dict, preferences: dict) -> str:
    schedule = ", ".join(f"{name} at {time}" for name, time in MEAL_SCHEDULE)
    optional_lines = []
    if preferences.get("lifestyle_routine"):
        optional_lines.append(f"- Daily routine: {preferences['lifestyle_routine']}")
    if preferences.get("disliked_foods"):
        optional_lines.append(f"- Disliked foods: {preferences['disliked_foods']}")
    optional = "\n".join(optional_lines)

    return f"""You are a specialised nutritionist. Create a detailed and healthy daily meal plan for the following profile:

**User data:**
- Name: {profile.get('name', '')}
- Age: {profile.get('age')} years
- Sex: {profile.get('gender')}
- Weight: {profile.get('weight')}kg
- Height: {profile.get('height')}cm
- Goal: {goal_label(profile.get('goal'))}
- Activity level: {profile.get('activity_level')}
- Work type: {profile.get('work_type')}
- Meals per day: {preferences.get('meals_per_day') or '4-5 meals'}
- Diet type: {profile.get('diet_type') or 'no restrictions'}
- Dietary restrictions and allergies: {_listed(profile.get('restrictions'))}
- Preferred cuisines: {_listed(preferences.get('preferred_cuisines'), 'varied')}
{optional}

**Daily targets:**
- Calories: {profile.get('target_calories')} kcal
- Protein: {profile.get('target_protein')}g
- Carbs: {profile.get('target_carbs')}g
- Fats: {profile.get('target_fats')}g

Create a complete plan with 5 meals ({schedule}), respecting ALL restrictions, allergies and preferences.

For each meal list 3 to 5 foods with name, amount (grams or units), calories, protein (g), carbs (g) and fats (g).

IMPORTANT: Return ONLY valid JSON, in this format:
{{
  "meals": [
    {{
      "name": "Breakfast",
      "time": "07:30",
      "order": 1,
      "foods": [
        {{"name": "Rolled oats", "amount": "50g", "calories": 180, "protein": 7, "carbs": 30, "fats": 3}}
      ]
    }}
  ]
}}"""


def substitution_prompt(food_to_replace: str, profile: dict, pantry_text: str) -> str:
    return f"""I need a substitution for the following food:

Original food: {food_to_replace}

User context:
- Goal: {goal_label(profile.get('goal'))}
- Dietary restrictions: {_listed(profile.get('restrictions'))}
- Foods available in the pantry: {pantry_text or 'not informed'}

Suggest 3 nutritionally equivalent substitutions, prioritising:
1. Foods the user already has
2. The same macronutrient profile
3. Respect for the dietary restrictions

IMPORTANT: Return ONLY valid JSON, in this format:
{{
  "substitutions": [
    {{
      "food_name": "Food name",
      "amount": "100g",
      "calories": 150,
      "protein": 20,
      "carbs": 10,
      "fats": 5,
      "reason": "Short explanation of the equivalence",
      "available_in_pantry": true
    }}
  ]
}}"""


def creative_meal_prompt(target_macros: dict, profile: dict, pantry_text: str) -> str:
    return f"""I need a complete, creative meal suggestion.

Remaining macros for the day:
- Calories: {target_macros['calories']} kcal
- Protein: {target_macros['protein']}g
- Carbs: {target_macros['carbs']}g
- Fats: {target_macros['fats']}g

User context:
- Goal: {goal_label(profile.get('goal'))}
- Diet type: {profile.get('diet_type') or 'no restrictions'}
- Dietary restrictions: {_listed(profile.get('restrictions'))}
- Available foods: {pantry_text or 'consider common ingredients'}

Create a tasty, nutritious meal that:
1. Meets the target macros (±10% tolerance)
2. Prioritises foods the user already has
3. Respects every restriction
4. Is practical to prepare

IMPORTANT: Return ONLY valid JSON, in this format:
{{
  "meal": {{
    "name": "Meal name",
    "description": "Appetising description",
    "prep_time": "15 minutes",
    "ingredients": [
      {{"food_name": "Ingredient", "amount": "100g", "calories": 150, "protein": 20, "carbs": 10, "fats": 5, "available_in_pantry": true}}
    ],
    "instructions": "Step by step preparation",
    "totals": {{"calories": 500, "protein": 40, "carbs": 50, "fats": 15}}
  }}
}}"""


def meal_suggestions_prompt(profile: dict, pantry_text: str) -> str:
    diet_type = profile.get("diet_type")
    lines = [
        "Create 5 healthy and practical meal suggestions.",
        "",
        "USER PROFILE:",
        f"- Goal: {DIET_TYPE_LABELS.get(diet_type, diet_type or goal_label(profile.get('goal')))}",
        f"- Daily calorie target: {profile.get('target_calories')} kcal",
        f"- Protein: {profile.get('target_protein')}g",
        f"- Carbs: {profile.get('target_carbs')}g",
        f"- Fats: {profile.get('target_fats')}g",
    ]
    if profile.get("restrictions"):
        lines.append(f"- Dietary restrictions: {_listed(profile.get('restrictions'))}")
    lines.append("")

    if pantry_text:
        lines += [
            "ITEMS AVAILABLE IN THE PANTRY:",
            pantry_text,
            "",
            "IMPORTANT: Prioritise the pantry items in the suggestions. It is fine not to use all of them.",
        ]
    else:
        lines.append(
            "The user has not registered pantry items yet. Suggest meals with common, easy to find ingredients."
        )

    lines.append(
        """
For each suggestion provide the meal name, ingredients with approximate amounts, a short 3-4 step preparation,
approximate nutrition (calories, protein, carbs, fats) and the meal type (breakfast, lunch, dinner, snack).

Return ONLY valid JSON in this format:
{
  "suggestions": [
    {
      "name": "Meal name",
      "meal_type": "breakfast|lunch|dinner|snack",
      "ingredients": ["ingredient 1 - amount", "ingredient 2 - amount"],
      "instructions": ["step 1", "step 2", "step 3"],
      "nutrition": {"calories": 450, "protein": 30, "carbs": 50, "fats": 15},
      "uses_pantry_items": true
    }
  ]
}"""
    )
    return "\n".join(lines)


def nutrition_facts_prompt(food_name: str, amount: str) -> str:
    return f"""Analyse the following food and provide accurate nutrition information.

Food: {food_name}
Amount: {amount}

- Consider the given amount ({amount})
- If the amount has no unit, assume grams
- Round values to whole numbers
- Be conservative and realistic"""


def prediction_prompt(analysis_data: dict) -> str:
    return f"""Analyse the user's history and provide detailed predictive insights.

USER DATA:
{json.dumps(analysis_data, indent=2, default=str)}

TASK:
Analyse individual patterns, predict required adjustments and identify adherence drop risks.

ANSWER IN THIS JSON FORMAT:
{{
  "individual_patterns": {{
    "weight_trend": "rising/falling/stable and why",
    "energy_pattern": "energy pattern over the weeks",
    "hunger_pattern": "hunger/satiety pattern",
    "adherence_pattern": "adherence pattern",
    "weekly_consistency": "weekly consistency analysis"
  }},
  "predictions": {{
    "next_week_weight": 0.0,
    "weight_confidence": "high/medium/low",
    "recommended_adjustment": {{
      "should_adjust": false,
      "adjustment_type": "increase/decrease/maintain",
      "estimated_calories": 0,
      "estimated_protein": 0,
      "estimated_carbs": 0,
      "estimated_fats": 0,
      "reasoning": "detailed reasoning"
    }},
    "goal_timeline": "estimate of when the goal will be reached"
  }},
  "adherence_risk": {{
    "risk_level": "low/medium/high",
    "risk_factors": ["identified risk factors"],
    "warning_signs": ["detected warning signs"],
    "recommendations": ["specific recommendations to improve adherence"]
  }},
  "actionable_insights": ["insight 1", "insight 2", "insight 3"],
  "success_indicators": ["positive indicator 1", "positive indicator 2"]
}}"""


def group_analysis_prompt(clients: list, feedbacks: list, adherence: list) -> str:
    return f"""Analyse the following nutrition client data and identify patterns and groups.

Clients: {json.dumps(clients, default=str)}
Recent feedback: {json.dumps(feedbacks, default=str)}
Adherence metrics: {json.dumps(adherence, default=str)}

Group the clients by:
1. Age range (18-25, 26-35, 36-45, 46+)
2. Goal (weight loss, muscle gain, maintenance)
3. Physical activity level
4. Training/work schedule

For each group compute the average calorie target, average macros (protein, carbs, fats),
average adherence rate, average energy and satiety levels and the main challenges.

Give specific recommendations for each group: calorie adjustments, macro adjustments,
meal timing tips and strategies to improve adherence."""
