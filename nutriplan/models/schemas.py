from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from nutriplan.models.roles import Role


# --- Authentication ---

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str
    questionnaire_data: Optional[dict[str, Any]] = None


class Token(BaseModel):
    access_token: str
    token_type: str


# --- Profile / onboarding ---

class TargetsRequest(BaseModel):
    """Anthropometric input for the energy/macro calculator."""
    gender: str  # "male" or "female"
    weight: float  # kg
    height: float  # cm
    age: int
    activity_level: Optional[str] = "sedentary"
    goal: str = "maintain"  # "lose", "maintain", "gain"


class ProfileCreate(TargetsRequest):
    """Profile data from the onboarding questionnaire"""
    name: str
    work_type: str = "office"
    diet_type: Optional[str] = None
    restrictions: List[str] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    gender: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    age: Optional[int] = None
    activity_level: Optional[str] = None
    work_type: Optional[str] = None
    goal: Optional[str] = None
    diet_type: Optional[str] = None
    restrictions: Optional[List[str]] = None
    # Manual overrides (e.g. set by the user on the settings page)
    target_calories: Optional[int] = None
    target_protein: Optional[int] = None
    target_carbs: Optional[int] = None
    target_fats: Optional[int] = None


# --- Weekly feedback ---

class WeeklyFeedbackIn(BaseModel):
    # Missing values and ranges are checked by the adjustment engine
    week_date: date
    current_weight: Optional[float] = None
    energy_level: Optional[int] = None
    hunger_satisfaction: Optional[int] = None
    adherence_level: Optional[int] = None
    notes: Optional[str] = None


# --- Progress ---

class ProgressEntry(BaseModel):
    date: date
    weight: float = Field(gt=0)
    body_fat_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    chest: Optional[float] = None
    waist: Optional[float] = None
    hip: Optional[float] = None
    arm_left: Optional[float] = None
    arm_right: Optional[float] = None
    thigh_left: Optional[float] = None
    thigh_right: Optional[float] = None
    notes: Optional[str] = None


class AdherenceEntry(BaseModel):
    date: date
    meals_completed: int = Field(ge=0)
    meals_planned: int = Field(gt=0)


# --- Pantry ---

class PantryItemCreate(BaseModel):
    food_name: str = Field(min_length=1)
    category: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = "g"


class PantryItemUpdate(BaseModel):
    food_name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None


# --- Meal plans ---

DietType = Literal["weight_loss", "hypertrophy", "maintenance"]


class MealPlanCreate(BaseModel):
    plan_name: Optional[str] = None
    plan_description: Optional[str] = None
    diet_type: Optional[str] = None
    plan_date: Optional[date] = None


class MealPlanGenerate(BaseModel):
    plan_date: Optional[date] = None
    plan_name: Optional[str] = None
    meals_per_day: Optional[str] = None
    disliked_foods: Optional[str] = None
    preferred_cuisines: List[str] = Field(default_factory=list)
    lifestyle_routine: Optional[str] = None


class FoodItemCreate(BaseModel):
    name: str = Field(min_length=1)
    amount: str
    calories: Optional[float] = Field(default=None, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fats: Optional[float] = Field(default=None, ge=0)


# --- AI suggestions ---

class MacroBudget(BaseModel):
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fats: float = Field(ge=0)


class AlternativeRequest(BaseModel):
    type: Literal["substitution", "creative_meal"]
    food_to_replace: Optional[str] = None
    target_macros: Optional[MacroBudget] = None


class NutritionLookup(BaseModel):
    food_name: str = Field(min_length=1)
    amount: str = "100g"


# --- Nutritionist / admin ---

class BatchAdjustments(BaseModel):
    calories_change: int = 0
    protein_change: int = 0
    carbs_change: int = 0
    fats_change: int = 0
    reason: Optional[str] = None


class BatchUpdateRequest(BaseModel):
    client_ids: List[str] = Field(min_length=1)
    adjustments: BatchAdjustments
    notify_clients: bool = False


class RoleSelection(BaseModel):
    role: Role
    organization_name: Optional[str] = None


class RoleGrant(BaseModel):
    user_id: str
    role: Role
    organization_id: Optional[str] = None


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class AssignmentCreate(BaseModel):
    nutritionist_id: str
    client_id: str
    organization_id: Optional[str] = None


class ClientGroupAnalysis(BaseModel):
    groups: List[Dict[str, Any]] = Field(default_factory=list)
    overall_insights: List[str] = Field(default_factory=list)
    message: Optional[str] = None
