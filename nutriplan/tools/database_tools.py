"""
Thin wrappers around the Supabase tables.

Every call goes through `_execute`, which turns PostgREST and transport errors
into PersistenceFailure. Row level security lives in the hosted database; the
`user_id` filters here only scope the queries.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from nutriplan.core.errors import PersistenceFailure, ProfileNotFound

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _execute(query, action: str):
    try:
        return query.execute()
    except APIError as e:
        logger.error("Supabase error while %s: %s", action, e)
        raise PersistenceFailure(f"Database error while {action}: {e.message or e}") from e
    except httpx.HTTPError as e:
        logger.error("Transport error while %s: %s", action, e)
        raise PersistenceFailure(f"Database unreachable while {action}") from e


def _rows(response) -> List[dict]:
    return list(response.data or [])


def _first(response) -> Optional[dict]:
    rows = _rows(response)
    return rows[0] if rows else None


def _inserted(response, action: str) -> dict:
    row = _first(response)
    if row is None:
        raise PersistenceFailure(f"Database error while {action}: empty response")
    return row


# --- profiles ---

def get_profile(db: Client, user_id: str) -> Optional[dict]:
    response = _execute(
        db.table("profiles").select("*").eq("user_id", user_id).limit(1),
        "loading profile",
    )
    return _first(response)


def require_profile(db: Client, user_id: str) -> dict:
    profile = get_profile(db, user_id)
    if profile is None:
        raise ProfileNotFound()
    return profile


def get_profiles(db: Client, user_ids: Iterable[str]) -> List[dict]:
    ids = list(user_ids)
    if not ids:
        return []
    response = _execute(
        db.table("profiles").select("*").in_("user_id", ids),
        "loading client profiles",
    )
    return _rows(response)


def save_profile(db: Client, user_id: str, record: dict) -> dict:
    """Insert the onboarding profile, or overwrite it if the user onboards again."""
    record = {**record, "user_id": user_id, "updated_at": _now()}

    if get_profile(db, user_id) is not None:
        logger.info("Updating existing profile for user %s", user_id)
        response = _execute(
            db.table("profiles").update(record).eq("user_id", user_id),
            "updating profile",
        )
    else:
        logger.info("Creating new profile for user %s", user_id)
        response = _execute(db.table("profiles").insert(record), "creating profile")

    return _inserted(response, "saving profile")


def update_profile(db: Client, user_id: str, fields: dict) -> dict:
    response = _execute(
        db.table("profiles").update({**fields, "updated_at": _now()}).eq("user_id", user_id),
        "updating profile",
    )
    row = _first(response)
    if row is None:
        raise ProfileNotFound()
    return row


# --- weekly feedback / adjustments ---

def insert_feedback(db: Client, record: dict) -> dict:
    response = _execute(db.table("weekly_feedback").insert(record), "saving weekly feedback")
    return _inserted(response, "saving weekly feedback")


def latest_feedback(db: Client, user_id: str) -> Optional[dict]:
    response = _execute(
        db.table("weekly_feedback")
        .select("*")
        .eq("user_id", user_id)
        .order("week_date", desc=True)
        .limit(1),
        "loading previous feedback",
    )
    return _first(response)


def feedback_for_week(db: Client, user_id: str, week_date: str) -> Optional[dict]:
    response = _execute(
        db.table("weekly_feedback")
        .select("id")
        .eq("user_id", user_id)
        .eq("week_date", week_date)
        .limit(1),
        "checking weekly feedback",
    )
    return _first(response)


def list_feedback(
    db: Client,
    user_id: str,
    limit: Optional[int] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    descending: bool = True,
) -> List[dict]:
    query = db.table("weekly_feedback").select("*").eq("user_id", user_id)
    if start:
        query = query.gte("week_date", start)
    if end:
        query = query.lte("week_date", end)
    query = query.order("week_date", desc=descending)
    if limit:
        query = query.limit(limit)
    return _rows(_execute(query, "loading feedback history"))


def feedback_for_users(db: Client, user_ids: List[str], since: str) -> List[dict]:
    if not user_ids:
        return []
    response = _execute(
        db.table("weekly_feedback").select("*").in_("user_id", user_ids).gte("week_date", since),
        "loading client feedback",
    )
    return _rows(response)


def insert_adjustment(db: Client, record: dict) -> dict:
    record = {"adjustment_date": _now(), **record}
    response = _execute(db.table("adjustment_history").insert(record), "saving adjustment")
    return _inserted(response, "saving adjustment")


def list_adjustments(db: Client, user_id: str, limit: Optional[int] = None) -> List[dict]:
    query = (
        db.table("adjustment_history")
        .select("*")
        .eq("user_id", user_id)
        .order("adjustment_date", desc=True)
    )
    if limit:
        query = query.limit(limit)
    return _rows(_execute(query, "loading adjustment history"))


# --- progress / adherence ---

def insert_progress(db: Client, record: dict) -> dict:
    response = _execute(db.table("progress_tracking").insert(record), "saving progress")
    return _inserted(response, "saving progress")


def list_progress(
    db: Client,
    user_id: str,
    limit: Optional[int] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    descending: bool = True,
) -> List[dict]:
    query = db.table("progress_tracking").select("*").eq("user_id", user_id)
    if start:
        query = query.gte("date", start)
    if end:
        query = query.lte("date", end)
    query = query.order("date", desc=descending)
    if limit:
        query = query.limit(limit)
    return _rows(_execute(query, "loading progress"))


def insert_adherence(db: Client, record: dict) -> dict:
    response = _execute(db.table("adherence_metrics").insert(record), "saving adherence")
    return _inserted(response, "saving adherence")


def list_adherence(
    db: Client,
    user_id: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    descending: bool = True,
) -> List[dict]:
    query = db.table("adherence_metrics").select("*").eq("user_id", user_id)
    if start:
        query = query.gte("date", start)
    if end:
        query = query.lte("date", end)
    query = query.order("date", desc=descending)
    return _rows(_execute(query, "loading adherence"))


def adherence_for_users(db: Client, user_ids: List[str], since: str) -> List[dict]:
    if not user_ids:
        return []
    response = _execute(
        db.table("adherence_metrics").select("*").in_("user_id", user_ids).gte("date", since),
        "loading client adherence",
    )
    return _rows(response)


# --- pantry ---

def list_pantry(db: Client, user_id: str) -> List[dict]:
    response = _execute(
        db.table("user_pantry").select("*").eq("user_id", user_id).order("food_name"),
        "loading pantry",
    )
    return _rows(response)


def get_pantry_item(db: Client, item_id: str) -> Optional[dict]:
    response = _execute(
        db.table("user_pantry").select("*").eq("id", item_id).limit(1),
        "loading pantry item",
    )
    return _first(response)


def insert_pantry_item(db: Client, record: dict) -> dict:
    response = _execute(db.table("user_pantry").insert(record), "adding pantry item")
    return _inserted(response, "adding pantry item")


def update_pantry_item(db: Client, item_id: str, fields: dict) -> dict:
    response = _execute(
        db.table("user_pantry").update({**fields, "updated_at": _now()}).eq("id", item_id),
        "updating pantry item",
    )
    return _inserted(response, "updating pantry item")


def delete_pantry_item(db: Client, item_id: str) -> None:
    _execute(db.table("user_pantry").delete().eq("id", item_id), "removing pantry item")


# --- meal plans / meals / food items ---

def insert_meal_plan(db: Client, record: dict) -> dict:
    response = _execute(db.table("meal_plans").insert(record), "creating meal plan")
    return _inserted(response, "creating meal plan")


def get_meal_plan(db: Client, plan_id: str) -> Optional[dict]:
    response = _execute(
        db.table("meal_plans").select("*").eq("id", plan_id).limit(1),
        "loading meal plan",
    )
    return _first(response)


def meal_plan_for_date(db: Client, user_id: str, plan_date: str) -> Optional[dict]:
    response = _execute(
        db.table("meal_plans")
        .select("*")
        .eq("user_id", user_id)
        .eq("plan_date", plan_date)
        .order("created_at", desc=True)
        .limit(1),
        "loading meal plan",
    )
    return _first(response)


def list_meal_plans(
    db: Client,
    user_id: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    descending: bool = True,
) -> List[dict]:
    query = db.table("meal_plans").select("*").eq("user_id", user_id)
    if start:
        query = query.gte("plan_date", start)
    if end:
        query = query.lte("plan_date", end)
    query = query.order("plan_date", desc=descending)
    return _rows(_execute(query, "loading meal plans"))


def update_meal_plan(db: Client, plan_id: str, fields: dict) -> dict:
    response = _execute(
        db.table("meal_plans").update(fields).eq("id", plan_id),
        "updating meal plan",
    )
    return _inserted(response, "updating meal plan")


def insert_meals(db: Client, records: List[dict]) -> List[dict]:
    if not records:
        return []
    return _rows(_execute(db.table("meals").insert(records), "saving meals"))


def list_meals(db: Client, plan_id: str) -> List[dict]:
    response = _execute(
        db.table("meals").select("*").eq("meal_plan_id", plan_id).order("meal_order"),
        "loading meals",
    )
    return _rows(response)


def get_meal(db: Client, meal_id: str) -> Optional[dict]:
    response = _execute(db.table("meals").select("*").eq("id", meal_id).limit(1), "loading meal")
    return _first(response)


def update_meal(db: Client, meal_id: str, fields: dict) -> dict:
    response = _execute(db.table("meals").update(fields).eq("id", meal_id), "updating meal")
    return _inserted(response, "updating meal")


def insert_food_items(db: Client, records: List[dict]) -> List[dict]:
    if not records:
        return []
    return _rows(_execute(db.table("food_items").insert(records), "saving food items"))


def list_food_items(db: Client, meal_ids: List[str]) -> List[dict]:
    if not meal_ids:
        return []
    response = _execute(
        db.table("food_items").select("*").in_("meal_id", meal_ids),
        "loading food items",
    )
    return _rows(response)


def get_food_item(db: Client, food_id: str) -> Optional[dict]:
    response = _execute(
        db.table("food_items").select("*").eq("id", food_id).limit(1),
        "loading food item",
    )
    return _first(response)


def delete_food_item(db: Client, food_id: str) -> None:
    _execute(db.table("food_items").delete().eq("id", food_id), "removing food item")


# --- AI suggestions ---

def insert_suggestion(db: Client, record: dict) -> dict:
    response = _execute(db.table("meal_suggestions").insert(record), "saving suggestion")
    return _inserted(response, "saving suggestion")


def list_suggestions(db: Client, user_id: str, limit: int = 20) -> List[dict]:
    response = _execute(
        db.table("meal_suggestions")
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit),
        "loading suggestions",
    )
    return _rows(response)


# --- roles / organizations / assignments ---

def list_roles(db: Client, user_id: str) -> List[dict]:
    response = _execute(
        db.table("user_roles").select("role, organization_id").eq("user_id", user_id),
        "loading user roles",
    )
    return _rows(response)


def insert_role(db: Client, record: dict) -> dict:
    response = _execute(db.table("user_roles").insert(record), "assigning role")
    return _inserted(response, "assigning role")


def list_organization_roles(db: Client, organization_id: str) -> List[dict]:
    response = _execute(
        db.table("user_roles").select("*").eq("organization_id", organization_id),
        "loading organization members",
    )
    return _rows(response)


def insert_organization(db: Client, record: dict) -> dict:
    response = _execute(db.table("organizations").insert(record), "creating organization")
    return _inserted(response, "creating organization")


def list_organizations(db: Client, ids: Optional[List[str]] = None) -> List[dict]:
    query = db.table("organizations").select("*")
    if ids is not None:
        if not ids:
            return []
        query = query.in_("id", ids)
    query = query.order("created_at", desc=True)
    return _rows(_execute(query, "loading organizations"))


def insert_membership(db: Client, record: dict) -> dict:
    response = _execute(db.table("organization_members").insert(record), "adding organization member")
    return _inserted(response, "adding organization member")


def list_memberships(db: Client, user_id: str) -> List[dict]:
    response = _execute(
        db.table("organization_members").select("*").eq("user_id", user_id),
        "loading memberships",
    )
    return _rows(response)


def list_active_assignments(db: Client, nutritionist_id: str) -> List[dict]:
    response = _execute(
        db.table("client_assignments")
        .select("*")
        .eq("nutritionist_id", nutritionist_id)
        .eq("active", True)
        .order("assigned_at", desc=True),
        "loading client assignments",
    )
    return _rows(response)


def get_active_assignment(db: Client, nutritionist_id: str, client_id: str) -> Optional[dict]:
    response = _execute(
        db.table("client_assignments")
        .select("*")
        .eq("nutritionist_id", nutritionist_id)
        .eq("client_id", client_id)
        .eq("active", True)
        .limit(1),
        "checking client assignment",
    )
    return _first(response)


def insert_assignment(db: Client, record: dict) -> dict:
    record = {"active": True, "assigned_at": _now(), **record}
    response = _execute(db.table("client_assignments").insert(record), "assigning client")
    return _inserted(response, "assigning client")


def insert_notification(db: Client, record: dict) -> dict:
    response = _execute(db.table("notifications").insert(record), "sending notification")
    return _inserted(response, "sending notification")
