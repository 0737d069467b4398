import logging
from datetime import date, timedelta
from typing import List, Optional

from supabase import Client

from nutriplan.core.errors import NutriPlanError, PersistenceFailure
from nutriplan.core.security import ensure_client_access
from nutriplan.models.adjustment import MacroTargets
from nutriplan.models.roles import Role
from nutriplan.models.schemas import BatchAdjustments, BatchUpdateRequest
from nutriplan.models.validators import CALORIE_FLOOR
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

DEFAULT_BATCH_REASON = "batch adjustment by nutritionist"
ANALYSIS_WINDOW_DAYS = 30


def analysis_since(today: Optional[date] = None) -> str:
    return ((today or date.today()) - timedelta(days=ANALYSIS_WINDOW_DAYS)).isoformat()


def list_clients(db: Client, nutritionist_id: str) -> List[dict]:
    """Active assignments of a nutritionist, each with the client's profile."""
    assignments = store.list_active_assignments(db, nutritionist_id)
    profiles = {p["user_id"]: p for p in store.get_profiles(db, [a["client_id"] for a in assignments])}
    return [{**a, "profile": profiles.get(a["client_id"])} for a in assignments]


def client_profiles(db: Client, nutritionist_id: str) -> List[dict]:
    return [c["profile"] for c in list_clients(db, nutritionist_id) if c["profile"]]


def apply_batch_adjustment(current: MacroTargets, changes: BatchAdjustments) -> MacroTargets:
    # Macros never go negative; calories keep the same floor as the weekly engine
    return MacroTargets(
        calories=max(CALORIE_FLOOR, current.calories + changes.calories_change),
        protein=max(0, current.protein + changes.protein_change),
        carbs=max(0, current.carbs + changes.carbs_change),
        fats=max(0, current.fats + changes.fats_change),
    )


def _update_client(db: Client, nutritionist_id: str, role: Role, client_id: str,
                   changes: BatchAdjustments, notify: bool) -> None:
    ensure_client_access(db, nutritionist_id, role, client_id)

    profile = store.require_profile(db, client_id)
    previous = MacroTargets.from_profile(profile)
    new = apply_batch_adjustment(previous, changes)
    reason = changes.reason or DEFAULT_BATCH_REASON

    store.update_profile(db, client_id, new.as_profile_fields())

    # Targets are committed from here on; later write failures are only logged
    try:
        store.insert_adjustment(db, {
            "user_id": client_id,
            "previous_calories": previous.calories,
            "new_calories": new.calories,
            "previous_protein": previous.protein,
            "new_protein": new.protein,
            "previous_carbs": previous.carbs,
            "new_carbs": new.carbs,
            "previous_fats": previous.fats,
            "new_fats": new.fats,
            "adjustment_reason": reason,
        })
    except PersistenceFailure as e:
        logger.warning("Targets of client %s updated without history record: %s", client_id, e.message)

    if notify:
        try:
            store.insert_notification(db, {
                "user_id": client_id,
                "type": "macro_adjustment",
                "title": "Your nutrition targets were updated",
                "message": (
                    f"Your nutritionist adjusted your daily targets to {new.calories} kcal "
                    f"({new.protein}g protein, {new.carbs}g carbs, {new.fats}g fats). Reason: {reason}"
                ),
                "read": False,
            })
        except PersistenceFailure as e:
            logger.warning("Client %s was not notified of new targets: %s", client_id, e.message)


def batch_update(db: Client, nutritionist_id: str, role: Role, request: BatchUpdateRequest) -> dict:
    """
    Apply the same target changes to several clients.

    Clients are handled one by one; a failure for one client is reported in
    `failed` and does not stop the others.
    """
    success, failed = [], []
    for client_id in request.client_ids:
        try:
            _update_client(db, nutritionist_id, role, client_id, request.adjustments, request.notify_clients)
            success.append(client_id)
        except NutriPlanError as e:
            logger.warning("Batch update failed for client %s: %s", client_id, e.message)
            failed.append({"client_id": client_id, "error": e.message})

    logger.info("Batch update by %s: %s updated, %s failed", nutritionist_id, len(success), len(failed))
    return {"success": success, "failed": failed}
