import logging
from typing import List, Optional

import pandas as pd
from supabase import Client

from nutriplan.core.errors import ProfileNotFound
from nutriplan.tools import database_tools as store

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["date", "weight", "chest", "waist", "hip", "adherence_pct"]


def _mean(df: pd.DataFrame, column: str) -> Optional[float]:
    if df.empty or column not in df.columns:
        return None
    value = pd.to_numeric(df[column], errors="coerce").mean()
    if pd.isna(value):
        return None
    return round(float(value), 1)


def summarize(progress: List[dict], feedback: List[dict], adherence: List[dict]) -> dict:
    """Headline numbers for a client's period; rows may come in any order."""
    progress_df = pd.DataFrame(progress)
    feedback_df = pd.DataFrame(feedback)
    adherence_df = pd.DataFrame(adherence)

    weight_change = None
    if not progress_df.empty and "weight" in progress_df.columns:
        weights = progress_df.sort_values("date")["weight"].dropna()
        if len(weights):
            weight_change = round(float(weights.iloc[-1]) - float(weights.iloc[0]), 2)

    return {
        "total_days": len(adherence_df),
        "avg_adherence": _mean(adherence_df, "adherence_percentage"),
        "weight_change": weight_change,
        "avg_energy": _mean(feedback_df, "energy_level"),
        "avg_satisfaction": _mean(feedback_df, "hunger_satisfaction"),
    }


def build_report(db: Client, client_id: str, start_date: Optional[str] = None,
                 end_date: Optional[str] = None) -> dict:
    client = store.get_profile(db, client_id)
    if client is None:
        raise ProfileNotFound("Client profile not found")

    progress = store.list_progress(db, client_id, start=start_date, end=end_date, descending=False)
    feedback = store.list_feedback(db, client_id, start=start_date, end=end_date, descending=False)
    adherence = store.list_adherence(db, client_id, start=start_date, end=end_date, descending=False)
    meal_plans = store.list_meal_plans(db, client_id, start=start_date, end=end_date, descending=False)

    logger.info("Report for client %s: %s progress rows, %s feedbacks", client_id, len(progress), len(feedback))
    return {
        "client": client,
        "period": {"start": start_date, "end": end_date},
        "progress": progress,
        "feedback": feedback,
        "adherence": adherence,
        "meal_plans": meal_plans,
        "summary": summarize(progress, feedback, adherence),
    }


def report_csv(report: dict) -> str:
    """Progress measurements joined with the adherence of the same day."""
    progress_df = pd.DataFrame(report["progress"])
    adherence_df = pd.DataFrame(report["adherence"])

    if progress_df.empty:
        return pd.DataFrame(columns=CSV_COLUMNS).to_csv(index=False)

    progress_df = progress_df.reindex(columns=["date", "weight", "chest", "waist", "hip"])
    if adherence_df.empty:
        progress_df["adherence_pct"] = None
        merged = progress_df
    else:
        adherence_df = adherence_df.reindex(columns=["date", "adherence_percentage"])
        merged = progress_df.merge(adherence_df, on="date", how="left")
        merged = merged.rename(columns={"adherence_percentage": "adherence_pct"})

    return merged.sort_values("date")[CSV_COLUMNS].to_csv(index=False)
