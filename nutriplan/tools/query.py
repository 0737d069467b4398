from typing import Iterable, List, Optional

import pandas as pd
from fuzzywuzzy import fuzz, process

PANTRY_MATCH_THRESHOLD = 85


def pantry_frame(pantry_items: Iterable[dict]) -> pd.DataFrame:
    df = pd.DataFrame(list(pantry_items))
    if df.empty:
        return pd.DataFrame(columns=["food_name", "quantity", "unit"])
    return df


def fuzzy_search_rows(query: str, df: pd.DataFrame, column_name: str = "food_name",
                      threshold: int = PANTRY_MATCH_THRESHOLD) -> pd.DataFrame:
    """Rows of `df` whose `column_name` fuzzily matches `query` (token_set_ratio >= threshold)."""
    if df.empty or not query:
        return df.iloc[0:0]

    matches = process.extract(query, df[column_name], scorer=fuzz.token_set_ratio, limit=len(df))
    matched_indices = [idx for (name, score, idx) in matches if score >= threshold]

    return df.loc[matched_indices]


def best_pantry_match(food_name: str, df: pd.DataFrame,
                      threshold: int = PANTRY_MATCH_THRESHOLD) -> Optional[str]:
    """Name of the closest pantry item, or None when nothing clears the threshold."""
    if df.empty or not food_name:
        return None
    match = process.extractOne(food_name, df["food_name"], scorer=fuzz.token_set_ratio,
                               score_cutoff=threshold)
    if match is None:
        return None
    return match[0]


def pantry_matches(food_names: Iterable[str], df: pd.DataFrame) -> List[str]:
    """Distinct pantry item names that match any of `food_names`."""
    found = []
    for name in food_names:
        match = best_pantry_match(name, df)
        if match and match not in found:
            found.append(match)
    return found


def describe_pantry(pantry_items: Iterable[dict]) -> str:
    """Human readable pantry listing used in prompts, e.g. 'Rice (500 g), Eggs'."""
    parts = []
    for item in pantry_items:
        label = item.get("food_name", "")
        if item.get("quantity") is not None:
            label += f" ({item['quantity']} {item.get('unit') or ''})".replace(" )", ")")
        parts.append(label)
    return ", ".join(p for p in parts if p)
