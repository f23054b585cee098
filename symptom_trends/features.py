# Weeks are matched by position from a common epoch. The join is inner:
# weeks present on only one side are dropped, not imputed.
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd

from symptom_trends.errors import SchemaError
from symptom_trends.records import LAG_COLUMNS, MERGED_COLUMNS, WEEKLY_COLUMNS, empty_frame

logger = logging.getLogger(__name__)

EPOCH_TOLERANCE_DAYS = 6


def hit_vac(vaccination, hits):
    """``(100 - vaccination) * hits``: search interest weighted by the unvaccinated share."""
    return (100.0 - vaccination) * hits


def reindex_search_weeks(search: pd.DataFrame) -> pd.DataFrame:
    missing = {"hits"} - set(search.columns)
    if missing:
        raise SchemaError("search series", missing)
    df = search.reset_index(drop=True).copy()
    df["week"] = np.arange(1, len(df) + 1, dtype="int64")
    return df


def check_common_epoch(daily_start, search: pd.DataFrame) -> bool:
    """Warn when the search series does not start within a week of ``daily_start``."""
    if search.empty or pd.isna(daily_start):
        return True
    first = pd.Timestamp(search["date"].iloc[0])
    gap = abs((first - pd.Timestamp(daily_start)).days)
    if gap > EPOCH_TOLERANCE_DAYS:
        logger.warning(
            "Search series starts %s but daily series starts %s; positional week numbers will not line up",
            first.date(), pd.Timestamp(daily_start).date(),
        )
        return False
    return True


def _empty_merged() -> pd.DataFrame:
    return empty_frame(MERGED_COLUMNS)


def add_lags(merged: pd.DataFrame) -> pd.DataFrame:
    """Attach hit_vac/hits/vaccination of week ``w-1`` to the row of week ``w``."""
    prev = merged[["week", "hit_vac", "hits", "vaccination"]].rename(columns={
        "hit_vac": "hit_vac_lag",
        "hits": "hits_lag",
        "vaccination": "vac_lag",
    })
    prev = prev.assign(week=prev["week"] + 1)
    out = merged.drop(columns=[c for c in LAG_COLUMNS if c in merged.columns])
    return out.merge(prev, on="week", how="left")


def build_features(
    weekly: pd.DataFrame,
    search: pd.DataFrame,
    location: str,
    geo: Optional[str] = None,
) -> pd.DataFrame:
    """
    Merged weekly table for one location, ordered by week.

    When ``geo`` is given and the search rows were fetched for another region,
    the series are unrelated and the result is empty. An empty result is a
    normal outcome; callers check ``.empty`` before fitting or lagging.
    """
    missing = set(WEEKLY_COLUMNS) - set(weekly.columns)
    if missing:
        raise SchemaError("weekly aggregates", missing)

    if geo is not None and "geo" in search.columns and not search.empty:
        regions = set(search["geo"].dropna().astype(str).str.upper())
        if regions and regions != {geo.upper()}:
            logger.warning(
                "Search series for %s does not cover %s (%s); no rows joined",
                ", ".join(sorted(regions)), location, geo.upper(),
            )
            return _empty_merged()

    w = weekly[weekly["location"] == location]
    if w.empty or search.empty:
        return _empty_merged()

    s = reindex_search_weeks(search)[["week", "hits"]]
    w = w.assign(week=w["week"].astype("int64"))

    merged = w.merge(s, on="week", how="inner").sort_values("week", kind="mergesort")
    if merged.empty:
        logger.info("No common weeks for %s", location)
        return _empty_merged()

    merged["hits"] = merged["hits"].astype("Int64")
    merged["vaccination"] = merged["vaccination"].astype("float64")
    merged["hit_vac"] = hit_vac(merged["vaccination"], merged["hits"].astype("float64"))

    merged = add_lags(merged.reset_index(drop=True))
    return merged[MERGED_COLUMNS]


def lagged_view(merged: pd.DataFrame) -> pd.DataFrame:
    """Rows whose preceding week is present in the same table; the first week never is."""
    if merged.empty:
        return merged.copy()
    has_prev = (merged["week"] - 1).isin(merged["week"])
    return merged[has_prev].reset_index(drop=True)
