# Week 1 opens on each location's first retained date; a short trailing week is kept.
from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Union

import pandas as pd

from symptom_trends.errors import SchemaError
from symptom_trends.records import DAILY_COLUMNS, WEEKLY_COLUMNS, empty_frame

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


def _check_daily(daily: pd.DataFrame) -> None:
    missing = set(DAILY_COLUMNS) - set(daily.columns)
    if missing:
        raise SchemaError("daily records", missing)


def assign_weeks(daily: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of ``daily`` with a ``week`` column, ``ceil(rank / 7)`` per location."""
    _check_daily(daily)
    df = daily.dropna(subset=["location", "date"])
    df = df.sort_values(["location", "date"], kind="mergesort").reset_index(drop=True)
    if df.empty:
        df["week"] = pd.Series(dtype="int64")
        return df

    rank = df.groupby("location", sort=False)["date"].rank(method="dense").astype("int64")
    df["week"] = (rank - 1) // DAYS_PER_WEEK + 1
    return df


def aggregate_weekly(
    daily: pd.DataFrame,
    end_date: Optional[Union[date, str]] = None,
) -> pd.DataFrame:
    """
    One row per (location, week) with mean positivity and mean vaccination.

    ``daily`` is expected to be filtered to the study start already; rows after
    ``end_date`` are dropped here. Missing vaccination counts as 0 before the
    mean is taken. Missing positivity is skipped by the mean, so a week with no
    positivity data at all stays NaN.
    """
    _check_daily(daily)
    df = daily
    if end_date is not None:
        df = df[df["date"] <= pd.Timestamp(end_date)]
    df = df.dropna(subset=["date"])

    if df.empty:
        return empty_frame(WEEKLY_COLUMNS)

    df = assign_weeks(df)
    df["positive_rate"] = pd.to_numeric(df["positive_rate"], errors="coerce").astype("float64")
    df["vaccinated_per_hundred"] = (
        pd.to_numeric(df["vaccinated_per_hundred"], errors="coerce").astype("float64").fillna(0.0)
    )

    weekly = (
        df.groupby(["location", "week"], sort=True)
        .agg(
            avg_positive=("positive_rate", "mean"),
            vaccination=("vaccinated_per_hundred", "mean"),
        )
        .reset_index()
    )

    logger.debug(
        "Aggregated %d daily rows into %d location-weeks", len(df), len(weekly),
    )
    return weekly[WEEKLY_COLUMNS]
