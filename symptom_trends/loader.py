from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Optional, Union

import pandas as pd

from symptom_trends.errors import SchemaError, SourceError
from symptom_trends.records import DAILY_COLUMNS, SEARCH_COLUMNS
from symptom_trends.trends_provider import TrendsProvider

logger = logging.getLogger(__name__)

DEFAULT_START = date(2020, 12, 1)
DEFAULT_END = date(2021, 8, 11)

OWID_COLUMNS = {
    "location": "location",
    "date": "date",
    "positive_rate": "positive_rate",
    "people_fully_vaccinated_per_hundred": "vaccinated_per_hundred",
}

DateLike = Union[date, str]


def _as_date(d: DateLike) -> date:
    if isinstance(d, date):
        return d
    return date.fromisoformat(str(d))


def _window(df: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
    mask = (df["date"] >= pd.Timestamp(start)) & (df["date"] <= pd.Timestamp(end))
    return df[mask]


def load_daily(
    source,
    start_date: DateLike = DEFAULT_START,
    end_date: DateLike = DEFAULT_END,
    locations: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Read per-location daily records from an OWID-style CSV (path, URL or buffer).

    Only location/date/positive_rate/people_fully_vaccinated_per_hundred are kept,
    the last renamed to ``vaccinated_per_hundred``. Unparseable values become NaN/NaT
    instead of raising. Rows outside [start_date, end_date] are dropped.
    """
    start, end = _as_date(start_date), _as_date(end_date)

    try:
        raw = pd.read_csv(source, low_memory=False)
    except (OSError, ValueError) as e:
        raise SourceError(f"could not read daily dataset {source!r}: {e}") from e

    missing = set(OWID_COLUMNS) - set(raw.columns)
    if missing:
        raise SchemaError("daily dataset", missing)

    df = raw[list(OWID_COLUMNS)].rename(columns=OWID_COLUMNS)
    df["location"] = df["location"].astype(str)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["positive_rate"] = pd.to_numeric(df["positive_rate"], errors="coerce")
    df["vaccinated_per_hundred"] = pd.to_numeric(df["vaccinated_per_hundred"], errors="coerce")

    if locations is not None:
        wanted = list(locations)
        df = df[df["location"].isin(wanted)]

    df = _window(df, start, end)
    df = df.sort_values(["location", "date"], kind="mergesort").reset_index(drop=True)

    logger.info(
        "Loaded %d daily rows for %d location(s) in %s..%s",
        len(df), df["location"].nunique(), start, end,
    )
    return df[DAILY_COLUMNS]


def search_timeframe(start_date: DateLike, end_date: DateLike, date_offset_days: int = 2) -> str:
    """Provider timeframe string, starting ``date_offset_days`` before the window."""
    start = _as_date(start_date) - timedelta(days=date_offset_days)
    return f"{start.isoformat()} {_as_date(end_date).isoformat()}"


def load_search(
    provider: TrendsProvider,
    keyword: str,
    geo: str,
    start_date: DateLike = DEFAULT_START,
    end_date: DateLike = DEFAULT_END,
    date_offset_days: int = 2,
) -> pd.DataFrame:
    """
    Query weekly search interest and shift its dates onto the study window.

    Reported week dates are moved forward by ``date_offset_days`` before the
    window filter is applied. Row order is the provider's order and is kept,
    since the feature builder numbers weeks by position.
    """
    start, end = _as_date(start_date), _as_date(end_date)
    timeframe = search_timeframe(start, end, date_offset_days)

    try:
        result = provider.interest_over_time(keyword, geo, timeframe)
    except Exception as e:
        raise SourceError(f"search interest query failed for {keyword!r} in {geo}: {e}") from e

    s = result.series
    df = pd.DataFrame({
        "date": pd.to_datetime(s.index) + pd.Timedelta(days=date_offset_days),
        "hits": pd.Series(pd.to_numeric(s.to_numpy(), errors="coerce"), dtype="float64").round().astype("Int64"),
    })
    df["geo"] = geo

    df = _window(df, start, end).reset_index(drop=True)
    logger.info("Loaded %d weekly search rows for %r in %s", len(df), keyword, geo)
    return df[SEARCH_COLUMNS]
