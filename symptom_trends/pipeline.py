from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import pandas as pd
from tqdm import tqdm

from symptom_trends.aligner import aggregate_weekly
from symptom_trends.config import Study
from symptom_trends.features import build_features, check_common_epoch, lagged_view
from symptom_trends.loader import load_daily, load_search
from symptom_trends.trends_provider import TrendsProvider

logger = logging.getLogger(__name__)


@dataclass
class LocationResult:
    location: str
    geo: str
    weekly: pd.DataFrame
    search: pd.DataFrame
    merged: pd.DataFrame

    @property
    def lagged(self) -> pd.DataFrame:
        return lagged_view(self.merged)

    @property
    def empty(self) -> bool:
        return self.merged.empty


def run_location(
    daily: pd.DataFrame,
    provider: TrendsProvider,
    study: Study,
    location: str,
    geo: str,
) -> LocationResult:
    own = daily[daily["location"] == location]
    weekly = aggregate_weekly(own, study.end_date)

    search = load_search(
        provider,
        study.keyword,
        geo,
        start_date=study.start_date,
        end_date=study.end_date,
        date_offset_days=study.search_date_offset_days,
    )
    if not own.empty:
        check_common_epoch(own["date"].min(), search)

    merged = build_features(weekly, search, location, geo=geo)
    if merged.empty:
        logger.warning("No joined weeks for %s (%s)", location, geo)

    return LocationResult(location=location, geo=geo, weekly=weekly, search=search, merged=merged)


def run_study(
    study: Study,
    owid_source,
    provider: TrendsProvider,
    locations: Optional[Iterable[str]] = None,
) -> List[LocationResult]:
    """
    Run every study location (or the ``locations`` subset) through the pipeline.

    The daily dataset is read once. Any ``PipelineError`` aborts the run.
    """
    targets = study.locations
    if locations is not None:
        wanted = set(locations)
        targets = [loc for loc in targets if loc.location in wanted]

    daily = load_daily(
        owid_source,
        start_date=study.start_date,
        end_date=study.end_date,
        locations=[loc.location for loc in targets],
    )

    results: List[LocationResult] = []
    for loc in tqdm(targets, desc="locations", unit="location"):
        results.append(run_location(daily, provider, study, loc.location, loc.geo))
    return results
