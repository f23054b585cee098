from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import date
from typing import List, Optional
import math
import pandas as pd

# Column sets of the frames passed between stages.
DAILY_COLUMNS = ["location", "date", "positive_rate", "vaccinated_per_hundred"]
SEARCH_COLUMNS = ["date", "hits", "geo"]
WEEKLY_COLUMNS = ["location", "week", "avg_positive", "vaccination"]
LAG_COLUMNS = ["hit_vac_lag", "hits_lag", "vac_lag"]
MERGED_COLUMNS = [
    "week", "location", "avg_positive", "vaccination", "hits", "hit_vac",
] + LAG_COLUMNS


@dataclass(frozen=True)
class DailyRecord:
    location: str
    date: date
    positive_rate: Optional[float]
    vaccinated_per_hundred: Optional[float]


@dataclass(frozen=True)
class WeeklySearchRecord:
    date: date
    hits: Optional[int]
    geo: str


@dataclass(frozen=True)
class WeeklyAggregate:
    location: str
    week: int
    avg_positive: Optional[float]
    vaccination: float


@dataclass(frozen=True)
class MergedRecord:
    week: int
    location: str
    avg_positive: Optional[float]
    vaccination: float
    hits: Optional[int]
    hit_vac: Optional[float]
    hit_vac_lag: Optional[float] = None
    hits_lag: Optional[int] = None
    vac_lag: Optional[float] = None

    @property
    def has_lag(self) -> bool:
        return self.hit_vac_lag is not None


def _opt(v):
    if v is None or v is pd.NA:
        return None
    if isinstance(v, float) and math.isnan(v):
        return None
    return v


def empty_frame(columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype="object") for c in columns})


def daily_frame(records: List[DailyRecord]) -> pd.DataFrame:
    if not records:
        return empty_frame(DAILY_COLUMNS)
    df = pd.DataFrame([asdict(r) for r in records], columns=DAILY_COLUMNS)
    df["date"] = pd.to_datetime(df["date"])
    df["positive_rate"] = pd.to_numeric(df["positive_rate"], errors="coerce")
    df["vaccinated_per_hundred"] = pd.to_numeric(df["vaccinated_per_hundred"], errors="coerce")
    return df


def search_records(frame: pd.DataFrame) -> List[WeeklySearchRecord]:
    out: List[WeeklySearchRecord] = []
    for r in frame.itertuples(index=False):
        hits = _opt(r.hits)
        out.append(WeeklySearchRecord(
            date=pd.Timestamp(r.date).date(),
            hits=int(hits) if hits is not None else None,
            geo=str(r.geo),
        ))
    return out


def weekly_aggregates(frame: pd.DataFrame) -> List[WeeklyAggregate]:
    return [
        WeeklyAggregate(
            location=str(r.location),
            week=int(r.week),
            avg_positive=_opt(r.avg_positive),
            vaccination=float(r.vaccination),
        )
        for r in frame.itertuples(index=False)
    ]


def merged_records(frame: pd.DataFrame) -> List[MergedRecord]:
    """Convert a merged feature frame into value objects, lag fields None where absent."""
    out: List[MergedRecord] = []
    for r in frame.itertuples(index=False):
        hits = _opt(r.hits)
        hits_lag = _opt(r.hits_lag)
        out.append(MergedRecord(
            week=int(r.week),
            location=str(r.location),
            avg_positive=_opt(r.avg_positive),
            vaccination=float(r.vaccination),
            hits=int(hits) if hits is not None else None,
            hit_vac=_opt(r.hit_vac),
            hit_vac_lag=_opt(r.hit_vac_lag),
            hits_lag=int(hits_lag) if hits_lag is not None else None,
            vac_lag=_opt(r.vac_lag),
        ))
    return out
