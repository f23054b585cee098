from __future__ import annotations

import io

import pandas as pd
import pytest

from symptom_trends.trends_provider import TrendResult, TrendsProvider


class FakeProvider(TrendsProvider):
    """Returns a fixed weekly series, recording every call."""

    def __init__(self, values, first_week: str = "2020-11-29", error: Exception | None = None):
        self.values = list(values)
        self.first_week = first_week
        self.error = error
        self.calls = []

    def interest_over_time(self, keyword, geo, timeframe):
        self.calls.append((keyword, geo, timeframe))
        if self.error is not None:
            raise self.error
        idx = pd.date_range(self.first_week, periods=len(self.values), freq="7D", name="date")
        return TrendResult(term=keyword, geo=geo, timeframe=timeframe,
                           series=pd.Series(self.values, index=idx, name=keyword))


def owid_frame(locations, start="2020-11-25", end="2020-12-31") -> pd.DataFrame:
    """Synthetic OWID export: positivity rises 0.001/day, vaccination starts on 2020-12-15."""
    rows = []
    for loc in locations:
        for i, d in enumerate(pd.date_range(start, end, freq="D")):
            vac = None if d < pd.Timestamp("2020-12-15") else float((d - pd.Timestamp("2020-12-15")).days)
            rows.append({
                "iso_code": loc[:3].upper(),
                "location": loc,
                "date": d.strftime("%Y-%m-%d"),
                "new_cases": 100 + i,
                "positive_rate": 0.05 + 0.001 * i,
                "people_fully_vaccinated_per_hundred": vac,
            })
    return pd.DataFrame(rows)


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def owid_csv():
    def _make(locations=("United Kingdom",), **kwargs) -> io.StringIO:
        buf = io.StringIO()
        owid_frame(list(locations), **kwargs).to_csv(buf, index=False)
        buf.seek(0)
        return buf
    return _make
