from __future__ import annotations
from dataclasses import dataclass
import io
import logging
import pandas as pd
import time
import random

logger = logging.getLogger(__name__)

@dataclass
class TrendResult:
    term: str
    geo: str
    timeframe: str
    series: pd.Series

class TrendsProvider:
    def interest_over_time(self, keyword: str, geo: str, timeframe: str) -> TrendResult:
        """Ordered weekly search interest for one keyword in one region."""
        raise NotImplementedError

class PyTrendsProvider(TrendsProvider):
    def __init__(self, hl: str = "en-US", tz: int = 0, retries: int = 6, base_sleep: float = 2.0):
        from pytrends.request import TrendReq
        self.pytrends = TrendReq(hl=hl, tz=tz)
        self.retries = retries
        self.base_sleep = base_sleep

    def _sleep_jitter(self, seconds: float):
        time.sleep(seconds + random.uniform(0.2, 0.9))

    def interest_over_time(self, keyword: str, geo: str, timeframe: str) -> TrendResult:
        self._sleep_jitter(self.base_sleep)

        # 429 only; anything else propagates to the caller
        attempt = 0
        while True:
            try:
                self.pytrends.build_payload([keyword], timeframe=timeframe, geo=geo)
                df = self.pytrends.interest_over_time()
                break
            except Exception as e:
                msg = str(e)
                is_429 = ("429" in msg) or ("TooManyRequests" in e.__class__.__name__)
                attempt += 1
                if (not is_429) or (attempt > self.retries):
                    raise

                # 4s, 8s, 16s...
                wait = (2 ** (attempt - 1)) * 4.0
                logger.warning("Google Trends rate limited (attempt %d), sleeping %.0fs", attempt, wait)
                self._sleep_jitter(wait)

        if df is None or df.empty or keyword not in df.columns:
            series = pd.Series([], dtype="int64", index=pd.DatetimeIndex([], name="date"), name=keyword)
        else:
            series = df[keyword].astype("int64")

        return TrendResult(term=keyword, geo=geo, timeframe=timeframe, series=series)


class CsvTrendsProvider(TrendsProvider):
    """Reads a Google Trends ``multiTimeline.csv`` export instead of querying live.

    The export starts with a category line and a blank line, then a header like
    ``Week,loss of smell: (United Kingdom)``. Values below one are written as
    ``<1`` and read as 0. A ``{geo}`` placeholder in ``path`` selects one file
    per region. The file's own range is returned and the caller applies its
    date window.
    """

    HEADER_KEYS = ("Week", "Day", "Month", "Time")

    def __init__(self, path: str):
        self.path = path

    def interest_over_time(self, keyword: str, geo: str, timeframe: str) -> TrendResult:
        path = self.path.replace("{geo}", geo)
        with open(path, "r", encoding="utf-8-sig") as f:
            lines = f.read().splitlines()

        # skip the preamble above the header row
        start = next(
            (i for i, line in enumerate(lines) if line.split(",")[0].strip() in self.HEADER_KEYS),
            0,
        )
        df = pd.read_csv(io.StringIO("\n".join(lines[start:])))
        if df.shape[1] < 2:
            raise ValueError(f"{path}: expected a date column and a value column")

        date_col = df.columns[0]
        value_col = df.columns[1]
        for c in df.columns[1:]:
            if str(c).split(":")[0].strip().lower() == keyword.lower():
                value_col = c
                break

        values = df[value_col].astype(str).str.strip().replace({"<1": "0"})
        series = pd.Series(
            pd.to_numeric(values, errors="coerce").to_numpy(),
            index=pd.DatetimeIndex(pd.to_datetime(df[date_col], errors="coerce"), name="date"),
            name=keyword,
        )
        return TrendResult(term=keyword, geo=geo, timeframe=timeframe, series=series)
