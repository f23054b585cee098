from __future__ import annotations
import argparse
import logging
import os
import sys
import warnings
from typing import Dict

import pandas as pd

from symptom_trends.config import settings, load_study
from symptom_trends.errors import PipelineError
from symptom_trends.models import fit_study_models, summarize
from symptom_trends.pipeline import run_study
from symptom_trends.plots import plot_location
from symptom_trends.report import render_summary
from symptom_trends.trends_provider import CsvTrendsProvider, PyTrendsProvider

warnings.filterwarnings(
    "ignore",
    category=FutureWarning,
    module="pytrends"
)

logger = logging.getLogger("symptom_trends")


def get_provider(mode: str, csv_path: str = ""):
    if mode == "csv":
        if not csv_path:
            raise PipelineError("TRENDS_MODE=csv needs TRENDS_CSV_PATH (or --trends-csv)")
        return CsvTrendsProvider(csv_path)
    return PyTrendsProvider(
        hl=settings.pytrends_hl,
        tz=settings.pytrends_tz
    )


def _slug(s: str) -> str:
    return "_".join(s.lower().split())


def run(args) -> int:
    study = load_study(args.study)
    provider = get_provider(args.trends_mode, args.trends_csv)
    results = run_study(study, args.owid, provider, locations=args.location or None)

    fits: Dict[str, pd.DataFrame] = {}
    for r in results:
        if r.empty:
            continue

        if args.out:
            os.makedirs(args.out, exist_ok=True)
            path = os.path.join(args.out, f"merged_{_slug(r.location)}.csv")
            r.merged.to_csv(path, index=False, encoding="utf-8")
            logger.info("Saved %d rows -> %s", len(r.merged), path)

        if args.fit:
            fits[r.location] = summarize(fit_study_models(r.merged))

        if args.plot_dir:
            plot_location(
                r.merged,
                os.path.join(args.plot_dir, f"{_slug(r.location)}.png"),
                title=f"{study.keyword} | {r.location}",
            )

    print(render_summary(study, results, fits))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Join OWID test positivity with Google Trends interest and fit the study regressions."
    )
    parser.add_argument("--study", default=settings.study_path, help="Path to study.yaml")
    parser.add_argument("--owid", default=settings.owid_csv_path, help="OWID CSV path or URL")
    parser.add_argument("--trends-mode", default=settings.trends_mode, choices=["pytrends", "csv"])
    parser.add_argument("--trends-csv", default=settings.trends_csv_path,
                        help="Google Trends export; '{geo}' is replaced by the region code")
    parser.add_argument("--location", action="append", help="Restrict to this study location (repeatable)")
    parser.add_argument("--out", default=settings.output_dir, help="Directory for merged CSVs (empty: not written)")
    parser.add_argument("--fit", action="store_true", help="Fit the OLS models per location")
    parser.add_argument("--plot-dir", default="", help="Directory for PNG charts")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except PipelineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
