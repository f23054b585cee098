from __future__ import annotations
import logging
from typing import Dict, List
import pandas as pd
import statsmodels.api as sm

from symptom_trends.errors import EmptyDatasetError
from symptom_trends.features import lagged_view

logger = logging.getLogger(__name__)

OUTCOME = "avg_positive"

# (name, predictors, needs lagged view)
STUDY_MODELS = [
    ("hits", ["hits"], False),
    ("hit_vac", ["hit_vac"], False),
    ("hits_vaccination", ["hits", "vaccination"], False),
    ("hit_vac_lag", ["hit_vac_lag"], True),
    ("hits_lag_vac_lag", ["hits_lag", "vac_lag"], True),
]


def fit_ols(frame: pd.DataFrame, outcome: str, predictors: List[str]):
    """OLS of ``outcome`` on ``predictors`` plus a constant; rows with any missing value are dropped."""
    data = frame[[outcome] + predictors].astype("float64").dropna()
    if len(data) <= len(predictors) + 1:
        raise EmptyDatasetError(
            f"{len(data)} complete row(s) for {outcome} ~ {' + '.join(predictors)}"
        )

    X = sm.add_constant(data[predictors], has_constant="add")
    y = data[outcome]
    return sm.OLS(y, X).fit()


def fit_study_models(merged: pd.DataFrame) -> Dict[str, object]:
    if merged.empty:
        raise EmptyDatasetError("merged table is empty; nothing to fit")

    lagged = lagged_view(merged)
    out: Dict[str, object] = {}
    for name, predictors, needs_lag in STUDY_MODELS:
        frame = lagged if needs_lag else merged
        try:
            out[name] = fit_ols(frame, OUTCOME, predictors)
        except EmptyDatasetError as e:
            logger.warning("Skipping model %s: %s", name, e)
    return out


def summarize(results: Dict[str, object]) -> pd.DataFrame:
    rows = []
    for name, res in results.items():
        for term in res.params.index:
            rows.append({
                "model": name,
                "term": term,
                "coef": float(res.params[term]),
                "pvalue": float(res.pvalues[term]),
                "r_squared": float(res.rsquared),
                "nobs": int(res.nobs),
            })
    return pd.DataFrame(rows, columns=["model", "term", "coef", "pvalue", "r_squared", "nobs"])
