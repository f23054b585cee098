from __future__ import annotations
from typing import Dict, List, Optional
import pandas as pd

from symptom_trends.config import Study


def render_summary(
    study: Study,
    results: List,
    fits: Optional[Dict[str, pd.DataFrame]] = None,
) -> str:
    lines = []
    lines.append(f"Search interest for \"{study.keyword}\" vs test positivity ({study.start_date} .. {study.end_date})")
    lines.append(f"- search dates shifted by {study.search_date_offset_days} day(s)")
    lines.append("")

    for r in results:
        if r.empty:
            lines.append(f"- {r.location} ({r.geo}): no joined weeks")
            continue
        m = r.merged
        lines.append(
            f"- {r.location} ({r.geo}): weeks {int(m['week'].min())}..{int(m['week'].max())} "
            f"({len(m)} joined, {len(r.lagged)} lagged; "
            f"{len(r.weekly)} weekly / {len(r.search)} search before join)"
        )

        table = (fits or {}).get(r.location)
        if table is None or table.empty:
            continue
        for model, g in table.groupby("model", sort=False):
            g = g[g["term"] != "const"]
            terms = ", ".join(f"{t} {c:+.3g} (p {p:.3f})" for t, c, p in zip(g["term"], g["coef"], g["pvalue"]))
            lines.append(f"  · {model}: R² {g['r_squared'].iloc[0]:.3f}, n {g['nobs'].iloc[0]} | {terms}")

    return "\n".join(lines)
