from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd

from vulndash.data import SEVERITY_ORDER, count_grid, fixed_records, open_records, sorted_orgs
from vulndash.results import ChartData, metric_value


def format_count(value: int) -> str:
    return f"{value / 1000:.1f}k" if value >= 1000 else str(value)


def _month(value: Optional[pd.Timestamp]) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return value.strftime("%Y-%m")


def compute_kpis(records: pd.DataFrame) -> Dict[str, Any]:
    open_df = open_records(records)
    fixed = fixed_records(records)
    return {
        "total": int(len(records)),
        "open_critical": int((open_df["severity"] == "critical").sum()),
        "open_high": int((open_df["severity"] == "high").sum()),
        "fixed": int(len(fixed)),
        "mean_mttr": metric_value(fixed["resolution_days"].mean()) if not fixed.empty else None,
    }


def compute_header_summary(records: pd.DataFrame) -> Dict[str, Any]:
    dates = records["discovered_date"].dropna()
    return {
        "issues": int(len(records)),
        "orgs": int(records["org_name"].nunique()),
        "projects": int(records["project_name"].nunique()),
        "first_month": _month(dates.min()) if not dates.empty else None,
        "last_month": _month(dates.max()) if not dates.empty else None,
    }


def compute_open_severity_matrix(records: pd.DataFrame) -> ChartData:
    open_df = open_records(records)
    if open_df.empty:
        return ChartData.empty()
    orgs = sorted_orgs(records)
    table = count_grid(open_df, "org_name", orgs, "severity", SEVERITY_ORDER)
    return ChartData(table=table, meta={"orgs": orgs, "severities": list(SEVERITY_ORDER)})


def compute_org_open_totals(records: pd.DataFrame) -> ChartData:
    open_df = open_records(records)
    if open_df.empty:
        return ChartData.empty()
    counts = open_df.groupby("org_name").size().sort_values(kind="stable")
    values = counts.tolist()
    median = values[len(values) // 2]
    table = counts.rename("count").reset_index()
    table["above_median"] = table["count"] > median
    return ChartData(table=table, meta={"median": int(median), "orgs": table["org_name"].tolist()})


def compute_severity_by_org(records: pd.DataFrame) -> ChartData:
    if records.empty:
        return ChartData.empty()
    orgs = sorted_orgs(records)
    table = count_grid(records, "org_name", orgs, "severity", SEVERITY_ORDER)
    return ChartData(table=table, meta={"orgs": orgs, "severities": list(SEVERITY_ORDER)})


def compute_severity_share(records: pd.DataFrame) -> ChartData:
    counts = records["severity"].value_counts().reindex(SEVERITY_ORDER, fill_value=0).astype("int64")
    total = int(counts.sum())
    if total == 0:
        return ChartData.empty()
    table = counts.rename_axis("severity").rename("count").reset_index()
    table["pct"] = table["count"] / total * 100
    return ChartData(table=table, meta={"total": total})
