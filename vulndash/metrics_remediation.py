from __future__ import annotations

import pandas as pd

from vulndash.data import SEVERITY_ORDER, fixed_records, sorted_orgs
from vulndash.results import ChartData


NO_FIXED_MESSAGE = "No fixed issues in current selection"
FIXABLE_LABEL = "Fixable"
NOT_FIXABLE_LABEL = "Not Fixable"


def compute_mttr_by_org(records: pd.DataFrame) -> ChartData:
    """Mean days to resolution per (org, severity).

    A cell without a fixed finding stays NaN: an empty group has no mean and
    must not read as zero days.
    """
    fixed = fixed_records(records)
    if fixed.empty:
        return ChartData.empty(NO_FIXED_MESSAGE)

    orgs = sorted_orgs(records)
    grid = pd.MultiIndex.from_product([orgs, SEVERITY_ORDER], names=["org_name", "severity"])
    grouped = fixed.groupby(["org_name", "severity"])["resolution_days"]
    table = (
        pd.DataFrame({"mean_days": grouped.mean(), "fixed_count": grouped.size()})
        .reindex(grid)
        .reset_index()
    )
    table["fixed_count"] = table["fixed_count"].fillna(0).astype("int64")
    return ChartData(table=table, meta={"orgs": orgs, "severities": list(SEVERITY_ORDER)})


def compute_mttr_distribution(records: pd.DataFrame) -> ChartData:
    fixed = fixed_records(records)
    if fixed.empty:
        return ChartData.empty(NO_FIXED_MESSAGE)

    present = set(fixed["severity"])
    severities = [sev for sev in SEVERITY_ORDER if sev in present]
    table = fixed.loc[fixed["severity"].isin(severities), ["severity", "resolution_days"]].reset_index(drop=True)
    if table.empty:
        return ChartData.empty(NO_FIXED_MESSAGE)

    grouped = table.groupby("severity")["resolution_days"]
    summary = (
        pd.DataFrame({"count": grouped.size(), "median": grouped.median(), "mean": grouped.mean()})
        .reindex(severities)
        .rename_axis("severity")
        .reset_index()
    )
    return ChartData(table=table, meta={"severities": severities, "summary": summary.to_dict(orient="records")})


def compute_fixability_by_org(records: pd.DataFrame) -> ChartData:
    """Percent of all findings (any status) per org that have a fix available."""
    if records.empty:
        return ChartData.empty()

    orgs = sorted_orgs(records)
    fixable_pct = records.groupby("org_name")["is_fixable"].mean().reindex(orgs).fillna(0.0) * 100
    table = pd.concat(
        [
            pd.DataFrame({"org_name": orgs, "outcome": FIXABLE_LABEL, "pct": fixable_pct.values}),
            pd.DataFrame({"org_name": orgs, "outcome": NOT_FIXABLE_LABEL, "pct": 100 - fixable_pct.values}),
        ],
        ignore_index=True,
    )
    return ChartData(table=table, meta={"orgs": orgs, "fixable_pct": {o: float(p) for o, p in fixable_pct.items()}})
