from __future__ import annotations

import pandas as pd

from vulndash.data import SEVERITY_ORDER, count_grid, sorted_orgs
from vulndash.filters import scan_type_label
from vulndash.results import ChartData


UNKNOWN_LANGUAGE = "Unknown"


def language_labels(series: pd.Series) -> pd.Series:
    return series.where(series != "", UNKNOWN_LANGUAGE)


def compute_scan_type_by_org(records: pd.DataFrame) -> ChartData:
    if records.empty:
        return ChartData.empty()
    orgs = sorted_orgs(records)
    scan_types = sorted(str(v) for v in records["scan_type"].unique())
    table = count_grid(records, "org_name", orgs, "scan_type", scan_types)
    table["scan_label"] = table["scan_type"].map(scan_type_label)
    return ChartData(table=table, meta={"orgs": orgs, "scan_types": scan_types})


def compute_scan_severity_mix(records: pd.DataFrame) -> ChartData:
    """Share of each severity within every scan type, in percent."""
    if records.empty:
        return ChartData.empty()
    scan_types = sorted(str(v) for v in records["scan_type"].unique())
    table = count_grid(records, "scan_type", scan_types, "severity", SEVERITY_ORDER)
    totals = records.groupby("scan_type").size()
    table["total"] = table["scan_type"].map(totals).fillna(0).astype("int64")
    table["pct"] = (table["count"] / table["total"].where(table["total"] > 0) * 100).fillna(0.0)
    table["scan_label"] = table["scan_type"].map(scan_type_label)
    return ChartData(table=table, meta={"scan_types": scan_types})


def compute_language_severity(records: pd.DataFrame) -> ChartData:
    if records.empty:
        return ChartData.empty()
    df = records.assign(language=language_labels(records["language"]))
    # Ascending totals put the largest language on top of a horizontal bar.
    totals = df.groupby("language").size().sort_values(kind="stable")
    languages = totals.index.tolist()
    table = count_grid(df, "language", languages, "severity", SEVERITY_ORDER)
    return ChartData(table=table, meta={"languages": languages, "totals": {k: int(v) for k, v in totals.items()}})
