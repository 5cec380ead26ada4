from __future__ import annotations

import numpy as np
import pandas as pd

from vulndash.data import SEVERITY_ORDER, count_grid, open_records, vuln_records
from vulndash.metrics_scan import language_labels
from vulndash.results import ChartData


CVSS_EMPTY_MESSAGE = "No vulnerability data with CVSS scores"
EXPLOIT_EMPTY_MESSAGE = "No exploit maturity data in current selection"
CWE_EMPTY_MESSAGE = "No vulnerability data with CWE IDs in current selection"
TOP_CWE_LIMIT = 10


def project_marker_size(critical_count):
    return np.maximum(10.0, np.sqrt(critical_count + 1) * 14 + 6)


def compute_cvss_by_language(records: pd.DataFrame) -> ChartData:
    """Five-number summary plus mean of CVSS per language, lowest median first."""
    vulns = vuln_records(records)
    vulns = vulns[vulns["cvss_score"] > 0]
    if vulns.empty:
        return ChartData.empty(CVSS_EMPTY_MESSAGE)

    scores = vulns.assign(language=language_labels(vulns["language"])).groupby("language")["cvss_score"]
    table = (
        pd.DataFrame(
            {
                "min": scores.min(),
                "q1": scores.quantile(0.25),
                "median": scores.median(),
                "q3": scores.quantile(0.75),
                "max": scores.max(),
                "mean": scores.mean(),
                "count": scores.size(),
            }
        )
        .rename_axis("language")
        .reset_index()
        .sort_values("median", kind="stable")
        .reset_index(drop=True)
    )
    return ChartData(table=table, meta={"languages": table["language"].tolist()})


def compute_exploit_maturity(records: pd.DataFrame) -> ChartData:
    vulns = vuln_records(records)
    exploit = vulns[vulns["exploit_maturity"] != ""]
    if exploit.empty:
        return ChartData.empty(EXPLOIT_EMPTY_MESSAGE)
    maturities = sorted(str(v) for v in exploit["exploit_maturity"].unique())
    table = count_grid(exploit, "severity", SEVERITY_ORDER, "exploit_maturity", maturities)
    return ChartData(table=table, meta={"maturities": maturities})


def compute_top_cwe(records: pd.DataFrame) -> ChartData:
    """Ten most frequent CWE ids among vulnerabilities, presented smallest first.

    Ties in the ranking keep the order in which ids first appear. Each label
    uses the first non-empty title seen for its id.
    """
    vulns = vuln_records(records)
    vulns = vulns[vulns["cwe_id"] != ""]
    if vulns.empty:
        return ChartData.empty(CWE_EMPTY_MESSAGE)

    counts = vulns.groupby("cwe_id", sort=False).size()
    top = counts.sort_values(ascending=False, kind="stable").head(TOP_CWE_LIMIT).sort_values(kind="stable")
    ids = top.index.tolist()

    titles = vulns[vulns["title"] != ""].drop_duplicates("cwe_id").set_index("cwe_id")["title"]
    labels = {cwe: (f"{cwe}: {titles[cwe]}" if cwe in titles.index else cwe) for cwe in ids}

    table = count_grid(vulns[vulns["cwe_id"].isin(ids)], "cwe_id", ids, "severity", SEVERITY_ORDER)
    table["label"] = table["cwe_id"].map(labels)
    table["total"] = table["cwe_id"].map(top).astype("int64")
    return ChartData(
        table=table,
        meta={"ids": ids, "order": [labels[cwe] for cwe in ids], "totals": {cwe: int(n) for cwe, n in top.items()}},
    )


def compute_project_risk(records: pd.DataFrame) -> ChartData:
    open_df = open_records(records)
    if open_df.empty:
        return ChartData.empty()

    flagged = open_df.assign(
        is_critical=open_df["severity"].eq("critical"),
        is_high=open_df["severity"].eq("high"),
    )
    table = (
        flagged.groupby("project_name", sort=False)
        .agg(
            org_name=("org_name", "first"),
            total_open=("issue_id", "size"),
            avg_cvss=("cvss_score", "mean"),
            critical_count=("is_critical", "sum"),
            high_count=("is_high", "sum"),
        )
        .reset_index()
    )
    table = table[table["total_open"] > 0].reset_index(drop=True)
    if table.empty:
        return ChartData.empty()
    table = table.assign(marker_size=project_marker_size(table["critical_count"]))
    return ChartData(table=table, meta={"projects": table["project_name"].tolist()})
