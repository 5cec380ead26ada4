from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import altair as alt
import pandas as pd

from vulndash.data import SEVERITY_ORDER
from vulndash.filters import scan_type_label
from vulndash.metrics_remediation import FIXABLE_LABEL, NOT_FIXABLE_LABEL
from vulndash.results import ChartData

alt.data_transformers.disable_max_rows()


SEVERITY_COLORS = {
    "critical": "#AB1A1A",
    "high": "#CE5019",
    "medium": "#D68000",
    "low": "#88879E",
}
SCAN_COLORS = {"sca": "#3B82F6", "sast": "#8B5CF6", "iac": "#10B981"}
EXPLOIT_COLORS = {
    "no-known-exploit": "#88879E",
    "proof-of-concept": "#D68000",
    "mature": "#AB1A1A",
}
FALLBACK_COLOR = "#888888"
HEATMAP_RANGE = ["#FEF3C7", "#FCA5A5", "#EF4444", "#B91C1C", "#7F1D1D"]
BOX_COLOR = "#7E3AF2"
BOX_FILL = "#EDE9FE"
SEVERITY_RANK = {sev: i for i, sev in enumerate(SEVERITY_ORDER)}


@dataclass(frozen=True)
class ReferenceLines:
    cvss_high: float = 7.0
    cvss_critical: float = 9.0
    sla_critical_days: float = 15.0
    sla_high_days: float = 30.0


REFERENCE_LINES = ReferenceLines()

ChartBuilder = Callable[[ChartData], "alt.TopLevelMixin"]


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def severity_scale(severities: List[str] = SEVERITY_ORDER) -> alt.Scale:
    return alt.Scale(domain=list(severities), range=[SEVERITY_COLORS[s] for s in severities])


def palette_scale(values: List[str], colors: Dict[str, str]) -> alt.Scale:
    return alt.Scale(domain=list(values), range=[colors.get(v, FALLBACK_COLOR) for v in values])


def _with_rank(table: pd.DataFrame) -> pd.DataFrame:
    return table.assign(severity_rank=table["severity"].map(SEVERITY_RANK))


def _reference_rules(values: List[float], labels: List[str], colors: List[str], *, channel: str) -> alt.LayerChart:
    rules = []
    for value, label, color in zip(values, labels, colors):
        ref = pd.DataFrame({"value": [value], "label": [label]})
        position = alt.X("value:Q", title=None) if channel == "x" else alt.Y("value:Q", title=None)
        rules.append(
            alt.Chart(ref)
            .mark_rule(color=color, strokeDash=[6, 4], strokeWidth=1.5)
            .encode(**{channel: position, "tooltip": [alt.Tooltip("label:N", title="Reference")]})
        )
    return alt.layer(*rules)


# ---------- Overview ----------
def build_heatmap(data: ChartData) -> alt.TopLevelMixin:
    base = alt.Chart(data.table).encode(
        x=alt.X("severity:N", sort=data.meta["severities"], title=None, axis=alt.Axis(labelAngle=0)),
        y=alt.Y("org_name:N", sort=data.meta["orgs"], title=None),
    )
    cells = base.mark_rect().encode(
        color=alt.Color("count:Q", title="Count", scale=alt.Scale(range=HEATMAP_RANGE)),
        tooltip=[
            alt.Tooltip("org_name:N", title="Organization"),
            alt.Tooltip("severity:N", title="Severity"),
            alt.Tooltip("count:Q", title="Open"),
        ],
    )
    labels = base.transform_filter("datum.count > 0").mark_text(color="white", fontSize=13).encode(text="count:Q")
    return (cells + labels).properties(height=max(160, 28 * len(data.meta["orgs"])))


def build_org_totals(data: ChartData) -> alt.TopLevelMixin:
    # Ascending counts; reversed so the largest org sits on top.
    order = list(reversed(data.meta["orgs"]))
    base = alt.Chart(data.table).encode(
        x=alt.X("count:Q", title="Count"),
        y=alt.Y("org_name:N", sort=order, title=None),
    )
    bars = base.mark_bar().encode(
        color=alt.condition("datum.above_median", alt.value("#CE5019"), alt.value("#D68000")),
        tooltip=[alt.Tooltip("org_name:N", title="Organization"), alt.Tooltip("count:Q", title="Open")],
    )
    labels = base.mark_text(align="left", baseline="middle", dx=3).encode(text="count:Q")
    return bars + labels


def build_severity_bar(data: ChartData) -> alt.TopLevelMixin:
    return (
        alt.Chart(_with_rank(data.table))
        .mark_bar()
        .encode(
            x=alt.X("org_name:N", sort=data.meta["orgs"], title=None, axis=alt.Axis(labelAngle=-30)),
            y=alt.Y("count:Q", stack="zero", title="Issue Count"),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale()),
            order=alt.Order("severity_rank:Q", sort="descending"),
            tooltip=["org_name", "severity", alt.Tooltip("count:Q", title="Issues")],
        )
    )


def build_severity_pie(data: ChartData) -> alt.TopLevelMixin:
    return (
        alt.Chart(_with_rank(data.table))
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("count:Q"),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale(), legend=alt.Legend(orient="bottom")),
            order=alt.Order("severity_rank:Q"),
            tooltip=[
                alt.Tooltip("severity:N", title="Severity"),
                alt.Tooltip("count:Q", title="Issues"),
                alt.Tooltip("pct:Q", title="Share %", format=".1f"),
            ],
        )
    )


# ---------- Trend / scan ----------
def build_trend(data: ChartData) -> alt.TopLevelMixin:
    stack_rank = {sev: i for i, sev in enumerate(data.meta["stack_order"])}
    table = data.table.assign(stack_rank=data.table["severity"].map(stack_rank))
    return (
        alt.Chart(table)
        .mark_area(opacity=0.8, line={"strokeWidth": 0.5})
        .encode(
            x=alt.X("month:O", sort=data.meta["months"], title="Month", axis=alt.Axis(labelAngle=-30)),
            y=alt.Y("count:Q", stack="zero", title="Issues Discovered"),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale(), legend=alt.Legend(orient="top")),
            order=alt.Order("stack_rank:Q"),
            tooltip=["month", "severity", alt.Tooltip("count:Q", title="Issues")],
        )
    )


def build_scan_type(data: ChartData) -> alt.TopLevelMixin:
    scan_types = data.meta["scan_types"]
    labels = [scan_type_label(s) for s in scan_types]
    colors = {scan_type_label(s): SCAN_COLORS.get(s, FALLBACK_COLOR) for s in scan_types}
    return (
        alt.Chart(data.table)
        .mark_bar()
        .encode(
            x=alt.X("org_name:N", sort=data.meta["orgs"], title=None, axis=alt.Axis(labelAngle=-30)),
            xOffset=alt.XOffset("scan_label:N", sort=labels),
            y=alt.Y("count:Q", title="Issue Count"),
            color=alt.Color("scan_label:N", title="Scan Type", scale=palette_scale(labels, colors)),
            tooltip=["org_name", alt.Tooltip("scan_label:N", title="Scan Type"), alt.Tooltip("count:Q", title="Issues")],
        )
    )


def build_scan_severity(data: ChartData) -> alt.TopLevelMixin:
    return (
        alt.Chart(_with_rank(data.table))
        .mark_bar()
        .encode(
            x=alt.X("pct:Q", stack="zero", title="Percentage", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("scan_label:N", title=None, sort=[scan_type_label(s) for s in data.meta["scan_types"]]),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale(), legend=alt.Legend(orient="top")),
            order=alt.Order("severity_rank:Q"),
            tooltip=[
                alt.Tooltip("scan_label:N", title="Scan Type"),
                alt.Tooltip("severity:N", title="Severity"),
                alt.Tooltip("pct:Q", title="Share %", format=".1f"),
            ],
        )
    )


def build_language(data: ChartData) -> alt.TopLevelMixin:
    return (
        alt.Chart(_with_rank(data.table))
        .mark_bar()
        .encode(
            x=alt.X("count:Q", stack="zero", title="Issue Count"),
            y=alt.Y("language:N", sort=list(reversed(data.meta["languages"])), title=None),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale()),
            order=alt.Order("severity_rank:Q"),
            tooltip=["language", "severity", alt.Tooltip("count:Q", title="Issues")],
        )
    )


# ---------- Vulnerabilities ----------
def build_cvss_box(data: ChartData) -> alt.TopLevelMixin:
    order = list(reversed(data.meta["languages"]))
    x_scale = alt.Scale(domain=[0, 10.5])
    base = alt.Chart(data.table).encode(y=alt.Y("language:N", sort=order, title=None))
    tooltip = [
        alt.Tooltip("language:N", title="Language"),
        alt.Tooltip("count:Q", title="Findings"),
        alt.Tooltip("min:Q", format=".1f"),
        alt.Tooltip("q1:Q", format=".1f"),
        alt.Tooltip("median:Q", format=".1f"),
        alt.Tooltip("q3:Q", format=".1f"),
        alt.Tooltip("max:Q", format=".1f"),
        alt.Tooltip("mean:Q", format=".2f"),
    ]
    whisker = base.mark_rule(color=BOX_COLOR).encode(
        x=alt.X("min:Q", title="CVSS Score", scale=x_scale),
        x2="max:Q",
    )
    box = base.mark_bar(size=14, color=BOX_FILL, stroke=BOX_COLOR).encode(x="q1:Q", x2="q3:Q", tooltip=tooltip)
    median = base.mark_tick(color=BOX_COLOR, size=14, thickness=2).encode(x="median:Q")
    mean = base.mark_point(shape="diamond", color=BOX_COLOR, filled=True).encode(x="mean:Q")
    rules = _reference_rules(
        [REFERENCE_LINES.cvss_high, REFERENCE_LINES.cvss_critical],
        [f"High ({REFERENCE_LINES.cvss_high})", f"Critical ({REFERENCE_LINES.cvss_critical})"],
        ["red", "#7F1D1D"],
        channel="x",
    )
    return alt.layer(whisker, box, median, mean, rules)


def build_exploit(data: ChartData) -> alt.TopLevelMixin:
    maturities = data.meta["maturities"]
    return (
        alt.Chart(data.table)
        .mark_bar()
        .encode(
            x=alt.X("severity:N", sort=SEVERITY_ORDER, title=None, axis=alt.Axis(labelAngle=0)),
            xOffset=alt.XOffset("exploit_maturity:N", sort=maturities),
            y=alt.Y("count:Q", title="Issue Count"),
            color=alt.Color(
                "exploit_maturity:N",
                title="Exploit Maturity",
                scale=palette_scale(maturities, EXPLOIT_COLORS),
                legend=alt.Legend(orient="top"),
            ),
            tooltip=["severity", "exploit_maturity", alt.Tooltip("count:Q", title="Issues")],
        )
    )


def build_cwe(data: ChartData) -> alt.TopLevelMixin:
    return (
        alt.Chart(_with_rank(data.table))
        .mark_bar()
        .encode(
            x=alt.X("count:Q", stack="zero", title="Issue Count"),
            y=alt.Y("label:N", sort=list(reversed(data.meta["order"])), title=None, axis=alt.Axis(labelLimit=280)),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale()),
            order=alt.Order("severity_rank:Q"),
            tooltip=[
                alt.Tooltip("label:N", title="CWE"),
                alt.Tooltip("severity:N", title="Severity"),
                alt.Tooltip("count:Q", title="Issues"),
                alt.Tooltip("total:Q", title="Total"),
            ],
        )
    )


def build_scatter(data: ChartData) -> alt.TopLevelMixin:
    # Vega-Lite sizes are areas; marker_size is a diameter.
    table = data.table.assign(marker_area=data.table["marker_size"] ** 2)
    base = alt.Chart(table).encode(
        x=alt.X("total_open:Q", title="Total Open Issues"),
        y=alt.Y("avg_cvss:Q", title="Average CVSS Score"),
    )
    points = base.mark_circle(opacity=0.85, stroke="#64748B", strokeWidth=1).encode(
        size=alt.Size("marker_area:Q", scale=None, legend=None),
        color=alt.Color("high_count:Q", title="High Issues", scale=alt.Scale(scheme="yelloworangered")),
        tooltip=[
            alt.Tooltip("project_name:N", title="Project"),
            alt.Tooltip("org_name:N", title="Org"),
            alt.Tooltip("total_open:Q", title="Open Issues"),
            alt.Tooltip("avg_cvss:Q", title="Avg CVSS", format=".2f"),
            alt.Tooltip("critical_count:Q", title="Critical"),
            alt.Tooltip("high_count:Q", title="High"),
        ],
    )
    labels = base.mark_text(dy=-14, fontSize=9, color="#475569").encode(text="project_name:N")
    rule = _reference_rules(
        [REFERENCE_LINES.cvss_high],
        [f"High CVSS threshold ({REFERENCE_LINES.cvss_high})"],
        ["#EF4444"],
        channel="y",
    )
    return alt.layer(points, labels, rule)


# ---------- Remediation ----------
def build_mttr_bar(data: ChartData) -> alt.TopLevelMixin:
    bars = (
        alt.Chart(data.table)
        .transform_filter("isValid(datum.mean_days)")
        .mark_bar()
        .encode(
            x=alt.X("org_name:N", sort=data.meta["orgs"], title=None, axis=alt.Axis(labelAngle=-30)),
            xOffset=alt.XOffset("severity:N", sort=SEVERITY_ORDER),
            y=alt.Y("mean_days:Q", title="Days"),
            color=alt.Color("severity:N", title="Severity", scale=severity_scale()),
            tooltip=[
                "org_name",
                "severity",
                alt.Tooltip("mean_days:Q", title="Mean days", format=".1f"),
                alt.Tooltip("fixed_count:Q", title="Fixed"),
            ],
        )
    )
    rules = _reference_rules(
        [REFERENCE_LINES.sla_critical_days, REFERENCE_LINES.sla_high_days],
        [
            f"Critical SLA ({REFERENCE_LINES.sla_critical_days:.0f}d)",
            f"High SLA ({REFERENCE_LINES.sla_high_days:.0f}d)",
        ],
        ["red", "orange"],
        channel="y",
    )
    return alt.layer(bars, rules)


def build_mttr_violin(data: ChartData) -> alt.TopLevelMixin:
    severities = data.meta["severities"]
    return (
        alt.Chart(data.table)
        .transform_density("resolution_days", as_=["resolution_days", "density"], groupby=["severity"])
        .mark_area(orient="horizontal", opacity=0.6)
        .encode(
            x=alt.X(
                "density:Q",
                stack="center",
                impute=None,
                title=None,
                axis=alt.Axis(labels=False, values=[0], grid=False, ticks=True),
            ),
            y=alt.Y("resolution_days:Q", title="Days to Fix"),
            color=alt.Color("severity:N", scale=severity_scale(severities), legend=None),
        )
        .properties(width=110)
        .facet(
            column=alt.Column(
                "severity:N",
                sort=severities,
                header=alt.Header(titleOrient="bottom", labelOrient="bottom", labelPadding=0),
                title=None,
            )
        )
        .configure_facet(spacing=0)
        .configure_view(stroke=None)
    )


def build_fixability(data: ChartData) -> alt.TopLevelMixin:
    outcomes = [FIXABLE_LABEL, NOT_FIXABLE_LABEL]
    table = data.table.assign(outcome_rank=data.table["outcome"].map({o: i for i, o in enumerate(outcomes)}))
    return (
        alt.Chart(table)
        .mark_bar()
        .encode(
            x=alt.X("pct:Q", stack="zero", title="Percentage", scale=alt.Scale(domain=[0, 100])),
            y=alt.Y("org_name:N", sort=data.meta["orgs"], title=None),
            color=alt.Color(
                "outcome:N",
                title=None,
                scale=alt.Scale(domain=outcomes, range=["#22C55E", "#EF4444"]),
                legend=alt.Legend(orient="top"),
            ),
            order=alt.Order("outcome_rank:Q"),
            tooltip=["org_name", "outcome", alt.Tooltip("pct:Q", title="Share %", format=".1f")],
        )
    )
