from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Protocol, Tuple

import pandas as pd

from vulndash.charts import (
    ChartBuilder,
    build_cvss_box,
    build_cwe,
    build_exploit,
    build_fixability,
    build_heatmap,
    build_language,
    build_mttr_bar,
    build_mttr_violin,
    build_org_totals,
    build_scan_severity,
    build_scan_type,
    build_scatter,
    build_severity_bar,
    build_severity_pie,
    build_trend,
    to_vega_spec,
)
from vulndash.metrics_overview import (
    compute_kpis,
    compute_open_severity_matrix,
    compute_org_open_totals,
    compute_severity_by_org,
    compute_severity_share,
    format_count,
)
from vulndash.metrics_remediation import compute_fixability_by_org, compute_mttr_by_org, compute_mttr_distribution
from vulndash.metrics_scan import compute_language_severity, compute_scan_severity_mix, compute_scan_type_by_org
from vulndash.metrics_trend import compute_monthly_trend
from vulndash.metrics_vulns import compute_cvss_by_language, compute_exploit_maturity, compute_project_risk, compute_top_cwe
from vulndash.results import ChartData
from vulndash.state import DashboardState


logger = logging.getLogger(__name__)

Aggregation = Callable[[pd.DataFrame], ChartData]


@dataclass(frozen=True)
class ChartSlot:
    chart_id: str
    title: str
    compute: Aggregation
    build: ChartBuilder


CHART_SLOTS: Tuple[ChartSlot, ...] = (
    ChartSlot("chart-heatmap", "Open Issues by Organization and Severity", compute_open_severity_matrix, build_heatmap),
    ChartSlot("chart-org-totals", "Open Issues per Organization", compute_org_open_totals, build_org_totals),
    ChartSlot("chart-severity-bar", "Severity by Organization", compute_severity_by_org, build_severity_bar),
    ChartSlot("chart-severity-pie", "Severity Distribution", compute_severity_share, build_severity_pie),
    ChartSlot("chart-trend", "Monthly Discovery Trend", compute_monthly_trend, build_trend),
    ChartSlot("chart-scan-type", "Issues by Scan Type", compute_scan_type_by_org, build_scan_type),
    ChartSlot("chart-scan-severity", "Severity Mix per Scan Type", compute_scan_severity_mix, build_scan_severity),
    ChartSlot("chart-language", "Issues by Language", compute_language_severity, build_language),
    ChartSlot("chart-cvss-box", "CVSS Distribution by Language", compute_cvss_by_language, build_cvss_box),
    ChartSlot("chart-mttr-bar", "Mean Time to Resolution", compute_mttr_by_org, build_mttr_bar),
    ChartSlot("chart-mttr-violin", "Resolution Time Distribution", compute_mttr_distribution, build_mttr_violin),
    ChartSlot("chart-fixability", "Fixability by Organization", compute_fixability_by_org, build_fixability),
    ChartSlot("chart-exploit", "Exploit Maturity", compute_exploit_maturity, build_exploit),
    ChartSlot("chart-cwe", "Top 10 CWE", compute_top_cwe, build_cwe),
    ChartSlot("chart-scatter", "Project Risk", compute_project_risk, build_scatter),
)

KPI_SLOTS: Dict[str, str] = {
    "kpi-total": "Total Issues",
    "kpi-critical": "Open Critical",
    "kpi-high": "Open High",
    "kpi-fixed": "Fixed",
    "kpi-mttr": "Mean MTTR (days)",
}


class RenderPort(Protocol):
    """Where rendered charts and counters go (a UI, or memory in tests)."""

    def render(self, chart_id: str, spec: Dict[str, Any]) -> None: ...

    def render_empty(self, chart_id: str, message: str) -> None: ...

    def set_text(self, slot_id: str, value: str) -> None: ...


@dataclass
class RecordingPort:
    """In-memory port; the latest write per id wins."""

    charts: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    placeholders: Dict[str, str] = field(default_factory=dict)
    texts: Dict[str, str] = field(default_factory=dict)

    def render(self, chart_id: str, spec: Dict[str, Any]) -> None:
        self.placeholders.pop(chart_id, None)
        self.charts[chart_id] = spec

    def render_empty(self, chart_id: str, message: str) -> None:
        self.charts.pop(chart_id, None)
        self.placeholders[chart_id] = message

    def set_text(self, slot_id: str, value: str) -> None:
        self.texts[slot_id] = value


def render_chart(port: RenderPort, chart_id: str, data: ChartData, build: ChartBuilder) -> None:
    """Forward one aggregation result to its slot, or the slot's placeholder when empty."""
    if data.is_empty:
        port.render_empty(chart_id, data.empty_message)
        return
    port.render(chart_id, to_vega_spec(build(data)))


def update_kpis(port: RenderPort, records: pd.DataFrame) -> Dict[str, Any]:
    kpis = compute_kpis(records)
    port.set_text("kpi-total", format_count(kpis["total"]))
    port.set_text("kpi-critical", str(kpis["open_critical"]))
    port.set_text("kpi-high", str(kpis["open_high"]))
    port.set_text("kpi-fixed", format_count(kpis["fixed"]))
    port.set_text("kpi-mttr", f"{kpis['mean_mttr']:.1f}" if kpis["mean_mttr"] is not None else "N/A")
    return kpis


def render_all(port: RenderPort, records: pd.DataFrame) -> Dict[str, ChartData]:
    """Refresh the counters and every chart slot, in CHART_SLOTS order."""
    update_kpis(port, records)
    results: Dict[str, ChartData] = {}
    for slot in CHART_SLOTS:
        data = slot.compute(records)
        render_chart(port, slot.chart_id, data, slot.build)
        results[slot.chart_id] = data
    empty: List[str] = [cid for cid, data in results.items() if data.is_empty]
    logger.debug("Rendered %d charts over %d records (%d empty)", len(results), len(records), len(empty))
    return results


def render_state(port: RenderPort, state: DashboardState) -> Dict[str, ChartData]:
    return render_all(port, state.filtered)
