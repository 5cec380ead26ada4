"""Integration tests for the render orchestrator."""

import pandas as pd

from vulndash.dashboard import CHART_SLOTS, KPI_SLOTS, RecordingPort, render_all, render_state, update_kpis
from vulndash.data import empty_records, parse_csv, parse_rows
from vulndash.filters import DashboardFilters, FilterSelection
from vulndash.metrics_remediation import NO_FIXED_MESSAGE, compute_mttr_by_org
from vulndash.state import DashboardState


class TestDashboard:
    """End-to-end runs from raw rows to rendered slots."""

    def test_two_record_kpis(self, make_row):
        """Test the counters for one open critical and one fixed finding."""
        records = parse_rows(
            [
                make_row(issue_id="1", org_name="A", severity="critical", status="open", cvss_score="9.1"),
                make_row(issue_id="2", org_name="A", severity="low", status="fixed", resolution_days="5"),
            ]
        )
        port = RecordingPort()
        kpis = update_kpis(port, records)

        assert kpis["total"] == 2
        assert kpis["open_critical"] == 1
        assert kpis["fixed"] == 1
        assert kpis["mean_mttr"] == 5.0
        assert port.texts == {
            "kpi-total": "2",
            "kpi-critical": "1",
            "kpi-high": "0",
            "kpi-fixed": "1",
            "kpi-mttr": "5.0",
        }

    def test_every_slot_rendered_in_order(self, sample_records):
        port = RecordingPort()
        results = render_all(port, sample_records)

        assert list(results) == [slot.chart_id for slot in CHART_SLOTS]
        assert set(port.charts) == set(results)
        assert port.placeholders == {}
        assert set(port.texts) == set(KPI_SLOTS)
        assert all("$schema" in spec for spec in port.charts.values())

    def test_org_toggle_narrows_view(self, sample_records):
        state = DashboardState(sample_records)
        state.toggle_org("Acme")

        assert state.filters.orgs == FilterSelection.of(["Acme"])
        assert set(state.filtered["org_name"]) == {"Acme"}

        port = RecordingPort()
        render_state(port, state)
        assert port.texts["kpi-total"] == "2"

    def test_same_org_toggled_twice_restores_all(self, sample_records):
        state = DashboardState(sample_records)
        state.toggle_org("Acme")
        state.toggle_org("Acme")

        assert state.filters.orgs.all_selected
        assert len(state.filtered) == len(sample_records)

    def test_reset_restores_full_dataset(self, sample_records):
        state = DashboardState(sample_records)
        state.toggle_org("Beta")
        state.toggle_scan_type("iac")
        assert len(state.filtered) == 1

        state.reset()

        assert state.filters == DashboardFilters()
        assert state.filtered.equals(sample_records)

    def test_zero_fixed_issues(self, sample_records):
        """Test that MTTR charts fall back to placeholders with nothing fixed."""
        open_only = sample_records[sample_records["status"] == "open"].reset_index(drop=True)
        data = compute_mttr_by_org(open_only)
        assert data.is_empty
        assert data.table.empty

        port = RecordingPort()
        render_all(port, open_only)

        assert port.placeholders["chart-mttr-bar"] == NO_FIXED_MESSAGE
        assert port.placeholders["chart-mttr-violin"] == NO_FIXED_MESSAGE
        assert port.texts["kpi-mttr"] == "N/A"
        assert "chart-heatmap" in port.charts

    def test_rendering_is_idempotent(self, sample_records):
        first, second = RecordingPort(), RecordingPort()
        render_all(first, sample_records)
        render_all(second, sample_records)
        render_all(second, sample_records)

        assert first == second

    def test_aggregations_are_pure(self, sample_records):
        snapshot = sample_records.copy()
        for slot in CHART_SLOTS:
            a = slot.compute(sample_records)
            b = slot.compute(sample_records)
            assert a.is_empty == b.is_empty
            pd.testing.assert_frame_equal(a.table, b.table)
            assert a.meta == b.meta
        pd.testing.assert_frame_equal(sample_records, snapshot)

    def test_empty_dataset_renders_placeholders_only(self):
        port = RecordingPort()
        render_all(port, empty_records())

        assert port.charts == {}
        assert set(port.placeholders) == {slot.chart_id for slot in CHART_SLOTS}
        assert port.texts["kpi-total"] == "0"

    def test_csv_to_render(self):
        text = (
            "issue_id,org_name,project_name,scan_type,severity,cvss_score,issue_type,status,"
            "discovered_date,resolution_days,language\n"
            "1,Acme,web,sca,high,7.5,vuln,open,2024-05-02,,Python\n"
            "2,Acme,web,sca,medium,5.0,vuln,fixed,2024-05-09,12,Python\n"
            ",Acme,web,sca,low,1.0,vuln,open,2024-05-10,,Python\n"
        )
        port = RecordingPort()
        render_all(port, parse_csv(text))

        assert port.texts["kpi-total"] == "2"
        assert port.texts["kpi-mttr"] == "12.0"
        assert "chart-mttr-bar" in port.charts
