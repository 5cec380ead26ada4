"""Unit tests for the application state."""

from vulndash.filters import DashboardFilters
from vulndash.state import DashboardState


class TestDashboardState:
    """Test cases for DashboardState."""

    def test_initial_state(self, sample_records):
        state = DashboardState(sample_records)

        assert state.filters == DashboardFilters()
        assert len(state.filtered) == len(sample_records)
        assert state.org_options == ["Acme", "Beta", "Gamma"]

    def test_empty_default(self):
        state = DashboardState()
        assert state.filtered.empty
        assert state.org_options == []

    def test_toggle_replaces_filtered_reference(self, sample_records):
        state = DashboardState(sample_records)
        before = state.filtered

        after = state.toggle_org("Beta")

        assert after is state.filtered
        assert after is not before
        assert len(before) == len(sample_records)
        assert set(after["org_name"]) == {"Beta"}

    def test_toggle_scan_type(self, sample_records):
        state = DashboardState(sample_records)
        state.toggle_scan_type("sast")
        assert state.filtered["issue_id"].tolist() == ["ISS-2"]

    def test_load_resets_filters(self, sample_records):
        state = DashboardState(sample_records)
        state.toggle_org("Acme")

        state.load(sample_records.iloc[:2])

        assert state.filters == DashboardFilters()
        assert len(state.filtered) == 2

    def test_records_left_untouched(self, sample_records):
        snapshot = sample_records.copy()
        state = DashboardState(sample_records)
        state.toggle_org("Acme")
        state.toggle_scan_type("sca")
        state.reset()

        assert state.records.equals(snapshot)
