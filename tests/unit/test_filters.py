"""Unit tests for filter selections."""

import pytest

from vulndash.filters import ALL_SENTINEL, DashboardFilters, FilterSelection, filter_options, scan_type_label


class TestFilterSelection:
    """Test cases for the toggle protocol."""

    def test_defaults_to_all(self):
        selection = FilterSelection()
        assert selection.all_selected
        assert selection.values == frozenset({ALL_SENTINEL})

    def test_toggle_from_all_selects_single_token(self):
        assert FilterSelection().toggle("Acme").values == frozenset({"Acme"})

    def test_toggle_adds_and_removes(self):
        selection = FilterSelection().toggle("Acme").toggle("Beta")
        assert selection.values == frozenset({"Acme", "Beta"})

        selection = selection.toggle("Acme")
        assert selection.values == frozenset({"Beta"})

    def test_removing_last_token_selects_all(self):
        assert FilterSelection().toggle("Acme").toggle("Acme").all_selected

    def test_sentinel_resets_unconditionally(self):
        narrowed = FilterSelection.of(["Acme", "Beta"])
        assert narrowed.toggle(ALL_SENTINEL).all_selected
        assert FilterSelection().toggle(ALL_SENTINEL).toggle(ALL_SENTINEL).all_selected

    @pytest.mark.parametrize(
        "start",
        [FilterSelection(), FilterSelection.of(["Acme"]), FilterSelection.of(["Acme", "Beta"])],
    )
    @pytest.mark.parametrize("token", ["Acme", "Gamma"])
    def test_double_toggle_returns_to_prior_state(self, start, token):
        assert start.toggle(token).toggle(token) == start

    def test_invalid_selections_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            FilterSelection(frozenset())
        with pytest.raises(ValueError, match="cannot be combined"):
            FilterSelection(frozenset({ALL_SENTINEL, "Acme"}))

    def test_of_collapses_to_all(self):
        assert FilterSelection.of([]).all_selected
        assert FilterSelection.of([ALL_SENTINEL, "Acme"]).all_selected

    def test_matches_value(self):
        assert FilterSelection().matches_value("anything")
        selection = FilterSelection.of(["Acme"])
        assert selection.matches_value("Acme")
        assert not selection.matches_value("Beta")


class TestDashboardFilters:
    """Test cases for the paired org / scan type filters."""

    def test_apply_all_keeps_everything(self, sample_records):
        filtered = DashboardFilters().apply(sample_records)
        assert len(filtered) == len(sample_records)

    def test_apply_combines_both_predicates(self, sample_records):
        filters = DashboardFilters().toggle_org("Acme").toggle_org("Gamma").toggle_scan_type("sca")
        filtered = filters.apply(sample_records)

        assert filtered["issue_id"].tolist() == ["ISS-1", "ISS-5", "ISS-6"]
        assert filtered.index.tolist() == [0, 1, 2]

    def test_matches_record_mapping(self):
        filters = DashboardFilters().toggle_scan_type("iac")
        assert filters.matches({"org_name": "Acme", "scan_type": "iac"})
        assert not filters.matches({"org_name": "Acme", "scan_type": "sca"})

    def test_apply_agrees_with_matches(self, sample_records):
        filters = DashboardFilters().toggle_org("Beta")
        expected = [r["issue_id"] for r in sample_records.to_dict(orient="records") if filters.matches(r)]
        assert filters.apply(sample_records)["issue_id"].tolist() == expected

    def test_reset(self):
        filters = DashboardFilters().toggle_org("Acme").toggle_scan_type("sast")
        assert filters.reset() == DashboardFilters()

    def test_selection_that_matches_nothing(self, sample_records):
        filtered = DashboardFilters().toggle_org("Nobody").apply(sample_records)
        assert filtered.empty
        assert list(filtered.columns) == list(sample_records.columns)


def test_filter_options(sample_records):
    assert filter_options(sample_records, "org_name") == ["Acme", "Beta", "Gamma"]
    assert filter_options(sample_records, "scan_type") == ["iac", "sast", "sca"]


def test_scan_type_label():
    assert scan_type_label("sast") == "SAST"
