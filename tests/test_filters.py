"""
Filter state tests.
"""

import logging

from dashboard_core.filters import FilterState, metric_column, metric_label, normalize_filters


class TestFilterState:
    def test_defaults(self):
        state = FilterState()
        assert (state.metric, state.continent, state.search_term) == ("cases", "all", "")

    def test_setters_accept_anything(self):
        state = FilterState()
        state.set_metric("nonsense")
        state.set_continent("Atlantis")
        state.set_search("x")
        assert (state.metric, state.continent, state.search_term) == ("nonsense", "Atlantis", "x")

    def test_reset(self):
        state = FilterState(metric="deaths", continent="Europe", search_term="fr")
        state.reset()
        assert state == FilterState()

    def test_metric_columns_and_labels(self):
        assert FilterState(metric="deathsPerMillion").metric_column == "deathsPerOneMillion"
        assert metric_column("casesPerMillion") == "casesPerOneMillion"
        assert metric_column("active") == "active"
        assert FilterState(metric="recovered").metric_label == "Total Recovered"
        assert metric_label("unknown") == "unknown"


class TestNormalizeFilters:
    def test_empty_input_gives_defaults(self):
        assert normalize_filters({}) == FilterState()

    def test_continent_case_folded_to_known_spelling(self):
        state = normalize_filters({"continent": " europe "}, available_continents=["Europe", "Asia"])
        assert state.continent == "Europe"

    def test_all_in_any_case(self):
        assert normalize_filters({"continent": "ALL"}).continent == "all"

    def test_unknown_continent_kept_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="dashboard_core.filters"):
            state = normalize_filters({"continent": "Atlantis"}, available_continents=["Europe"])
        assert state.continent == "Atlantis"
        assert "Atlantis" in caplog.text

    def test_search_is_stripped(self):
        assert normalize_filters({"search_term": "  fra "}).search_term == "fra"
