"""
Sort engine tests: typed comparison, stability, missing values, per-column direction memory.
"""

import pytest

from dashboard_core.data import normalize_regions
from dashboard_core.sorting import SortState, sort_by
from tests.conftest import countries


class TestSortBy:
    def test_string_field_ignores_case(self):
        df = normalize_regions([{"country": "beta"}, {"country": "Alpha"}, {"country": "gamma"}])
        assert countries(sort_by(df, "country", True)) == ["Alpha", "beta", "gamma"]
        assert countries(sort_by(df, "country", False)) == ["gamma", "beta", "Alpha"]

    def test_string_order_is_code_point_not_locale(self):
        df = normalize_regions([{"country": "\u00c5land Islands"}, {"country": "Zambia"}])
        assert countries(sort_by(df, "country", True)) == ["Zambia", "\u00c5land Islands"]

    def test_numeric_field(self, regions):
        out = sort_by(regions, "deaths", False)
        assert countries(out)[:3] == ["USA", "Brazil", "France"]

    def test_numeric_not_lexicographic(self):
        df = normalize_regions([{"country": "A", "cases": 9}, {"country": "B", "cases": 10}])
        assert countries(sort_by(df, "cases", True)) == ["A", "B"]

    @pytest.mark.parametrize("ascending", [True, False])
    def test_stable_for_equal_keys(self, regions, ascending):
        out = countries(sort_by(regions, "cases", ascending))
        assert out.index("France") + 1 == out.index("Germany")

    @pytest.mark.parametrize("ascending", [True, False])
    def test_idempotent(self, regions, ascending):
        once = sort_by(regions, "cases", ascending)
        twice = sort_by(once, "cases", ascending)
        assert countries(once) == countries(twice)

    @pytest.mark.parametrize("ascending", [True, False])
    def test_missing_values_last(self, regions, ascending):
        assert countries(sort_by(regions, "recovered", ascending))[-1] == "Holy See"
        assert countries(sort_by(regions, "continent", ascending))[-1] == "Diamond Princess"

    def test_does_not_modify_input(self, regions):
        before = countries(regions)
        sort_by(regions, "cases", True)
        assert countries(regions) == before

    def test_unknown_field(self, regions):
        with pytest.raises(KeyError):
            sort_by(regions, "hospitalized", True)


class TestSortState:
    def test_first_toggle_is_ascending_then_flips(self):
        state = SortState()
        assert state.direction("cases") is None
        assert state.toggle("cases") is True
        assert state.toggle("cases") is False
        assert state.toggle("cases") is True

    def test_each_column_keeps_its_own_direction(self):
        state = SortState()
        state.toggle("cases")
        state.toggle("cases")
        assert state.toggle("deaths") is True
        assert state.toggle("cases") is True
        assert state.last_field == "cases"
        assert state.direction("deaths") is True


class TestStoreReorder:
    def test_sort_regions_reorders_store(self, store):
        store.sort_regions("country", True)
        assert countries(store.regions()) == ["Brazil", "Diamond Princess", "France", "Germany", "Holy See", "USA"]
        assert list(store.regions().index) == list(range(6))

    def test_sort_on_empty_store_is_noop(self):
        from dashboard_core.data import DataStore

        s = DataStore()
        s.sort_regions("cases", True)
        assert not s.is_loaded
