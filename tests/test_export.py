"""
CSV export tests.
"""

from datetime import date

from dashboard_core.data import normalize_regions
from dashboard_core.export import EXPORT_COLUMNS, export_filename, to_delimited_text

HEADER = "Country,Continent,Cases,Today Cases,Deaths,Recovered,Active,Cases Per Million"


class TestToDelimitedText:
    def test_header_and_row_count(self, regions):
        text = to_delimited_text(regions)
        lines = text.splitlines()
        assert lines[0] == HEADER
        assert len(lines) - 1 == len(regions)
        assert text.endswith("\n")

    def test_fields_match_source_values(self, regions):
        rows = [line.split(",") for line in to_delimited_text(regions).splitlines()[1:]]
        assert rows[0] == ["USA", "North America", "1000", "10", "50", "900", "50", "3.02"]
        for row, country in zip(rows, regions["country"]):
            assert len(row) == len(EXPORT_COLUMNS)
            assert row[0] == country

    def test_missing_values_are_empty_fields(self, regions):
        rows = {line.split(",")[0]: line.split(",") for line in to_delimited_text(regions).splitlines()[1:]}
        assert rows["Diamond Princess"][1] == ""
        assert rows["Holy See"][5] == ""

    def test_whole_floats_have_no_decimal_part(self, regions):
        rows = {line.split(",")[0]: line.split(",") for line in to_delimited_text(regions).splitlines()[1:]}
        assert rows["France"][7] == "9"
        assert rows["Holy See"][7] == "0"

    def test_follows_record_order(self, regions):
        reordered = regions.iloc[::-1]
        first = to_delimited_text(reordered).splitlines()[1]
        assert first.startswith("Holy See,")

    def test_custom_delimiter_and_columns(self):
        df = normalize_regions([{"country": "A", "cases": 5}])
        assert to_delimited_text(df, [("country", "Name"), ("cases", "N")], delimiter=";") == "Name;N\nA;5\n"

    def test_empty_records(self):
        assert to_delimited_text(normalize_regions([])) == HEADER + "\n"


def test_export_filename():
    assert export_filename(date(2024, 3, 1)) == "covid19_data_2024-03-01.csv"
