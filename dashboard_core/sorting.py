from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import pandas as pd

STRING_FIELDS = {"country", "continent"}

# (field, label) in table / export order.
TABLE_COLUMNS: List[Tuple[str, str]] = [
    ("country", "Country"),
    ("continent", "Continent"),
    ("cases", "Cases"),
    ("todayCases", "Today Cases"),
    ("deaths", "Deaths"),
    ("recovered", "Recovered"),
    ("active", "Active"),
    ("casesPerOneMillion", "Cases Per Million"),
]


def _string_key(values: pd.Series) -> pd.Series:
    return values.astype("string").str.casefold()


def sort_by(records: pd.DataFrame, field: str, ascending: bool = True) -> pd.DataFrame:
    """Stable sort of region records on one column.

    String columns compare case-folded (not locale-aware), everything else
    numerically. Missing values go last whichever way the sort runs.
    """
    if field not in records.columns:
        raise KeyError(f"Unknown sort field: {field}")
    if field in STRING_FIELDS:
        return records.sort_values(field, ascending=ascending, kind="mergesort", na_position="last", key=_string_key)
    return records.sort_values(
        field,
        ascending=ascending,
        kind="mergesort",
        na_position="last",
        key=lambda s: pd.to_numeric(s, errors="coerce"),
    )


@dataclass
class SortState:
    """Remembers the last direction used for each table column.

    Toggling a column flips only that column's flag, so returning to a column
    resumes from its own last direction. The first toggle sorts ascending.
    """

    directions: Dict[str, bool] = field(default_factory=dict)
    last_field: str | None = None

    def toggle(self, field_name: str) -> bool:
        ascending = not self.directions.get(field_name, False)
        self.directions[field_name] = ascending
        self.last_field = field_name
        return ascending

    def direction(self, field_name: str) -> bool | None:
        return self.directions.get(field_name)
