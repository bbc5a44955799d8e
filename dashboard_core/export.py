from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd

from dashboard_core.sorting import TABLE_COLUMNS

EXPORT_COLUMNS: List[Tuple[str, str]] = list(TABLE_COLUMNS)


def _field_text(value: Any) -> str:
    if value is None or value is pd.NA:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def to_delimited_text(
    records: pd.DataFrame,
    columns: Sequence[Tuple[str, str]] = EXPORT_COLUMNS,
    delimiter: str = ",",
) -> str:
    """Header line of column labels, then one line per record.

    Values are written as-is: a value containing the delimiter or a newline
    will break the row structure. Region names and numbers from the source
    do not contain either.
    """
    lines = [delimiter.join(label for _, label in columns)]
    fields = [name for name, _ in columns]
    for row in records.reindex(columns=fields).itertuples(index=False, name=None):
        lines.append(delimiter.join(_field_text(v) for v in row))
    return "\n".join(lines) + "\n"


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"covid19_data_{today.isoformat()}.csv"
