from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

from dashboard_core.data import DataStore
from dashboard_core.filters import ALL_CONTINENTS, FilterState

TOP_N = 20


def _metric_values(records: pd.DataFrame, column: str) -> pd.Series:
    if column not in records.columns:
        return pd.Series(pd.NA, index=records.index, dtype="Float64")
    return pd.to_numeric(records[column], errors="coerce")


def _as_number(value: Any) -> float | int:
    if value is None or pd.isna(value):
        return 0
    out = float(value)
    return int(out) if out.is_integer() else out


def filter_by_continent(records: pd.DataFrame, continent: str) -> pd.DataFrame:
    if continent == ALL_CONTINENTS:
        return records
    return records[records["continent"].eq(continent).fillna(False).astype(bool)]


def filter_by_search(records: pd.DataFrame, term: Optional[str]) -> pd.DataFrame:
    q = (term or "").strip()
    if not q:
        return records
    mask = records["country"].astype("string").str.contains(q, case=False, regex=False, na=False) | records[
        "continent"
    ].astype("string").str.contains(q, case=False, regex=False, na=False)
    return records[mask.astype(bool)]


def top_n(records: pd.DataFrame, metric: str, n: int = TOP_N) -> pd.DataFrame:
    """Regions with a positive value for `metric`, largest first.

    Zero and missing values are left out entirely. Ties keep input order.
    """
    if metric not in records.columns:
        return records.iloc[0:0]
    values = _metric_values(records, metric)
    ranked = records[(values > 0).fillna(False).astype(bool)]
    ranked = ranked.sort_values(
        metric,
        ascending=False,
        kind="mergesort",
        key=lambda s: pd.to_numeric(s, errors="coerce"),
    )
    return ranked.head(n)


def group_sum(records: pd.DataFrame, metric: str, group_field: str = "continent") -> Dict[str, float | int]:
    keyed = records[records[group_field].notna()]
    values = _metric_values(keyed, metric).fillna(0)
    totals = values.groupby(keyed[group_field].astype(str), sort=False).sum()
    return {str(key): _as_number(value) for key, value in totals.items()}


def scatter_pairs(records: pd.DataFrame) -> pd.DataFrame:
    cases = _metric_values(records, "cases")
    deaths = _metric_values(records, "deaths")
    return records[((cases > 0) & (deaths > 0)).fillna(False).astype(bool)]


@dataclass(frozen=True)
class Projection:
    filters: FilterState
    chart_records: pd.DataFrame
    table_records: pd.DataFrame
    top: pd.DataFrame
    scatter: pd.DataFrame
    continent_totals: Dict[str, float | int]
    historical: Optional[pd.DataFrame]


def build_projection(store: DataStore, state: FilterState, *, top: int = TOP_N) -> Projection:
    """Derive every view's input from one snapshot of the filter state."""
    snapshot = FilterState(metric=state.metric, continent=state.continent, search_term=state.search_term)
    regions = store.regions()
    metric_col = snapshot.metric_column

    chart_records = filter_by_continent(regions, snapshot.continent)
    table_records = filter_by_search(chart_records, snapshot.search_term)
    return Projection(
        filters=snapshot,
        chart_records=chart_records,
        table_records=table_records,
        top=top_n(chart_records, metric_col, top),
        scatter=scatter_pairs(chart_records),
        continent_totals=group_sum(chart_records, metric_col, "continent"),
        historical=store.historical(),
    )
