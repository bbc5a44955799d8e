from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from dashboard_core.charts import (
    RenderFailure,
    continent_chart,
    scatter_chart,
    timeline_chart,
    to_vega_spec,
    top_countries_chart,
    world_map_chart,
)
from dashboard_core.data import DataStore
from dashboard_core.filters import FilterState
from dashboard_core.projection import TOP_N, Projection, build_projection
from dashboard_core.sorting import TABLE_COLUMNS

logger = logging.getLogger(__name__)

LEGEND_STEPS = 5


def _safe_render(name: str, build: Callable[[], Any]) -> Dict[str, Any]:
    try:
        return to_vega_spec(build())
    except RenderFailure as exc:
        logger.warning("%s view rendered as placeholder: %s", name, exc)
        return {"placeholder": str(exc)}


def _records(df: pd.DataFrame, columns: List[str]) -> List[Dict[str, Any]]:
    out = df.reindex(columns=columns).astype(object)
    out = out.where(out.notna(), None)
    return out.to_dict(orient="records")


def map_legend(records: pd.DataFrame, metric_col: str, steps: int = LEGEND_STEPS) -> List[float]:
    """Evenly spaced legend values from 0 up to (not including) the max positive value."""
    if metric_col not in records.columns:
        return []
    values = pd.to_numeric(records[metric_col], errors="coerce")
    values = values[values > 0]
    if values.empty:
        return []
    step = float(values.max()) / steps
    return [round(step * i) for i in range(steps)]


def table_rows(records: pd.DataFrame) -> List[Dict[str, Any]]:
    return _records(records, [name for name, _ in TABLE_COLUMNS])


def render_charts(projection: Projection) -> Dict[str, Dict[str, Any]]:
    metric_col = projection.filters.metric_column
    label = projection.filters.metric_label
    return {
        "world_map": _safe_render("world_map", lambda: world_map_chart(projection.chart_records, metric_col, label)),
        "top_countries": _safe_render("top_countries", lambda: top_countries_chart(projection.top, metric_col, label)),
        "timeline": _safe_render("timeline", lambda: timeline_chart(projection.historical)),
        "scatter": _safe_render("scatter", lambda: scatter_chart(projection.scatter)),
        "continents": _safe_render("continents", lambda: continent_chart(projection.continent_totals, label)),
    }


def render_dashboard(store: DataStore, state: FilterState, *, top: int = TOP_N) -> Dict[str, Any]:
    """Build every chart and the table from one projection of `state`."""
    projection = build_projection(store, state, top=top)
    metric_col = projection.filters.metric_column
    loaded_at: Optional[str] = store.loaded_at.isoformat() if store.loaded_at else None
    return {
        "filters": asdict(projection.filters),
        "metric_label": projection.filters.metric_label,
        "global": store.global_stats(),
        "last_updated": loaded_at,
        "charts": render_charts(projection),
        "map_legend": map_legend(projection.chart_records, metric_col),
        "continent_totals": projection.continent_totals,
        "top": _records(projection.top, ["country", "continent", metric_col]),
        "table": table_rows(projection.table_records),
    }
