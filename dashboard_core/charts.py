from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

WORLD_ATLAS_URL = "https://cdn.jsdelivr.net/npm/world-atlas@2/countries-110m.json"
NO_DATA_COLOR = "#2f2f2f"
ACCENT_COLOR = "#E50914"
CONTINENT_COLORS = ["#E50914", "#ff6b6b", "#ff9999", "#ffcccc", "#ffeaea", "#fff5f5"]

MAP_HEIGHT = 500
BAR_HEIGHT = 500
TIMELINE_HEIGHT = 400
SCATTER_HEIGHT = 400
PIE_SIZE = 400

TIMELINE_MARKER_EVERY = 30
DEFAULT_POPULATION = 1_000_000


class RenderFailure(Exception):
    """A view's required input is missing or unusable."""


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _chart_frame(records: pd.DataFrame, numeric: Iterable[str], text: Iterable[str] = ()) -> pd.DataFrame:
    out = pd.DataFrame(index=records.index)
    for col in text:
        series = records[col].astype(object) if col in records.columns else pd.Series(None, index=records.index)
        out[col] = series.where(series.notna(), None)
    for col in numeric:
        if col in records.columns:
            out[col] = pd.to_numeric(records[col], errors="coerce").astype("float64")
        else:
            out[col] = float("nan")
    return out.reset_index(drop=True)


def world_map_chart(records: pd.DataFrame, metric_col: str, label: str) -> alt.Chart:
    """Choropleth of `metric_col` joined to world-atlas shapes by country name.

    Shapes with no matching region, or a zero/missing value, get the no-data
    colour. An empty `records` frame still draws the whole map in that colour.
    """
    data = _chart_frame(records, ["cases", "deaths", "recovered", "active"], ["country"])
    data["value"] = _chart_frame(records, [metric_col])[metric_col]
    positive = data["value"][data["value"] > 0]
    max_value = float(positive.max()) if not positive.empty else 1.0

    return (
        alt.Chart(alt.topo_feature(WORLD_ATLAS_URL, "countries"))
        .mark_geoshape(stroke="#141414", strokeWidth=0.5)
        .transform_lookup(
            lookup="properties.name",
            from_=alt.LookupData(data=data, key="country", fields=["country", "value", "cases", "deaths", "recovered", "active"]),
        )
        .encode(
            color=alt.condition(
                "isValid(datum.value) && datum.value > 0",
                alt.Color("value:Q", title=label, scale=alt.Scale(scheme="reds", domain=[0, max_value])),
                alt.value(NO_DATA_COLOR),
            ),
            tooltip=[
                alt.Tooltip("properties.name:N", title="Country"),
                alt.Tooltip("cases:Q", title="Cases", format=","),
                alt.Tooltip("deaths:Q", title="Deaths", format=","),
                alt.Tooltip("recovered:Q", title="Recovered", format=","),
                alt.Tooltip("active:Q", title="Active", format=","),
            ],
        )
        .project(type="mercator")
        .properties(height=MAP_HEIGHT)
    )


def top_countries_chart(top: pd.DataFrame, metric_col: str, label: str) -> alt.Chart:
    if top.empty:
        raise RenderFailure(f"No regions with {label.lower()} above zero")

    data = _chart_frame(top, [metric_col], ["country"]).rename(columns={metric_col: "value"})
    data["rank"] = range(1, len(data) + 1)
    hover = alt.selection_point(fields=["country"], on="mouseover", empty="all")
    return (
        alt.Chart(data)
        .mark_bar()
        .encode(
            x=alt.X("country:N", title=None, sort=None, axis=alt.Axis(labelAngle=-45, grid=False)),
            y=alt.Y("value:Q", title=label, axis=alt.Axis(format="~s", gridDash=[4, 4], tickCount=5)),
            color=alt.Color("rank:O", scale=alt.Scale(scheme="reds", reverse=True), legend=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.7)),
            tooltip=[alt.Tooltip("country:N", title="Country"), alt.Tooltip("value:Q", title=label, format=",")],
        )
        .add_params(hover)
        .properties(height=BAR_HEIGHT)
    )


def timeline_chart(historical: Optional[pd.DataFrame]) -> alt.LayerChart:
    if historical is None or historical.empty or "cases" not in historical.columns:
        raise RenderFailure("No historical data available")

    data = historical[["date", "cases", "deaths", "recovered"]].reset_index(drop=True)
    markers = data.iloc[::TIMELINE_MARKER_EVERY]

    line = (
        alt.Chart(data)
        .mark_line(color=ACCENT_COLOR, interpolate="monotone")
        .encode(
            x=alt.X("date:T", title=None, axis=alt.Axis(format="%b %Y", tickCount=6, grid=False)),
            y=alt.Y("cases:Q", title="Total Cases", axis=alt.Axis(format="~s", gridDash=[4, 4], tickCount=5)),
        )
    )
    points = (
        alt.Chart(markers)
        .mark_circle(color=ACCENT_COLOR, size=60, opacity=1)
        .encode(
            x="date:T",
            y="cases:Q",
            tooltip=[
                alt.Tooltip("date:T", title="Date", format="%x"),
                alt.Tooltip("cases:Q", title="Cases", format=","),
                alt.Tooltip("deaths:Q", title="Deaths", format=","),
                alt.Tooltip("recovered:Q", title="Recovered", format=","),
            ],
        )
    )
    return alt.layer(line, points).properties(height=TIMELINE_HEIGHT)


def scatter_chart(pairs: pd.DataFrame) -> alt.Chart:
    """Cases vs deaths on log axes; only regions with both above zero."""
    if pairs.empty:
        raise RenderFailure("No regions with both cases and deaths")

    data = _chart_frame(pairs, ["cases", "deaths", "population"], ["country"])
    data["size_population"] = data["population"].where(data["population"] > 0, DEFAULT_POPULATION)
    data["death_rate"] = (data["deaths"] / data["cases"] * 100).round(2)
    return (
        alt.Chart(data)
        .mark_circle(color=ACCENT_COLOR, opacity=0.6, stroke="#ffffff", strokeWidth=0)
        .encode(
            x=alt.X("cases:Q", title="Total Cases (log scale)", scale=alt.Scale(type="log"), axis=alt.Axis(format="~s")),
            y=alt.Y("deaths:Q", title="Total Deaths (log scale)", scale=alt.Scale(type="log"), axis=alt.Axis(format="~s")),
            size=alt.Size("size_population:Q", scale=alt.Scale(type="sqrt", range=[4, 900]), legend=None),
            tooltip=[
                alt.Tooltip("country:N", title="Country"),
                alt.Tooltip("cases:Q", title="Cases", format=","),
                alt.Tooltip("deaths:Q", title="Deaths", format=","),
                alt.Tooltip("population:Q", title="Population", format=","),
                alt.Tooltip("death_rate:Q", title="Death Rate (%)", format=".2f"),
            ],
        )
        .properties(height=SCATTER_HEIGHT)
    )


def continent_chart(totals: Dict[str, float], label: str) -> alt.LayerChart:
    data = pd.DataFrame({"continent": list(totals.keys()), "value": [float(v) for v in totals.values()]})
    total = float(data["value"].sum()) if not data.empty else 0.0
    if total <= 0:
        raise RenderFailure(f"No {label.lower()} recorded for any continent")

    data = data.sort_values("value", ascending=False, kind="mergesort").reset_index(drop=True)
    data["order"] = range(len(data))
    data["percentage"] = (data["value"] / total * 100).round(1)

    radius = PIE_SIZE / 2 - 40
    base = alt.Chart(data).encode(
        theta=alt.Theta("value:Q", stack=True),
        order=alt.Order("order:O"),
        color=alt.Color("continent:N", sort=data["continent"].tolist(), scale=alt.Scale(range=CONTINENT_COLORS), legend=None),
    )
    slices = base.mark_arc(innerRadius=radius * 0.4, outerRadius=radius, stroke="#141414", strokeWidth=2).encode(
        tooltip=[
            alt.Tooltip("continent:N", title="Continent"),
            alt.Tooltip("value:Q", title=label, format=","),
            alt.Tooltip("percentage:Q", title="Percentage (%)", format=".1f"),
        ]
    )
    labels = base.mark_text(radius=radius * 0.7, fontSize=12, fontWeight="bold").encode(
        text="continent:N", color=alt.value("#ffffff")
    )
    centre_title = alt.Chart(pd.DataFrame({"text": ["Total"]})).mark_text(
        dy=-8, fontSize=14, fontWeight="bold", color="#ffffff"
    ).encode(text="text:N")
    centre_total = alt.Chart(pd.DataFrame({"text": [f"{total:,.0f}"]})).mark_text(
        dy=14, fontSize=20, fontWeight="bold", color=ACCENT_COLOR
    ).encode(text="text:N")
    return alt.layer(slices, labels, centre_title, centre_total).properties(width=PIE_SIZE, height=PIE_SIZE)
