import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from dashboard_core.data import DataStore
from dashboard_core.export import export_filename, to_delimited_text
from dashboard_core.fetch import FetchFailure, initialize_store
from dashboard_core.filters import ALL_CONTINENTS, METRIC_LABELS, FilterState
from dashboard_core.sorting import TABLE_COLUMNS, SortState
from dashboard_core.views import render_dashboard

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@dataclass
class DashboardSession:
    """Everything one browser session mutates: the snapshot, filters and sort memory."""

    store: DataStore = field(default_factory=DataStore)
    filters: FilterState = field(default_factory=FilterState)
    sort: SortState = field(default_factory=SortState)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #2f2f2f;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #808080;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #E50914;}
        .card {border: 1px solid #2f2f2f;border-radius: 12px;padding: 16px;background: #141414;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #ffffff;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #1f1f1f;border: 1px solid #2f2f2f;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #e5e5e5;}
        .kpi-delta {color: #ff6b6b;font-size: 0.85rem;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_number(value: Any) -> str:
    if value is None or pd.isna(value) or not value:
        return "0"
    return f"{value:,.0f}" if isinstance(value, float) else f"{int(value):,}"


def format_filter_summary(filters: FilterState) -> str:
    continent_chip = "Continent: All" if filters.continent == ALL_CONTINENTS else f"Continent: {filters.continent}"
    search_chip = f"Search: {filters.search_term}" if filters.search_term else "Search: none"
    chips = [f"Metric: {filters.metric_label}", continent_chip, search_chip]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_vega(spec: Dict[str, Any]):
    if "placeholder" in spec:
        st.info(spec["placeholder"])
        return
    st.vega_lite_chart(spec, use_container_width=True)


def get_session() -> Optional[DashboardSession]:
    session: Optional[DashboardSession] = st.session_state.get("dashboard")
    if session is not None and session.store.is_loaded:
        return session
    session = DashboardSession()
    with st.spinner("Loading COVID-19 data..."):
        try:
            initialize_store(session.store)
        except FetchFailure as exc:
            logging.getLogger(__name__).error("Dashboard initialization failed: %s", exc)
            st.error("Failed to load COVID-19 data. Please refresh the page.")
            st.caption(str(exc))
            return None
    st.session_state["dashboard"] = session
    return session


# ---------- Sections ----------
def render_global_stats(payload: Dict[str, Any]):
    stats = payload.get("global", {})
    tiles = [
        ("Total Cases", "cases", "todayCases"),
        ("Total Deaths", "deaths", "todayDeaths"),
        ("Recovered", "recovered", "todayRecovered"),
        ("Active Cases", "active", None),
    ]
    cols = st.columns(len(tiles))
    for col, (label, key, today_key) in zip(cols, tiles):
        with col:
            st.metric(label, format_number(stats.get(key)))
            if today_key:
                st.markdown(f"<span class='kpi-delta'>+{format_number(stats.get(today_key))} today</span>", unsafe_allow_html=True)


def render_sidebar(session: DashboardSession) -> bool:
    """Draw the filter controls. Returns True when the user asked to reset."""
    filters = session.filters
    with st.sidebar:
        st.markdown("### Filters")
        metric_keys = list(METRIC_LABELS.keys())
        metric = st.selectbox(
            "Metric",
            options=metric_keys,
            index=metric_keys.index(filters.metric) if filters.metric in metric_keys else 0,
            format_func=lambda k: METRIC_LABELS[k],
        )
        filters.set_metric(metric)

        continent_options = [ALL_CONTINENTS] + session.store.continents()
        continent = st.selectbox(
            "Continent",
            options=continent_options,
            index=continent_options.index(filters.continent) if filters.continent in continent_options else 0,
            format_func=lambda c: "All Continents" if c == ALL_CONTINENTS else c,
        )
        filters.set_continent(continent)

        st.markdown("---")
        return st.button("Reset filters")


def render_table(session: DashboardSession, rows: List[Dict[str, Any]]):
    sort_cols = st.columns(len(TABLE_COLUMNS))
    for col, (name, label) in zip(sort_cols, TABLE_COLUMNS):
        direction = session.sort.direction(name)
        arrow = "" if direction is None else (" ▲" if direction else " ▼")
        if col.button(f"{label}{arrow}", key=f"sort_{name}"):
            ascending = session.sort.toggle(name)
            session.store.sort_regions(name, ascending)
            st.rerun()

    table = pd.DataFrame(rows, columns=[name for name, _ in TABLE_COLUMNS])
    table["continent"] = table["continent"].fillna("N/A")
    table = table.rename(columns=dict(TABLE_COLUMNS))
    st.dataframe(table, hide_index=True, use_container_width=True)


def render_dashboard_page(session: DashboardSession):
    inject_base_styles()
    if render_sidebar(session):
        session.filters.reset()
        st.session_state.pop("table_search", None)
        st.rerun()

    search = st.session_state.get("table_search", session.filters.search_term)
    session.filters.set_search(search)
    payload = render_dashboard(session.store, session.filters)

    top = st.container()
    c1, c2 = top.columns([8, 2])
    with c1:
        st.markdown(
            "<div class='app-top-bar'><div class='breadcrumb'>Home / Global</div>"
            "<div class='page-title'>COVID-19 Global Dashboard</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if session.store.loaded_at is not None:
            st.caption(f"Last updated: {session.store.loaded_at:%b %d, %Y %I:%M %p}")
    st.markdown(f"<div class='chip-row'>{format_filter_summary(session.filters)}</div>", unsafe_allow_html=True)

    render_global_stats(payload)
    charts = payload["charts"]

    with card(f"World Map: {payload['metric_label']}"):
        render_vega(charts["world_map"])
        legend = payload.get("map_legend") or []
        if legend:
            st.caption("Scale: " + " · ".join(format_number(v) for v in legend))

    with card(f"Top 20 Countries: {payload['metric_label']}"):
        render_vega(charts["top_countries"])

    with card("Global Timeline (last 365 days)"):
        render_vega(charts["timeline"])

    cols = st.columns(2)
    with cols[0]:
        with card("Cases vs Deaths"):
            render_vega(charts["scatter"])
    with cols[1]:
        with card(f"By Continent: {payload['metric_label']}"):
            render_vega(charts["continents"])

    with card("Country Data"):
        c1, c2 = st.columns([6, 2])
        with c1:
            st.text_input("Search country or continent", key="table_search")
        with c2:
            st.download_button(
                "Export CSV",
                data=to_delimited_text(session.store.regions()).encode("utf-8"),
                file_name=export_filename(),
                mime="text/csv",
            )
        render_table(session, payload["table"])


# ---------- UI setup ----------
st.set_page_config(page_title="COVID-19 Global Dashboard", layout="wide")
inject_base_styles()

dashboard_session = get_session()
if dashboard_session is None:
    st.stop()
render_dashboard_page(dashboard_session)
