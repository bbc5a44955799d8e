from __future__ import annotations

import logging
from dataclasses import asdict
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from dashboard_api.schemas import DashboardFiltersModel
from dashboard_core.data import DataStore
from dashboard_core.export import export_filename, to_delimited_text
from dashboard_core.fetch import FetchFailure, initialize_store
from dashboard_core.filters import METRIC_LABELS, FilterState, normalize_filters
from dashboard_core.projection import filter_by_continent, filter_by_search
from dashboard_core.sorting import sort_by
from dashboard_core.views import render_dashboard, table_rows


app = FastAPI(title="COVID-19 Dashboard API", version="0.1.0")
app.state.store = DataStore()
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _loaded_store(request: Request) -> DataStore:
    store: DataStore = request.app.state.store
    if not store.is_loaded:
        initialize_store(store)
    return store


def _filters_from_model(model: DashboardFiltersModel, *, store: DataStore) -> FilterState:
    return normalize_filters(model.model_dump(), available_continents=store.continents())


@app.get("/meta/metrics")
def meta_metrics():
    return _json({"metrics": [{"key": key, "label": label} for key, label in METRIC_LABELS.items()]})


@app.get("/meta/continents")
def meta_continents(request: Request):
    try:
        store = _loaded_store(request)
        return _json({"values": store.continents()})
    except FetchFailure as exc:
        logger.error("meta_continents failed: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("meta_continents failed")
        return _error(exc)


@app.get("/global")
def global_stats(request: Request):
    try:
        store = _loaded_store(request)
        loaded_at = store.loaded_at.isoformat() if store.loaded_at else None
        return _json({"stats": store.global_stats(), "last_updated": loaded_at})
    except FetchFailure as exc:
        logger.error("global_stats failed: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("global_stats failed")
        return _error(exc)


@app.post("/dashboard")
def dashboard(request: Request, filters: DashboardFiltersModel):
    try:
        store = _loaded_store(request)
        f = _filters_from_model(filters, store=store)
        return _json(render_dashboard(store, f))
    except FetchFailure as exc:
        logger.error("dashboard failed: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@app.post("/table")
def table(
    request: Request,
    filters: DashboardFiltersModel,
    sort_field: Optional[str] = Query(default=None),
    ascending: bool = Query(default=True),
):
    try:
        store = _loaded_store(request)
        f = _filters_from_model(filters, store=store)
        rows = filter_by_search(filter_by_continent(store.regions(), f.continent), f.search_term)
        if sort_field:
            rows = sort_by(rows, sort_field, ascending)
        return _json({"filters": asdict(f), "sort_field": sort_field, "ascending": ascending, "rows": table_rows(rows)})
    except KeyError as exc:
        return _error(exc, 400)
    except FetchFailure as exc:
        logger.error("table failed: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("table failed")
        return _error(exc)


@app.get("/export")
def export(request: Request):
    try:
        store = _loaded_store(request)
        csv_bytes = to_delimited_text(store.regions()).encode("utf-8")
    except FetchFailure as exc:
        logger.error("export failed: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
    )


@app.post("/refresh")
def refresh(request: Request):
    store: DataStore = request.app.state.store
    try:
        sources = initialize_store(store)
    except FetchFailure as exc:
        logger.error("refresh failed: %s", exc)
        return _error(exc, 503)
    return _json(
        {
            "regions": len(sources.regions),
            "historical_points": len(sources.historical),
            "loaded_at": store.loaded_at.isoformat() if store.loaded_at else None,
        }
    )
