from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from dashboard_core.sorting import sort_by

logger = logging.getLogger(__name__)

API_BASE = os.environ.get("COVID_API_BASE", "https://disease.sh/v3/covid-19").rstrip("/")
HISTORICAL_LASTDAYS = 365
ENDPOINTS = {
    "global": f"{API_BASE}/all",
    "countries": f"{API_BASE}/countries",
    "historical": f"{API_BASE}/historical/all?lastdays={HISTORICAL_LASTDAYS}",
}

HISTORICAL_DATE_FORMAT = "%m/%d/%y"

STRING_COLUMNS = ["country", "continent"]
COUNT_COLUMNS = [
    "population",
    "cases",
    "deaths",
    "recovered",
    "active",
    "todayCases",
    "todayDeaths",
    "todayRecovered",
]
RATE_COLUMNS = ["casesPerOneMillion", "deathsPerOneMillion"]
REGION_COLUMNS = STRING_COLUMNS + COUNT_COLUMNS + RATE_COLUMNS

GLOBAL_FIELDS = ["cases", "deaths", "recovered", "active", "todayCases", "todayDeaths", "todayRecovered"]
HISTORICAL_COLUMNS = ["date", "cases", "deaths", "recovered"]


def _to_numeric_strict(series: pd.Series) -> pd.Series:
    """Coerce to numbers; only null or absent values may become NA."""
    values = pd.to_numeric(series, errors="coerce")
    bad = values.isna() & series.notna()
    if bad.any():
        raise ValueError(f"Non-numeric '{series.name}' value: {series[bad].iloc[0]!r}")
    return values


def numericize(df: pd.DataFrame, cols: Iterable[str], dtype: str) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = pd.NA
        values = _to_numeric_strict(df[col])
        if dtype == "Int64":
            # Counts arrive as JSON numbers; anything fractional is rounded.
            values = values.round()
        df[col] = values.astype(dtype)
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = pd.NA
        series = df[col].astype("string").str.strip()
        series = series.replace({"": pd.NA, "nan": pd.NA, "None": pd.NA})
        df[col] = series
    return df


def normalize_regions(payload: Any) -> pd.DataFrame:
    """Convert the `/countries` array into a region frame with fixed columns."""
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of region records, got {type(payload).__name__}")
    rows = []
    for item in payload:
        if not isinstance(item, dict):
            raise ValueError(f"Region record is not an object: {item!r}")
        rows.append({col: item.get(col) for col in REGION_COLUMNS})
    df = pd.DataFrame(rows, columns=REGION_COLUMNS)
    df = coerce_str_safe(df, STRING_COLUMNS)
    if df["country"].isna().any():
        raise ValueError("Region record without a country name")
    df = numericize(df, COUNT_COLUMNS, "Int64")
    df = numericize(df, RATE_COLUMNS, "Float64")
    return df.reset_index(drop=True)


def _series_map(payload: Dict[str, Any], key: str) -> Dict[str, Any]:
    values = payload.get(key)
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ValueError(f"Historical '{key}' is not a date map")
    return values


def normalize_historical(payload: Any) -> pd.DataFrame:
    """Convert the `/historical/all` object into a date-ordered frame.

    Dates follow the `cases` map in source order. Missing `deaths` or
    `recovered` entries (or a missing `recovered` map) default to 0.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a historical object, got {type(payload).__name__}")
    cases = _series_map(payload, "cases")
    deaths = _series_map(payload, "deaths")
    recovered = _series_map(payload, "recovered")

    rows = [
        {
            "date": key,
            "cases": value,
            "deaths": deaths.get(key, 0),
            "recovered": recovered.get(key, 0),
        }
        for key, value in cases.items()
    ]
    df = pd.DataFrame(rows, columns=HISTORICAL_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], format=HISTORICAL_DATE_FORMAT, errors="raise")
    for col in ["cases", "deaths", "recovered"]:
        df[col] = _to_numeric_strict(df[col]).fillna(0).astype("int64")
    return df


def normalize_global(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a global stats object, got {type(payload).__name__}")
    out: Dict[str, Any] = {}
    for key in GLOBAL_FIELDS:
        value = payload.get(key)
        out[key] = int(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
    out["updated"] = payload.get("updated")
    return out


class DataStore:
    """Owns the loaded region records, historical series and global stats.

    `load` normalizes every input before swapping any of them in, so readers
    never see historical data paired with a stale or missing region frame.
    """

    def __init__(self) -> None:
        self._regions: Optional[pd.DataFrame] = None
        self._historical: Optional[pd.DataFrame] = None
        self._global: Dict[str, Any] = {}
        self.loaded_at: Optional[datetime] = None

    @property
    def is_loaded(self) -> bool:
        return self._regions is not None

    def load(self, regions: Any, historical: Any, global_stats: Any = None) -> None:
        region_df = regions.copy() if isinstance(regions, pd.DataFrame) else normalize_regions(regions)
        if historical is None:
            historical_df = None
        elif isinstance(historical, pd.DataFrame):
            historical_df = historical.copy()
        else:
            historical_df = normalize_historical(historical)
        global_out = normalize_global(global_stats) if global_stats is not None else {}

        self._regions = region_df.reset_index(drop=True)
        self._historical = historical_df
        self._global = global_out
        self.loaded_at = datetime.now()
        logger.info(
            "Loaded %d regions and %d historical points",
            len(self._regions),
            0 if historical_df is None else len(historical_df),
        )

    def clear(self) -> None:
        self._regions = None
        self._historical = None
        self._global = {}
        self.loaded_at = None

    def regions(self) -> pd.DataFrame:
        if self._regions is None:
            return pd.DataFrame(columns=REGION_COLUMNS)
        return self._regions.copy()

    def historical(self) -> Optional[pd.DataFrame]:
        if self._historical is None:
            return None
        return self._historical.copy()

    def global_stats(self) -> Dict[str, Any]:
        return dict(self._global)

    def continents(self) -> List[str]:
        if self._regions is None:
            return []
        return [str(c) for c in self._regions["continent"].dropna().unique().tolist()]

    def sort_regions(self, field: str, ascending: bool) -> None:
        if self._regions is None:
            return
        self._regions = sort_by(self._regions, field, ascending).reset_index(drop=True)
