"""
Startup fetch of the three disease.sh documents.

The three requests run concurrently on a small thread pool and are joined:
the result is either all three documents, validated, or a single
`FetchFailure` naming every source that failed. Nothing is retried.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import pandas as pd
import requests

from dashboard_core.data import ENDPOINTS, DataStore, normalize_global, normalize_historical, normalize_regions

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 20


class FetchFailure(Exception):
    """One or more startup requests failed or returned malformed data."""

    def __init__(self, failures: Mapping[str, str]):
        self.failures = dict(failures)
        detail = "; ".join(f"{name}: {reason}" for name, reason in self.failures.items())
        super().__init__(f"Failed to load COVID-19 data ({detail})")


@dataclass(frozen=True)
class DashboardSources:
    global_stats: Dict[str, Any]
    regions: pd.DataFrame
    historical: pd.DataFrame


_NORMALIZERS = {
    "global": normalize_global,
    "countries": normalize_regions,
    "historical": normalize_historical,
}


def _get_json(session: Any, url: str, timeout: float) -> Any:
    response = session.get(url, timeout=timeout)
    response.raise_for_status()
    return response.json()


def fetch_dashboard_sources(
    session: Optional[Any] = None,
    *,
    endpoints: Mapping[str, str] = ENDPOINTS,
    timeout: float = REQUEST_TIMEOUT,
) -> DashboardSources:
    missing = [name for name in _NORMALIZERS if name not in endpoints]
    if missing:
        raise FetchFailure({name: "no endpoint configured" for name in missing})

    session = session or requests.Session()
    with ThreadPoolExecutor(max_workers=len(_NORMALIZERS)) as pool:
        futures = {name: pool.submit(_get_json, session, endpoints[name], timeout) for name in _NORMALIZERS}

    failures: Dict[str, str] = {}
    parsed: Dict[str, Any] = {}
    for name, future in futures.items():
        try:
            parsed[name] = _NORMALIZERS[name](future.result())
        except (requests.RequestException, ValueError) as exc:
            logger.error("Fetching %s from %s failed: %s", name, endpoints[name], exc)
            failures[name] = str(exc) or type(exc).__name__

    if failures:
        raise FetchFailure(failures)

    logger.info("Fetched %d regions and %d historical points", len(parsed["countries"]), len(parsed["historical"]))
    return DashboardSources(global_stats=parsed["global"], regions=parsed["countries"], historical=parsed["historical"])


def initialize_store(store: DataStore, session: Optional[Any] = None, **kwargs: Any) -> DashboardSources:
    """Fetch everything, then load the store. On failure the store is left untouched."""
    sources = fetch_dashboard_sources(session, **kwargs)
    store.load(sources.regions, sources.historical, sources.global_stats)
    return sources