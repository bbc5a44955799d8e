from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

ALL_CONTINENTS = "all"
DEFAULT_METRIC = "cases"

METRIC_LABELS: Dict[str, str] = {
    "cases": "Total Cases",
    "deaths": "Total Deaths",
    "recovered": "Total Recovered",
    "active": "Active Cases",
    "casesPerMillion": "Cases per Million",
    "deathsPerMillion": "Deaths per Million",
}

# Metric keys that are spelled differently on the region records.
METRIC_COLUMNS: Dict[str, str] = {
    "casesPerMillion": "casesPerOneMillion",
    "deathsPerMillion": "deathsPerOneMillion",
}


def metric_column(metric: str) -> str:
    return METRIC_COLUMNS.get(metric, metric)


def metric_label(metric: str) -> str:
    return METRIC_LABELS.get(metric, metric)


@dataclass
class FilterState:
    """Current metric, continent and table search term.

    Setters never validate: an unknown metric or continent is stored as given
    and simply matches nothing downstream.
    """

    metric: str = DEFAULT_METRIC
    continent: str = ALL_CONTINENTS
    search_term: str = ""

    def set_metric(self, metric: str) -> None:
        self.metric = metric

    def set_continent(self, continent: str) -> None:
        self.continent = continent

    def set_search(self, term: str) -> None:
        self.search_term = term

    def reset(self) -> None:
        self.metric = DEFAULT_METRIC
        self.continent = ALL_CONTINENTS
        self.search_term = ""

    @property
    def metric_column(self) -> str:
        return metric_column(self.metric)

    @property
    def metric_label(self) -> str:
        return metric_label(self.metric)


def _canonical_continent(value: str, available: Iterable[str]) -> str:
    folded = value.casefold()
    for known in available:
        if known.strip().casefold() == folded:
            return known
    logger.warning("Unknown continent %r; it will match no regions", value)
    return value


def normalize_filters(raw: dict, *, available_continents: Optional[Iterable[str]] = None) -> FilterState:
    metric = str(raw.get("metric") or DEFAULT_METRIC).strip()

    continent = str(raw.get("continent") or "").strip()
    if not continent or continent.casefold() == ALL_CONTINENTS:
        continent = ALL_CONTINENTS
    elif available_continents is not None:
        continent = _canonical_continent(continent, list(available_continents))

    search_term = (raw.get("search_term") or "").strip()
    return FilterState(metric=metric, continent=continent, search_term=search_term)
