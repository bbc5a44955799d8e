"""Shared fixtures: a small disease.sh-shaped dataset and a fake HTTP session."""

import copy
import threading

import pytest
import requests

from dashboard_core.data import ENDPOINTS, DataStore, normalize_regions

REGION_PAYLOAD = [
    {
        "country": "USA",
        "continent": "North America",
        "population": 331000000,
        "cases": 1000,
        "deaths": 50,
        "recovered": 900,
        "active": 50,
        "todayCases": 10,
        "todayDeaths": 1,
        "todayRecovered": 5,
        "casesPerOneMillion": 3.02,
        "deathsPerOneMillion": 0.15,
    },
    {
        "country": "Brazil",
        "continent": "South America",
        "population": 212000000,
        "cases": 800,
        "deaths": 40,
        "recovered": 700,
        "active": 60,
        "todayCases": 8,
        "todayDeaths": 0,
        "todayRecovered": 4,
        "casesPerOneMillion": 3.77,
        "deathsPerOneMillion": 0.19,
    },
    {
        "country": "France",
        "continent": "Europe",
        "population": 65000000,
        "cases": 600,
        "deaths": 30,
        "recovered": 500,
        "active": 70,
        "todayCases": 6,
        "todayDeaths": 1,
        "todayRecovered": 2,
        "casesPerOneMillion": 9.0,
        "deathsPerOneMillion": 0.46,
    },
    {
        "country": "Germany",
        "continent": "Europe",
        "population": 83000000,
        "cases": 600,
        "deaths": 0,
        "recovered": 550,
        "active": 50,
        "todayCases": 0,
        "todayDeaths": 0,
        "todayRecovered": 0,
        "casesPerOneMillion": 7.23,
        "deathsPerOneMillion": 0,
    },
    {
        "country": "Diamond Princess",
        "continent": None,
        "population": 0,
        "cases": 700,
        "deaths": 13,
        "recovered": 687,
        "active": 0,
        "todayCases": 0,
        "todayDeaths": 0,
        "todayRecovered": 0,
        "casesPerOneMillion": 0,
        "deathsPerOneMillion": 0,
    },
    {
        "country": "Holy See",
        "continent": "Europe",
        "population": 800,
        "cases": 0,
        "deaths": 0,
        "active": 0,
        "todayCases": 0,
        "todayDeaths": 0,
        "todayRecovered": 0,
        "casesPerOneMillion": 0,
        "deathsPerOneMillion": 0,
    },
]

HISTORICAL_PAYLOAD = {
    "cases": {"1/22/20": 557, "1/23/20": 655, "1/24/20": 941},
    "deaths": {"1/22/20": 17, "1/23/20": 18, "1/24/20": 26},
}

GLOBAL_PAYLOAD = {
    "updated": 1700000000000,
    "cases": 3700,
    "deaths": 133,
    "recovered": 3337,
    "active": 230,
    "todayCases": 24,
    "todayDeaths": 2,
    "todayRecovered": 11,
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return copy.deepcopy(self.payload)


class FakeSession:
    """Maps URL -> FakeResponse, or an exception instance to raise."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append((url, timeout))
        outcome = self.responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def region_payload():
    return copy.deepcopy(REGION_PAYLOAD)


@pytest.fixture
def historical_payload():
    return copy.deepcopy(HISTORICAL_PAYLOAD)


@pytest.fixture
def global_payload():
    return copy.deepcopy(GLOBAL_PAYLOAD)


@pytest.fixture
def regions(region_payload):
    return normalize_regions(region_payload)


@pytest.fixture
def store(region_payload, historical_payload, global_payload):
    s = DataStore()
    s.load(region_payload, historical_payload, global_payload)
    return s


@pytest.fixture
def ok_responses(region_payload, historical_payload, global_payload):
    return {
        ENDPOINTS["global"]: FakeResponse(global_payload),
        ENDPOINTS["countries"]: FakeResponse(region_payload),
        ENDPOINTS["historical"]: FakeResponse(historical_payload),
    }


def countries(df):
    return df["country"].tolist()
