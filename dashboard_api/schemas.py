from __future__ import annotations

from pydantic import BaseModel


class DashboardFiltersModel(BaseModel):
    metric: str = "cases"
    continent: str = "all"
    search_term: str = ""
