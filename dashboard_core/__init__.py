"""Core (UI-agnostic) dashboard logic.

This package contains:
- data fetching (disease.sh JSON -> pandas)
- the snapshot store and filter state
- projection and sort functions (pure, DataFrame in -> DataFrame out)
- view payloads (JSON-serializable, chart helpers via Altair -> Vega-Lite)
- CSV export
"""
