"""Core (UI-agnostic) dashboard logic.

This package contains:
- dataset loading and parsing (CSV -> pandas)
- facet extraction and the filter engine
- monthly aggregation (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- supporter registration against an external identity provider
"""
