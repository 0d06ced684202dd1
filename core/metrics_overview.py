from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from core.filters import ALL, SalesFilters


def year_range_label(years: List[int]) -> str:
    if not years:
        return ""
    if years[0] != years[-1]:
        return f"{years[0]} – {years[-1]}"
    return str(years[0])


def filter_summary_label(filters: SalesFilters, resolved_year: Optional[int]) -> str:
    label = str(resolved_year) if resolved_year is not None else "All years"
    if filters.item_type != ALL:
        label += f" · {filters.item_type}"
    return label


def compute_overview(filters: SalesFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    years: List[int] = ctx.get("years", []) or []

    dataset = None
    if not records.empty:
        dataset = {
            "total_rows": int(len(records)),
            "year_range": year_range_label(years),
            "suppliers": int(records["supplier"].nunique()),
            "item_types": int(records["item_type"].nunique()),
        }

    return {
        "dataset": dataset,
        "filter_summary": filter_summary_label(filters, ctx.get("resolved_year")),
        "error": ctx.get("error"),
    }
