from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.charts import monthly_sales_chart, to_vega_spec
from core.data import MEASURE_COLUMNS, MONTH_LABELS
from core.filters import SalesFilters


TOP_SUPPLIERS_DEFAULT = 4


def monthly_buckets(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Twelve buckets, months 1..12; months without rows stay at zero."""
    months = range(1, 13)
    if df.empty:
        sums = pd.DataFrame(0.0, index=months, columns=MEASURE_COLUMNS)
    else:
        sums = df.groupby("month")[MEASURE_COLUMNS].sum().reindex(months, fill_value=0.0)
    return [
        {
            "month": month,
            "label": MONTH_LABELS[month - 1],
            **{col: float(sums.at[month, col]) for col in MEASURE_COLUMNS},
        }
        for month in months
    ]


def grand_totals(df: pd.DataFrame) -> Dict[str, float]:
    if df.empty:
        return {col: 0.0 for col in MEASURE_COLUMNS}
    return {col: float(df[col].sum()) for col in MEASURE_COLUMNS}


def top_suppliers(df: pd.DataFrame, n: int = TOP_SUPPLIERS_DEFAULT) -> List[Dict[str, Any]]:
    """Suppliers ranked by retail + warehouse sales; ties keep first-seen order."""
    if df.empty or n <= 0:
        return []
    combined = df["retail_sales"] + df["warehouse_sales"]
    per_supplier = combined.groupby(df["supplier"], sort=False).sum()
    ranked = per_supplier.sort_values(ascending=False, kind="stable").head(n)
    return [{"supplier": str(supplier), "value": float(value)} for supplier, value in ranked.items()]


def aggregate_sales(df: pd.DataFrame, *, top_n: int = TOP_SUPPLIERS_DEFAULT) -> Dict[str, Any]:
    return {
        "monthly": monthly_buckets(df),
        "totals": grand_totals(df),
        "top_suppliers": top_suppliers(df, top_n),
    }


def compute_monthly(filters: SalesFilters, ctx: Dict[str, Any], *, top_n: int = TOP_SUPPLIERS_DEFAULT) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered_sales", pd.DataFrame())
    aggregate = aggregate_sales(filtered, top_n=top_n)

    charts: Dict[str, Any] = {}
    if not filtered.empty:
        charts["monthly_trend"] = to_vega_spec(monthly_sales_chart(aggregate["monthly"]))

    return {
        "filters": asdict(filters),
        "resolved_year": ctx.get("resolved_year"),
        "matching_rows": int(len(filtered)),
        **aggregate,
        "charts": charts,
        "error": ctx.get("error"),
    }
