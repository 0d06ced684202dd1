from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

import pandas as pd


ALL = "all"
LATEST = "latest"

YearSelector = Union[int, str]
MonthSelector = Union[int, str]


@dataclass(frozen=True)
class SalesFilters:
    year: YearSelector = LATEST
    item_type: str = ALL
    month: MonthSelector = ALL
    supplier_query: str = ""


def _as_int(value: object) -> Optional[int]:
    try:
        return int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return None


def _as_year(value: object) -> YearSelector:
    if isinstance(value, str):
        token = value.strip().lower()
        if token in (ALL, LATEST):
            return token
    year = _as_int(value)
    return year if year else LATEST


def _as_month(value: object) -> MonthSelector:
    if isinstance(value, str) and value.strip().lower() == ALL:
        return ALL
    month = _as_int(value)
    if month is None or not 1 <= month <= 12:
        return ALL
    return month


def normalize_filters(raw: dict) -> SalesFilters:
    raw = raw or {}
    item_type = raw.get("item_type")
    item_type = str(item_type).strip() if item_type is not None else ""
    return SalesFilters(
        year=_as_year(raw.get("year", LATEST)),
        item_type=item_type or ALL,
        month=_as_month(raw.get("month", ALL)),
        supplier_query=str(raw.get("supplier_query") or "").strip(),
    )


def resolve_year(selector: YearSelector, available_years: Iterable[int]) -> Optional[int]:
    """Concrete year to filter on, or None for no year constraint."""
    if selector == ALL:
        return None
    if selector == LATEST:
        years: List[int] = list(available_years)
        return max(years) if years else None
    return int(selector)


def filter_sales(
    df: pd.DataFrame,
    filters: SalesFilters,
    *,
    available_years: Optional[Iterable[int]] = None,
) -> pd.DataFrame:
    """Rows matching every active predicate; an empty result is not an error.

    "latest" resolves against ``available_years`` when given (normally the
    facets of the full dataset), otherwise against the years in ``df``.
    """
    if df.empty:
        return df.copy()

    if available_years is None:
        available_years = [int(y) for y in df["year"].dropna().unique()]
    year = resolve_year(filters.year, available_years)

    mask = pd.Series(True, index=df.index)
    if year is not None:
        mask &= df["year"] == year
    if filters.item_type != ALL:
        mask &= df["item_type"] == filters.item_type
    if filters.month != ALL:
        mask &= df["month"] == int(filters.month)

    q = (filters.supplier_query or "").strip().lower()
    if q:
        mask &= df["supplier"].astype(str).str.lower().str.contains(q, regex=False, na=False)

    return df[mask]
