from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import numpy as np
import pandas as pd
import requests

from core.config import get_settings
from core.errors import DashboardError, DatasetFetchError, DatasetParseError
from core.filters import SalesFilters, filter_sales, normalize_filters, resolve_year


logger = logging.getLogger(__name__)

UNKNOWN_SUPPLIER = "Unknown supplier"
UNSPECIFIED_ITEM_TYPE = "Unspecified"

SALES_COLUMNS = {
    "YEAR": "year",
    "MONTH": "month",
    "SUPPLIER": "supplier",
    "ITEM TYPE": "item_type",
    "RETAIL SALES": "retail_sales",
    "RETAIL TRANSFERS": "retail_transfers",
    "WAREHOUSE SALES": "warehouse_sales",
}
MEASURE_COLUMNS = ["retail_sales", "retail_transfers", "warehouse_sales"]
RECORD_COLUMNS = ["year", "month", "supplier", "item_type", *MEASURE_COLUMNS]
MONTH_LABELS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
MIN_YEAR, MAX_YEAR = 1, 9999


@dataclass(frozen=True)
class SalesRecord:
    year: int
    month: int
    supplier: str = UNKNOWN_SUPPLIER
    item_type: str = UNSPECIFIED_ITEM_TYPE
    retail_sales: float = 0.0
    retail_transfers: float = 0.0
    warehouse_sales: float = 0.0


def empty_sales_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "year": pd.Series(dtype="int64"),
            "month": pd.Series(dtype="int64"),
            "supplier": pd.Series(dtype=object),
            "item_type": pd.Series(dtype=object),
            "retail_sales": pd.Series(dtype="float64"),
            "retail_transfers": pd.Series(dtype="float64"),
            "warehouse_sales": pd.Series(dtype="float64"),
        }
    )


def column_as_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series([None] * len(df), index=df.index, dtype=object)
    val = df[col]
    if isinstance(val, pd.DataFrame):
        return val.iloc[:, 0]
    return val


def numericize(series: pd.Series) -> pd.Series:
    """Best-effort numeric coercion; blanks, junk and +/-inf become NaN."""
    cleaned = series.astype(object).map(lambda v: v.strip() if isinstance(v, str) else v)
    out = pd.to_numeric(cleaned, errors="coerce").astype("float64")
    return out.replace([np.inf, -np.inf], np.nan)


def text_or_default(value: object, default: str) -> str:
    if value is None or value is pd.NA:
        return default
    if isinstance(value, float) and math.isnan(value):
        return default
    text = str(value).strip()
    return text or default


def normalize_sales_frame(raw: pd.DataFrame) -> pd.DataFrame:
    """Map raw source columns onto typed sales records.

    Rows without a truthy YEAR and MONTH are dropped, as are years outside
    1..9999 and months outside 1..12. SUPPLIER and ITEM TYPE fall back to
    sentinels, and the three measures coerce to finite, non-negative floats.
    Unknown columns are ignored.
    """
    if raw is None or raw.empty:
        return empty_sales_frame()

    year = numericize(column_as_series(raw, "YEAR"))
    month = numericize(column_as_series(raw, "MONTH"))
    keep = (
        year.between(MIN_YEAR, MAX_YEAR)
        & (year % 1 == 0)
        & month.isin([float(m) for m in range(1, 13)])
    )
    dropped = int((~keep).sum())
    if dropped:
        logger.debug("dropped %d rows without a usable YEAR/MONTH", dropped)

    out = pd.DataFrame(
        {
            "year": year[keep].astype("int64"),
            "month": month[keep].astype("int64"),
            "supplier": column_as_series(raw, "SUPPLIER")[keep].map(lambda v: text_or_default(v, UNKNOWN_SUPPLIER)),
            "item_type": column_as_series(raw, "ITEM TYPE")[keep].map(lambda v: text_or_default(v, UNSPECIFIED_ITEM_TYPE)),
        }
    )
    for source_col, col in SALES_COLUMNS.items():
        if col in MEASURE_COLUMNS:
            out[col] = numericize(column_as_series(raw, source_col)[keep]).fillna(0.0).clip(lower=0.0)
    out = out[RECORD_COLUMNS].reset_index(drop=True)
    out["supplier"] = out["supplier"].astype(object)
    out["item_type"] = out["item_type"].astype(object)
    return out


def parse_sales_csv(text: str) -> pd.DataFrame:
    """Parse delimited text (header row first) into the sales record frame."""
    if not text or not text.strip():
        return empty_sales_frame()
    try:
        raw = pd.read_csv(
            io.StringIO(text.lstrip("\ufeff")),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except ValueError as exc:
        raise DatasetParseError(f"Unable to read dataset: {exc}") from exc
    raw.columns = [str(c).strip() for c in raw.columns]
    return normalize_sales_frame(raw)


def parse_sales_records(rows: Iterable[Mapping[str, object]]) -> pd.DataFrame:
    """Same normalization for rows that were already split into mappings."""
    rows = [dict(r) for r in rows]
    if not rows:
        return empty_sales_frame()
    return normalize_sales_frame(pd.DataFrame.from_records(rows))


def iter_sales_records(df: pd.DataFrame) -> Iterator[SalesRecord]:
    for row in df[RECORD_COLUMNS].itertuples(index=False):
        yield SalesRecord(
            year=int(row.year),
            month=int(row.month),
            supplier=str(row.supplier),
            item_type=str(row.item_type),
            retail_sales=float(row.retail_sales),
            retail_transfers=float(row.retail_transfers),
            warehouse_sales=float(row.warehouse_sales),
        )


def get_facets(df: pd.DataFrame) -> Dict[str, List]:
    if df is None or df.empty:
        return {"years": [], "item_types": []}
    years = sorted({int(y) for y in df["year"].dropna().unique()})
    item_types = sorted({str(t) for t in df["item_type"].dropna().unique()})
    return {"years": years, "item_types": item_types}


def format_currency_0(value: object) -> str:
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "$0"
    if not math.isfinite(out):
        return "$0"
    return f"${out:,.0f}"


def fetch_dataset_text(source: str, *, timeout: float = 30.0) -> str:
    """Read the raw dataset from an http(s) URL or a local path. Single attempt."""
    if source.startswith(("http://", "https://")):
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DatasetFetchError(f"Unable to fetch dataset from {source}: {exc}") from exc
        return response.text

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DatasetParseError(f"Dataset at {path} is not UTF-8 text") from exc
    except OSError as exc:
        raise DatasetFetchError(f"Unable to read dataset at {path}: {exc.strerror or exc}") from exc


# ---------------- Public API (Streamlit + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(source: str, timeout: float) -> Dict[str, object]:
    error: Optional[str] = None
    try:
        records = parse_sales_csv(fetch_dataset_text(source, timeout=timeout))
    except DashboardError as exc:
        logger.warning("dataset load failed for %s: %s", source, exc)
        records = empty_sales_frame()
        error = str(exc) or "Unable to read dataset"
    else:
        logger.info("loaded %d sales records from %s", len(records), source)

    facets = get_facets(records)
    return {
        "source": source,
        "records": records,
        "years": facets["years"],
        "item_types": facets["item_types"],
        "error": error,
    }


def load_dashboard_data(source: Optional[str] = None) -> Dict[str, object]:
    settings = get_settings()
    return _load_dashboard_data_cached(source or settings.DASHBOARD_DATA_URL, float(settings.DASHBOARD_FETCH_TIMEOUT))


def reload_dashboard_data(source: Optional[str] = None) -> Dict[str, object]:
    """Drop the cached dataset (including a cached failure) and load it again."""
    _load_dashboard_data_cached.cache_clear()
    return load_dashboard_data(source)


def prepare_context(filters: dict | SalesFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    records: pd.DataFrame = data_ctx.get("records")
    if records is None:
        records = empty_sales_frame()
    years = data_ctx.get("years")
    item_types = data_ctx.get("item_types")
    if years is None or item_types is None:
        facets = get_facets(records)
        years, item_types = facets["years"], facets["item_types"]

    filt = filters if isinstance(filters, SalesFilters) else normalize_filters(filters)
    filtered_sales = filter_sales(records, filt, available_years=years)

    return {
        "filters": filt,
        "resolved_year": resolve_year(filt.year, years),
        "records": records,
        "filtered_sales": filtered_sales,
        "years": list(years),
        "item_types": list(item_types),
        "error": data_ctx.get("error"),
    }
