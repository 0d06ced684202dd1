from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import AuthUserModel, MetaFacetsResponse, SalesFiltersModel, SupportRequest
from core.auth import REGISTER, SIGN_IN, IdentityProvider, build_identity_provider, submit_support
from core.config import get_settings
from core.data import load_dashboard_data, prepare_context, reload_dashboard_data
from core.filters import SalesFilters, normalize_filters
from core.metrics_monthly import aggregate_sales, compute_monthly
from core.metrics_overview import compute_overview


app = FastAPI(title="Warehouse & Retail Sales API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().DASHBOARD_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_identity_provider() -> Optional[IdentityProvider]:
    # One provider per request; the signed-in user is never shared between clients.
    return build_identity_provider(get_settings())


def _filters_from_model(model: Optional[SalesFiltersModel]) -> SalesFilters:
    raw = model.model_dump() if model is not None else {}
    return normalize_filters(raw)


def _error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


@app.get("/meta/facets")
def meta_facets():
    try:
        data_ctx = load_dashboard_data()
        payload = MetaFacetsResponse(
            years=[int(y) for y in data_ctx.get("years", [])],
            item_types=[str(t) for t in data_ctx.get("item_types", [])],
            error=data_ctx.get("error"),
        )
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_facets failed")
        return _error_response(exc)


@app.post("/filter")
def filter_rows(filters: SalesFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        rows = ctx["filtered_sales"]
        return _json(
            {
                "filters": asdict(f),
                "resolved_year": ctx["resolved_year"],
                "count": int(len(rows)),
                "rows": rows.to_dict(orient="records"),
                "error": ctx["error"],
            }
        )
    except Exception as exc:
        logger.exception("filter failed")
        return _error_response(exc)


@app.post("/aggregate")
def aggregate(filters: SalesFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        payload = aggregate_sales(ctx["filtered_sales"], top_n=get_settings().DASHBOARD_TOP_SUPPLIERS)
        payload["error"] = ctx["error"]
        return _json(payload)
    except Exception as exc:
        logger.exception("aggregate failed")
        return _error_response(exc)


@app.post("/monthly")
def monthly(filters: SalesFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_monthly(f, ctx, top_n=get_settings().DASHBOARD_TOP_SUPPLIERS))
    except Exception as exc:
        logger.exception("monthly failed")
        return _error_response(exc)


@app.get("/overview")
def overview():
    try:
        data_ctx = load_dashboard_data()
        f = normalize_filters({})
        ctx = prepare_context(f, data_ctx)
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("overview failed")
        return _error_response(exc)


@app.post("/reload")
def reload():
    try:
        data_ctx = reload_dashboard_data()
        return _json(
            {
                "rows": int(len(data_ctx["records"])),
                "years": data_ctx["years"],
                "item_types": data_ctx["item_types"],
                "error": data_ctx["error"],
            }
        )
    except Exception as exc:
        logger.exception("reload failed")
        return _error_response(exc)


@app.post("/export")
def export_rows(filters: SalesFiltersModel):
    data_ctx = load_dashboard_data()
    f = _filters_from_model(filters)
    ctx = prepare_context(f, data_ctx)
    export_df = ctx["filtered_sales"]
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=sales.csv"})


def _support(mode: str, request: SupportRequest, provider: Optional[IdentityProvider]) -> JSONResponse:
    outcome = submit_support(provider, mode, request.email, request.password, request.name)
    if not outcome.ok:
        return JSONResponse(status_code=400, content={"error": outcome.error})
    user = AuthUserModel(**asdict(outcome.user)) if outcome.user else None
    return _json({"user": user.model_dump() if user else None, "message": outcome.message})


@app.post("/auth/register")
def auth_register(request: SupportRequest, provider: Optional[IdentityProvider] = Depends(get_identity_provider)):
    return _support(REGISTER, request, provider)


@app.post("/auth/signin")
def auth_signin(request: SupportRequest, provider: Optional[IdentityProvider] = Depends(get_identity_provider)):
    return _support(SIGN_IN, request, provider)
