import html
import logging
from contextlib import contextmanager
from typing import Optional

import altair as alt
import pandas as pd
import streamlit as st

from core.auth import REGISTER, SIGN_IN, build_identity_provider, submit_support
from core.charts import chips_html as chips, monthly_sales_chart
from core.config import get_settings
from core.data import MONTH_LABELS, format_currency_0, load_dashboard_data, prepare_context, reload_dashboard_data
from core.filters import ALL, LATEST
from core.metrics_monthly import compute_monthly
from core.metrics_overview import compute_overview

alt.data_transformers.disable_max_rows()
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

STATEMENT_OF_INTENT = (
    "We believe in data-driven transparency for public decision-making, responsible supply chain stewardship, "
    "and inclusive economic growth. By combining open data and citizen input, we will advocate for accountable "
    "retail distribution, predictable warehouse logistics, and equitable access to resources for every community "
    "we serve. If you support this statement, please sign in or sign up!"
)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .eyebrow {text-transform: uppercase;letter-spacing: 0.08em;font-size: 0.75rem;color: #7c3aed;margin-bottom: 2px;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .chip.warning {background: #fef3c7;border-color: #fcd34d;color: #92400e;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, eyebrow: Optional[str] = None, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="eyebrow">{html.escape(eyebrow or "")}</div>
          <div class="card-header">
            <div class="card-title">{html.escape(title)}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def year_option_label(value) -> str:
    if value == LATEST:
        return "Latest year"
    if value == ALL:
        return "All years"
    return str(value)


def month_option_label(value) -> str:
    if value == ALL:
        return "All months"
    return f"{value} — {MONTH_LABELS[int(value) - 1]}"


def type_option_label(value) -> str:
    return "All types" if value == ALL else str(value)


# ---------- UI setup ----------
st.set_page_config(page_title="Warehouse & Retail Transparency Portal", layout="wide")
inject_base_styles()
settings = get_settings()

st.markdown("<div class='eyebrow'>Warehouse & Retail Transparency Portal</div>", unsafe_allow_html=True)
st.title("Monthly intelligence on retail and warehouse flows")
st.caption(
    "Explore sales, transfers, and warehouse throughput by month. Segment by year, product type, or supplier, "
    "then register your support for the Statement of Intent."
)

with st.spinner("Loading dataset…"):
    data_ctx = load_dashboard_data()

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Segment the dataset")
    selected_year = st.selectbox("Year", options=[LATEST, ALL] + list(data_ctx["years"]), format_func=year_option_label)
    selected_month = st.selectbox("Month", options=[ALL] + list(range(1, 13)), format_func=month_option_label)
    selected_type = st.selectbox("Item type", options=[ALL] + list(data_ctx["item_types"]), format_func=type_option_label)
    supplier_query = st.text_input("Supplier search", "", placeholder="Start typing a supplier...")
    st.markdown("---")
    if st.button("Reload data"):
        reload_dashboard_data()
        st.rerun()

filters = {
    "year": selected_year,
    "month": selected_month,
    "item_type": selected_type,
    "supplier_query": supplier_query,
}
ctx = prepare_context(filters, data_ctx)
monthly = compute_monthly(ctx["filters"], ctx, top_n=settings.DASHBOARD_TOP_SUPPLIERS)
overview = compute_overview(ctx["filters"], ctx)

# ----- Hero stats -----
hero = st.columns(2)
hero[0].metric("Dataset rows", f"{len(data_ctx['records']):,}" if len(data_ctx["records"]) else "No rows")
hero[1].metric("Filters active", overview["filter_summary"])

if ctx["error"]:
    st.error(ctx["error"])


def render_segment_panel():
    dataset = overview["dataset"]
    summary = ""
    if dataset:
        summary = chips(
            [
                dataset["year_range"],
                f"{dataset['suppliers']:,} suppliers",
                f"{dataset['item_types']:,} product types",
            ]
        )
    with card("Filter by year, item type, or supplier", eyebrow="Segment the dataset", actions=summary):
        totals = monthly["totals"]
        cols = st.columns(4)
        cols[0].metric("Retail sales", format_currency_0(totals["retail_sales"]), help="Sum of retail sales for the current segment")
        cols[1].metric("Warehouse sales", format_currency_0(totals["warehouse_sales"]), help="Warehouse throughput for the current segment")
        cols[2].metric("Retail transfers", format_currency_0(totals["retail_transfers"]), help="Transfers recorded for the selected slice")
        cols[3].metric("Matching rows", f"{monthly['matching_rows']:,}", help="Rows that match the filters above")


def render_monthly_panel():
    with card("Sales, transfers, and warehouse activity per month", eyebrow="Monthly view", actions="Auto-refreshes on filter changes"):
        if monthly["matching_rows"] == 0:
            st.info("No data matches the current filters.")
        else:
            st.altair_chart(monthly_sales_chart(monthly["monthly"]), use_container_width=True)
            with st.expander("Monthly table", expanded=False):
                table = pd.DataFrame(monthly["monthly"]).drop(columns=["month"]).set_index("label")
                st.dataframe(table.style.format("${:,.0f}"), use_container_width=True)

        st.markdown("**Top suppliers in this segment**")
        top = monthly["top_suppliers"]
        if not top:
            st.markdown(chips(["No suppliers match the filters."]), unsafe_allow_html=True)
        else:
            labels = [f"{entry['supplier']} · {format_currency_0(entry['value'])}" for entry in top]
            st.markdown(f"<div class='chip-row'>{chips(labels)}</div>", unsafe_allow_html=True)


def render_support_panel():
    if "identity_provider" not in st.session_state:
        st.session_state["identity_provider"] = build_identity_provider(settings)
    provider = st.session_state["identity_provider"]
    mode = st.session_state.setdefault("auth_mode", REGISTER)

    warning = "" if provider is not None else chips(["Firebase config needed"], "chip warning")
    with card("Register your support", eyebrow="Statement of Intent", actions=warning):
        st.write(STATEMENT_OF_INTENT)
        left, right = st.columns(2)

        with left:
            st.markdown("#### " + ("Create your supporter record" if mode == REGISTER else "Access your supporter record"))
            with st.form("support_form", clear_on_submit=False):
                name = st.text_input("Full name", placeholder="Jane Doe") if mode == REGISTER else ""
                email = st.text_input("Email", placeholder="you@example.com")
                password = st.text_input("Password", type="password")
                submitted = st.form_submit_button("Register support" if mode == REGISTER else "Sign in")
            if submitted:
                with st.spinner("Working…"):
                    outcome = submit_support(provider, mode, email, password, name)
                if outcome.error:
                    st.error(outcome.error)
                else:
                    st.success(outcome.message)
            toggle_label = "Already registered? Sign in" if mode == REGISTER else "New? Create an account"
            if st.button(toggle_label):
                st.session_state["auth_mode"] = SIGN_IN if mode == REGISTER else REGISTER
                st.rerun()

        with right:
            user = provider.current_user if provider is not None else None
            st.markdown("<div class='eyebrow'>Your status</div>", unsafe_allow_html=True)
            st.markdown("#### " + ("Supporter on file" if user else "Not signed in"))
            if user:
                st.markdown(f"**Email:** {user.email}")
                if user.display_name:
                    st.markdown(f"**Name:** {user.display_name}")
                st.markdown("**Support recorded:** Yes, thank you.")
                if st.button("Sign out"):
                    provider.sign_out()
                    st.rerun()
            else:
                st.caption(
                    "Register or sign in to add your name in support of the Statement of Intent. "
                    "Authentication uses your Firebase project key (FIREBASE_API_KEY)."
                )


render_segment_panel()
render_monthly_panel()
render_support_panel()
