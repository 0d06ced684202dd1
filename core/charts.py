from __future__ import annotations

import html
from typing import Any, Dict, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

SERIES = [
    ("retail_sales", "Retail Sales", "#7c3aed"),
    ("warehouse_sales", "Warehouse Sales", "#0ea5e9"),
    ("retail_transfers", "Retail Transfers", "#22c55e"),
]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def monthly_sales_chart(buckets: List[Dict[str, Any]]) -> alt.Chart:
    """Filled line per measure across the twelve monthly buckets."""
    frame = pd.DataFrame(buckets, columns=["month", "label"] + [key for key, _, _ in SERIES])
    long_df = frame.melt(
        id_vars=["month", "label"],
        value_vars=[key for key, _, _ in SERIES],
        var_name="measure",
        value_name="value",
    )
    long_df["series"] = long_df["measure"].map({key: title for key, title, _ in SERIES})

    hover = alt.selection_point(fields=["series"], on="mouseover", empty="all")
    month_order = frame["label"].tolist()
    return (
        alt.Chart(long_df)
        .mark_area(line=True, point=True, interpolate="monotone", fillOpacity=0.15)
        .encode(
            x=alt.X("label:N", title=None, sort=month_order, axis=alt.Axis(grid=False, labelAngle=0)),
            y=alt.Y("value:Q", title=None, stack=None, axis=alt.Axis(format="$,.0f", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(
                "series:N",
                title=None,
                scale=alt.Scale(domain=[t for _, t, _ in SERIES], range=[c for _, _, c in SERIES]),
                legend=alt.Legend(orient="bottom"),
            ),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.3)),
            tooltip=[
                alt.Tooltip("label:N", title="Month"),
                alt.Tooltip("series:N", title="Measure"),
                alt.Tooltip("value:Q", title="Value", format="$,.0f"),
            ],
        )
        .add_params(hover)
        .properties(height=320)
    )


def chips_html(labels: List[str], css_class: str = "chip") -> str:
    """Pill markup for labels taken from the dataset; the text is HTML-escaped."""
    return "".join([f"<span class='{css_class}'>{html.escape(str(txt))}</span>" for txt in labels if txt])
