import os

import plotly.express as px
import requests
import streamlit as st
from loguru import logger

from dashboard.chart_data import (
    SERIES_LABELS,
    TITLES,
    export_csv,
    pie_totals,
    series,
    y_axis_max,
)

BASE_URL = os.environ.get("THRIPS_API_URL", "http://localhost:8000").rstrip("/")

st.set_page_config(page_title="Thrips Count", layout="centered")
st.title("Thrips Count")

# --------------------------
# Helpers
# --------------------------
def fetch_buckets(period: str):
    r = requests.get(f"{BASE_URL}/thrips", params={"period": period}, timeout=20)
    r.raise_for_status()
    return r.json()

def post_count(tea: int, other: int):
    r = requests.post(f"{BASE_URL}/thrips", json={"tea": tea, "other": other}, timeout=20)
    if r.status_code != 201:
        raise RuntimeError(r.json().get("error", f"HTTP {r.status_code}"))
    return r.json()["data"]

# --------------------------
# Controls (top)
# --------------------------
col1, col2 = st.columns([1, 1])
with col1:
    chart_type = st.radio("Chart", ["折れ線", "円"], horizontal=True)
is_pie = chart_type == "円"

with col2:
    if is_pie:
        # the pie chart always works on monthly buckets
        period = "month"
        st.write("")
    else:
        period = st.selectbox(
            "期間",
            ["day", "week", "month"],
            format_func=lambda p: TITLES[p],
        )

# --------------------------
# Fetch selected period
# --------------------------
try:
    with st.spinner("Loading..."):
        rows = fetch_buckets(period)
except Exception as e:
    logger.exception("Fetching thrips data failed")
    st.error(f"Failed to fetch thrips data: {e}")
    st.stop()

chart = series(rows, period)

st.subheader(TITLES[period])

if not rows:
    st.info("No counts recorded yet.")
elif is_pie:
    selected_month = st.selectbox("Select Month", chart.labels, index=0)
    tea_total, other_total = pie_totals(chart, selected_month)
    fig = px.pie(
        names=list(SERIES_LABELS),
        values=[tea_total, other_total],
        color_discrete_sequence=["rgba(75, 192, 192, 0.6)", "rgba(255, 99, 132, 0.6)"],
    )
    st.plotly_chart(fig, use_container_width=True)
else:
    fig = px.line(
        x=chart.labels,
        y=[chart.tea_values, chart.other_values],
        labels={"x": "", "value": "", "variable": ""},
        color_discrete_sequence=["rgba(75, 192, 192, 0.9)", "rgba(255, 99, 132, 0.9)"],
    )
    for trace, name in zip(fig.data, SERIES_LABELS):
        trace.name = name
    fig.update_yaxes(rangemode="tozero", dtick=10, range=[0, max(y_axis_max(chart), 10)])
    st.plotly_chart(fig, use_container_width=True)

    data, filename = export_csv(rows, period)
    st.download_button("Export CSV", data, file_name=filename, mime="text/csv")

# --------------------------
# Data entry
# --------------------------
with st.expander("Add counts"):
    with st.form("add_counts", clear_on_submit=True):
        tea = st.number_input(SERIES_LABELS[0], min_value=0, step=1, value=0)
        other = st.number_input(SERIES_LABELS[1], min_value=0, step=1, value=0)
        submitted = st.form_submit_button("Save")
    if submitted:
        try:
            saved = post_count(int(tea), int(other))
        except Exception as e:
            logger.exception("Saving thrips count failed")
            st.error(f"Save failed: {e}")
        else:
            st.success(f"Saved #{saved['id']} at {saved['createdAt']}")

# --------------------------
# Server status (optional)
# --------------------------
with st.expander("Server status"):
    try:
        r = requests.get(f"{BASE_URL}/health", timeout=20)
        st.write("Health response:", r.json())
    except Exception as e:
        st.error(f"Health check failed: {e}")
