"""Watermelon Market Dashboard.

Streamlit app for browsing the shipment prices and quantities collected
in the yearly CSV partitions.
"""

import glob
import os

import pandas as pd
import plotly.express as px
import streamlit as st

DATA_DIR = os.environ.get(
    "DATA_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data"),
)

CATEGORY_LABELS = {
    "s4": "秀 4L", "s5": "秀 5L", "sl": "秀 L", "sm": "秀 M",
    "y4": "優 4L", "y5": "優 5L", "yl": "優 L", "ym": "優 M",
    "average": "平均",
}


@st.cache_data(ttl=300)
def load_data() -> pd.DataFrame:
    """Load every yearly partition into one DataFrame sorted by target date."""
    paths = sorted(
        p for p in glob.glob(os.path.join(DATA_DIR, "*.csv"))
        if os.path.basename(p)[:4].isdigit()
    )
    frames = [pd.read_csv(p) for p in paths]
    frames = [f for f in frames if not f.empty]
    if not frames:
        st.error(f"No market data found in {DATA_DIR}.")
        st.stop()

    df = pd.concat(frames, ignore_index=True)
    df["target_date"] = pd.to_datetime(df["target_date"], format="%Y/%m/%d")
    df["received_at"] = pd.to_datetime(df["received_at"], format="%Y/%m/%d %H:%M:%S")
    return df.sort_values("target_date").reset_index(drop=True)


def render_latest_summary(df: pd.DataFrame) -> None:
    """Metrics for the most recent shipment date, compared with the one before."""
    latest = df.iloc[-1]
    previous = df.iloc[-2] if len(df) > 1 else None

    st.subheader(f"📅 Latest Report — {latest['target_date'].strftime('%Y/%m/%d')}")

    def _delta(column: str):
        if previous is None or pd.isna(latest[column]) or pd.isna(previous[column]):
            return None
        return f"{int(latest[column] - previous[column]):+,}"

    c1, c2, c3 = st.columns(3)
    c1.metric(
        "Average Price",
        f"¥{int(latest['average']):,}" if pd.notna(latest["average"]) else "—",
        delta=_delta("average"),
    )
    c2.metric(
        "Shipped Boxes",
        f"{int(latest['quantity']):,}" if pd.notna(latest["quantity"]) else "—",
        delta=_delta("quantity"),
    )
    c3.metric("Received", latest["received_at"].strftime("%m/%d %H:%M"))


def render_price_chart(df: pd.DataFrame, categories: list[str]) -> None:
    """Price per category over time."""
    long_df = df.melt(
        id_vars="target_date", value_vars=categories,
        var_name="category", value_name="price",
    ).dropna(subset=["price"])
    long_df["category"] = long_df["category"].map(CATEGORY_LABELS)

    fig = px.line(
        long_df,
        x="target_date",
        y="price",
        color="category",
        markers=True,
        title="Price by Category",
        labels={"target_date": "Shipment Date", "price": "Price (¥)", "category": "Category"},
    )
    fig.update_layout(hovermode="x unified")
    st.plotly_chart(fig, use_container_width=True)


def render_quantity_chart(df: pd.DataFrame) -> None:
    """Shipped boxes per shipment date."""
    fig = px.bar(
        df.dropna(subset=["quantity"]),
        x="target_date",
        y="quantity",
        title="Shipped Boxes",
        labels={"target_date": "Shipment Date", "quantity": "Boxes"},
    )
    st.plotly_chart(fig, use_container_width=True)


def main() -> None:
    """Entry point for the Streamlit dashboard."""
    st.set_page_config(page_title="Watermelon Market", page_icon="🍉", layout="wide")
    st.title("🍉 Watermelon Market Dashboard")

    df = load_data()

    render_latest_summary(df)
    st.divider()

    # --- Sidebar filters ---
    st.sidebar.header("Filters")

    min_date = df["target_date"].min().date()
    max_date = df["target_date"].max().date()
    date_range = st.sidebar.date_input(
        "Shipment date range",
        value=(min_date, max_date),
        min_value=min_date,
        max_value=max_date,
    )
    categories = st.sidebar.multiselect(
        "Categories",
        options=list(CATEGORY_LABELS),
        default=["average"],
        format_func=CATEGORY_LABELS.get,
    )

    filtered = df
    if isinstance(date_range, tuple) and len(date_range) == 2:
        start, end = pd.Timestamp(date_range[0]), pd.Timestamp(date_range[1])
        filtered = filtered[(filtered["target_date"] >= start) & (filtered["target_date"] <= end)]

    if filtered.empty or not categories:
        st.warning("No data for the selected filters.")
        return

    col1, col2 = st.columns(2)
    with col1:
        render_price_chart(filtered, categories)
    with col2:
        render_quantity_chart(filtered)

    st.caption(f"Data range: {min_date} → {max_date} · {len(df)} reports")


if __name__ == "__main__":
    main()
