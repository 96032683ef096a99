import streamlit as st
import pandas as pd
from datetime import date, datetime, time

from api.transactions import list_transactions
from api.inventory import get_daily_report, get_range_report

st.set_page_config(page_title="Transaction History", layout="wide")

st.title("Transaction History")

# -----------------------------
# Filters
# -----------------------------

with st.sidebar:
    st.header("Filters")

    tx_type = st.selectbox(
        "Transaction Type",
        options=["All", "IN", "OUT"]
    )

    start_date = st.date_input("Start Date", value=None)
    end_date = st.date_input("End Date", value=None)

    apply_filters = st.button("Apply Filters")

# -----------------------------
# Fetch data
# -----------------------------

params = {}

if apply_filters:
    if tx_type != "All":
        params["transaction_type"] = tx_type

    if start_date:
        params["start_date"] = datetime.combine(start_date, time.min).isoformat()

    if end_date:
        params["end_date"] = datetime.combine(end_date, time.max).isoformat()

try:
    transactions = list_transactions(params if params else None)
except Exception:
    st.error("Failed to load transactions")
    st.stop()

# -----------------------------
# Display
# -----------------------------

if not transactions:
    st.info("No transactions found.")
else:
    df = pd.DataFrame(transactions)
    df["timestamp"] = pd.to_datetime(df["timestamp"], unit="ms")

    columns = [
        "timestamp",
        "product_name",
        "type",
        "quantity",
        "quantity_before",
        "quantity_after",
        "reason",
        "user_id",
    ]

    df = df[[c for c in columns if c in df.columns]]

    st.dataframe(df, width="stretch")

    csv = df.to_csv(index=False).encode("utf-8")

    st.download_button(
        label="Export CSV",
        data=csv,
        file_name="transaction_history.csv",
        mime="text/csv"
    )

# -----------------------------
# Reports
# -----------------------------

st.divider()
st.subheader("Daily Sales")

try:
    daily = get_daily_report()
    c1, c2 = st.columns(2)
    c1.metric("Units Sold Today", daily["total_quantity"])
    c2.metric("Revenue Today", f"₹{daily['total_revenue']:,.2f}")
    if daily["lines"]:
        st.dataframe(pd.DataFrame(daily["lines"]), width="stretch")
except Exception:
    st.warning("Daily report unavailable")

st.subheader("Date-wise Summary")

range_start = st.date_input("From", value=date.today(), key="range_start")
range_end = st.date_input("To", value=date.today(), key="range_end")

if range_end < range_start:
    st.warning("'To' must not be before 'From'")
else:
    try:
        summary = get_range_report(range_start.isoformat(), range_end.isoformat())
        c1, c2, c3 = st.columns(3)
        c1.metric("Stock In", summary["total_in"])
        c2.metric("Stock Out", summary["total_out"])
        c3.metric("Revenue", f"₹{summary['total_revenue']:,.2f}")
    except Exception:
        st.warning("Summary unavailable")
