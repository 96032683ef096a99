import streamlit as st
import pandas as pd

from api.products import list_products
from api.inventory import get_stats
from api.transactions import recent_transactions

st.header("📊 Overview Dashboard")
st.caption("High-level snapshot of inventory health")

try:
    products = list_products()
    stats = get_stats()
except Exception:
    st.error("Failed to load products")
    st.stop()

try:
    transactions = recent_transactions(10)
except Exception:
    transactions = []

col1, col2, col3, col4 = st.columns(4)

col1.metric("Items in Stock", stats["total_items"])
col2.metric("Low Stock", stats["low_stock_items"])
col3.metric("Out of Stock", stats["out_of_stock"])
col4.metric("Stock Value", f"₹{stats['total_value'] / 1000:,.1f}k")

df_products = pd.DataFrame(products)

if not df_products.empty:
    st.subheader("Stock vs Minimum")
    chart = df_products.head(8).set_index("name")[["quantity", "min_threshold"]]
    st.bar_chart(chart)

st.subheader("⚠️ Low Stock Alerts")

if df_products.empty:
    st.info("No products yet")
else:
    alerts = df_products[df_products["quantity"] <= df_products["min_threshold"]]
    if alerts.empty:
        st.success("No low-stock items")
    else:
        st.dataframe(
            alerts[["sku", "name", "quantity", "min_threshold", "box_number"]],
            use_container_width=True
        )

st.subheader("🕒 Recent Transactions")

if transactions:
    df_tx = pd.DataFrame(transactions)
    df_tx["timestamp"] = pd.to_datetime(df_tx["timestamp"], unit="ms")
    st.dataframe(
        df_tx[["timestamp", "product_name", "type", "quantity", "reason"]],
        use_container_width=True
    )
else:
    st.info("No transactions recorded yet")
