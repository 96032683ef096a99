import requests
import streamlit as st

from api.products import list_products
from api.inventory import apply_stock_movement

st.header("📦 Stock Movement")
st.caption("Record stock coming in or going out")

# Load products
try:
    products = list_products()
except Exception:
    st.error("Failed to load products")
    st.stop()

if not products:
    st.warning("No products available")
    st.stop()

# Product selection
product_map = {f"{p['sku']} | {p['name']}": p for p in products}
selection = st.selectbox("Select Product", list(product_map.keys()))
product = product_map[selection]

st.info(f"Current Quantity: **{product['quantity']}** · Box: **{product['box_number']}**")

# Movement form
with st.form("stock_movement_form"):
    direction = st.radio("Action", ["IN", "OUT"], horizontal=True)
    quantity = st.number_input("Quantity", min_value=1, step=1)
    reason = st.text_input("Reason (optional)")
    box_number = st.text_input("Move to box (optional)")
    submitted = st.form_submit_button("Apply Change")

# Submit logic
if submitted:
    payload = {
        "product_id": product["id"],
        "transaction_type": direction,
        "quantity": int(quantity),
        "reason": reason,
        "box_number": box_number or None,
    }

    try:
        result = apply_stock_movement(payload)
    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 404:
            # Product vanished since the page loaded; reload shows the current catalog
            st.rerun()
        st.error("Cloud Sync Error. Please check connection.")
    except requests.RequestException:
        st.error("Cloud Sync Error. Please check connection.")
    else:
        if result["stock_out"]:
            st.toast("Cha-ching! Stock out recorded", icon="💰")
        st.success(
            f"{result['product']['name']}: {result['quantity_before']} → {result['quantity_after']}"
        )
