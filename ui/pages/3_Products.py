from datetime import date

import streamlit as st
import pandas as pd

from api.products import (
    list_products,
    create_product,
    update_product,
    export_products_csv,
    import_products_csv,
)

st.header("🛒 Product Management")
st.caption("Create, edit, and manage inventory products")

# ---------------- Load Products ----------------
query = st.text_input("🔍 Find product", placeholder="Name, SKU, category or box")

try:
    products = list_products(query or None)
except Exception:
    st.error("Failed to load products")
    st.stop()

# ---------------- Create Product ----------------
st.subheader("➕ Add New Product")

with st.form("create_product_form"):
    sku = st.text_input("SKU")
    name = st.text_input("Product Name")
    category = st.text_input("Category")
    box_number = st.text_input("Box Number")
    quantity = st.number_input("Initial Quantity", min_value=0, step=1)
    min_threshold = st.number_input("Min Threshold", min_value=0, step=1, value=5)
    purchase_price = st.number_input("Purchase Price", min_value=0.0, step=0.01)
    selling_price = st.number_input("Selling Price", min_value=0.0, step=0.01)
    description = st.text_area("Description")
    submitted = st.form_submit_button("Create Product")

if submitted:
    if not (sku and name and category and box_number):
        st.warning("SKU, name, category and box number are required")
    else:
        payload = {
            "sku": sku,
            "name": name,
            "category": category,
            "box_number": box_number,
            "quantity": int(quantity),
            "min_threshold": int(min_threshold),
            "purchase_price": purchase_price,
            "selling_price": selling_price,
            "description": description,
        }

        try:
            create_product(payload)
            st.success("Product created successfully")
            st.rerun()
        except Exception:
            st.error("Failed to save to cloud.")

# ---------------- Product Table ----------------
st.divider()
st.subheader("📋 Product List")

if not products:
    st.info("No products available")
else:
    df = pd.DataFrame(products).drop(columns=["id"])
    df["last_updated"] = pd.to_datetime(df["last_updated"], unit="ms")
    st.dataframe(df, use_container_width=True)

# ---------------- Edit Product ----------------
if products:
    st.divider()
    st.subheader("✏️ Edit Product")

    product_map = {f"{p['sku']} | {p['name']}": p for p in products}
    selection = st.selectbox("Select Product", list(product_map.keys()))
    product = product_map[selection]

    with st.form("edit_product_form"):
        name = st.text_input("Name", value=product["name"])
        category = st.text_input("Category", value=product["category"])
        box_number = st.text_input("Box Number", value=product["box_number"])
        min_threshold = st.number_input("Min Threshold", min_value=0, step=1, value=product["min_threshold"])
        purchase_price = st.number_input("Purchase Price", min_value=0.0, step=0.01, value=float(product["purchase_price"]))
        selling_price = st.number_input("Selling Price", min_value=0.0, step=0.01, value=float(product["selling_price"]))
        description = st.text_area("Description", value=product["description"])
        submitted = st.form_submit_button("Update Product")

    if submitted:
        payload = {
            "name": name,
            "category": category,
            "box_number": box_number,
            "min_threshold": int(min_threshold),
            "purchase_price": purchase_price,
            "selling_price": selling_price,
            "description": description,
        }

        try:
            update_product(product["id"], payload)
            st.success("Product updated")
            st.rerun()
        except Exception:
            st.error("Failed to save to cloud.")

# ---------------- CSV ----------------
st.divider()
st.subheader("📁 CSV Import / Export")

col1, col2 = st.columns(2)

with col1:
    try:
        st.download_button(
            label="Export CSV",
            data=export_products_csv(),
            file_name=f"inventory_export_{date.today().isoformat()}.csv",
            mime="text/csv"
        )
    except Exception:
        st.error("Export unavailable")

with col2:
    upload = st.file_uploader("Import CSV", type=["csv"])
    if upload is not None and st.button("Import"):
        try:
            summary = import_products_csv(upload.name, upload.getvalue())
            st.success(
                f"Successfully imported {summary['imported']} products "
                f"({summary['created']} new, {summary['updated']} updated)."
            )
            if summary["duplicate_skus"]:
                st.warning(f"Duplicate SKUs: {', '.join(summary['duplicate_skus'])}")
        except Exception:
            st.error("Failed to import CSV.")
