import streamlit as st

from api.insights import insight_status
from api.inventory import get_stats

st.set_page_config(
    page_title="Inventory Master",
    page_icon="📦",
    layout="wide"
)

st.title("📦 Inventory Master")
st.caption("Stock tracking, reports, AI insights and backups for your shop")

try:
    stats = get_stats()
except Exception:
    st.error("Cannot reach the inventory service. Check that the API is running.")
else:
    col1, col2 = st.columns(2)
    col1.metric("Units in stock", stats["total_items"])
    col2.metric("Needs attention", stats["low_stock_items"] + stats["out_of_stock"])

status = insight_status()
if not status["available"]:
    st.info(f"AI insights are off: {status.get('reason') or 'unavailable'}")

st.markdown("""
Pages:
- **Overview**: stock value, alerts and latest movements
- **Inventory**: record stock coming in or going out
- **Products**: add, edit, search, CSV import/export
- **Transactions**: ledger, filters and sales reports
- **Insights**: AI analysis in English, Bengali or Hindi
- **Backup**: download, restore and Google Drive backups
""")
