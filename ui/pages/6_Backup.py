import json

import streamlit as st

from api.backup import (
    download_backup,
    restore_backup,
    drive_status,
    backup_to_drive,
    restore_from_drive,
)

st.header("💾 Backup & Restore")

# ---------------- Local file ----------------
st.subheader("Local File")

try:
    st.download_button(
        label="Download Backup",
        data=download_backup(),
        file_name="inventory_backup.json",
        mime="application/json"
    )
except Exception:
    st.error("Backup unavailable")

upload = st.file_uploader("Restore from file", type=["json"])
confirm_local = st.checkbox("This will overwrite your current inventory", key="confirm_local")

if upload is not None and st.button("Restore", disabled=not confirm_local):
    try:
        summary = restore_backup(json.loads(upload.getvalue()))
        st.success(
            f"Restore successful: {summary['products']['imported']} products, "
            f"{summary['transactions_added']} transactions added."
        )
    except Exception:
        st.error("Restore failed.")

# ---------------- Google Drive ----------------
st.divider()
st.subheader("Google Drive")

try:
    connected = drive_status()["connected"]
except Exception:
    connected = False

if not connected:
    st.info("Google Drive is not connected. Set GOOGLE_DRIVE_ACCESS_TOKEN on the server.")

col1, col2 = st.columns(2)

with col1:
    if st.button("Backup to Drive", disabled=not connected):
        try:
            backup_to_drive()
            st.success("Backup successful!")
        except Exception:
            st.error("Backup failed.")

with col2:
    confirm_drive = st.checkbox("Overwrite current inventory", key="confirm_drive", disabled=not connected)
    if st.button("Restore from Drive", disabled=not (connected and confirm_drive)):
        try:
            restore_from_drive()
            st.success("Restore successful!")
        except Exception:
            st.error("Restore failed.")
