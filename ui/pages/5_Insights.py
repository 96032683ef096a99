import streamlit as st

from api.insights import insight_status, latest_insights, refresh_insights

st.header("🤖 AI Insights")
st.caption("Stock risks, sales trends and margin opportunities")

LANGUAGES = {"English": "en", "বাংলা": "bn", "हिन्दी": "hi"}

language = LANGUAGES[st.selectbox("Language", list(LANGUAGES.keys()))]

status = insight_status()
refresh = st.button(
    "Refresh Analysis",
    disabled=not status["available"],
    help=status.get("reason"),
)

if not status["available"]:
    st.warning(status.get("reason") or "Insights are unavailable")

report = None
with st.spinner("Analyzing inventory..."):
    try:
        report = refresh_insights(language) if refresh else latest_insights(language)
    except Exception:
        report = None

if not report or not report.get("available", False):
    st.info("Analysis unavailable.")
if report and report.get("summary"):
    st.write(report["summary"])

PRIORITY_ICONS = {"high": "🔴", "medium": "🟠", "low": "🟢"}

for item in (report or {}).get("insights", []):
    with st.container(border=True):
        st.markdown(
            f"{PRIORITY_ICONS.get(item['priority'], '')} **{item['title']}** · _{item['category']}_"
        )
        st.write(item["description"])
        st.caption(f"Action: {item['action']}")

forecast = (report or {}).get("forecast", [])
if forecast:
    st.subheader("Forecast")
    TREND_ICONS = {"increasing": "📈", "decreasing": "📉", "stable": "➖"}
    for item in forecast:
        st.markdown(f"{TREND_ICONS.get(item['trend'], '')} **{item['product_name']}**: {item['reasoning']}")
