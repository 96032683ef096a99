import requests
from config import API_BASE, API_TIMEOUT

def insight_status():
    """Status of the insight service; unreachable backend counts as offline."""
    try:
        res = requests.get(f"{API_BASE}/insights/status", timeout=5)
        res.raise_for_status()
        return res.json()
    except requests.RequestException:
        return {"available": False, "reason": "You are offline"}

def latest_insights(language: str):
    res = requests.get(f"{API_BASE}/insights/", params={"language": language}, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def refresh_insights(language: str):
    res = requests.post(f"{API_BASE}/insights/refresh", params={"language": language}, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()
