import requests
from config import API_BASE, API_TIMEOUT

def apply_stock_movement(payload: dict):
    res = requests.post(f"{API_BASE}/transactions/", json=payload, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def get_stats():
    res = requests.get(f"{API_BASE}/analytics/stats", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def get_low_stock():
    res = requests.get(f"{API_BASE}/analytics/low-stock", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def get_daily_report(day: str | None = None):
    params = {"day": day} if day else None
    res = requests.get(f"{API_BASE}/analytics/reports/daily", params=params, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def get_range_report(start: str, end: str):
    res = requests.get(
        f"{API_BASE}/analytics/reports/range",
        params={"start": start, "end": end},
        timeout=API_TIMEOUT
    )
    res.raise_for_status()
    return res.json()
