import requests
from config import API_BASE, API_TIMEOUT

def list_transactions(params=None):
    response = requests.get(
        f"{API_BASE}/transactions/",
        params=params,
        timeout=API_TIMEOUT
    )
    response.raise_for_status()
    return response.json()

def recent_transactions(limit: int = 20):
    response = requests.get(
        f"{API_BASE}/transactions/recent",
        params={"limit": limit},
        timeout=API_TIMEOUT
    )
    response.raise_for_status()
    return response.json()
