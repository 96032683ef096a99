import requests
from config import API_BASE, API_TIMEOUT

def list_products(query: str | None = None):
    params = {"q": query} if query else None
    res = requests.get(f"{API_BASE}/products/", params=params, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def create_product(payload: dict):
    res = requests.post(f"{API_BASE}/products/", json=payload, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def update_product(product_id: str, payload: dict):
    res = requests.patch(f"{API_BASE}/products/{product_id}", json=payload, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def export_products_csv():
    res = requests.get(f"{API_BASE}/products/export", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.content

def import_products_csv(filename: str, data: bytes):
    res = requests.post(
        f"{API_BASE}/products/import",
        files={"file": (filename, data, "text/csv")},
        timeout=API_TIMEOUT,
    )
    res.raise_for_status()
    return res.json()
