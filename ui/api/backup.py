import requests
from config import API_BASE, API_TIMEOUT

def download_backup():
    res = requests.get(f"{API_BASE}/backup/", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.content

def restore_backup(snapshot: dict):
    res = requests.post(f"{API_BASE}/backup/restore", json=snapshot, timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def drive_status():
    res = requests.get(f"{API_BASE}/backup/drive/status", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def backup_to_drive():
    res = requests.post(f"{API_BASE}/backup/drive", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()

def restore_from_drive():
    res = requests.post(f"{API_BASE}/backup/drive/restore", timeout=API_TIMEOUT)
    res.raise_for_status()
    return res.json()
