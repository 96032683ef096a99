import os

API_BASE = os.getenv("API_BASE", "http://localhost:8000/api/v1")
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "30"))
