import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from inventory_master.config import settings
from inventory_master.database import SessionLocal, check_database_connection, init_db
from inventory_master.errors import setup_exception_handlers
from inventory_master.repository import InventoryRepository
from inventory_master.services.backup_service import DriveBackupStore
from inventory_master.services.insight_service import InsightRequester
from inventory_master.state import InventoryController

from inventory_master.routers import (
    products_router,
    transactions_router,
    analytics_router,
    insights_router,
    backup_router,
)

# ----------------------------
# Logging
# ----------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger("inventory_master")


def build_controller(session_factory: sessionmaker) -> InventoryController:
    insights = InsightRequester(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        api_base=settings.GEMINI_API_BASE,
        timeout=settings.INSIGHT_TIMEOUT,
        transaction_limit=settings.INSIGHT_TRANSACTION_LIMIT,
        offline=settings.OFFLINE_MODE,
    )
    return InventoryController(
        InventoryRepository(session_factory),
        insights,
        user_id=settings.DEFAULT_USER_ID,
        transaction_limit=settings.TRANSACTION_CACHE_LIMIT,
        refresh_interval=settings.CACHE_REFRESH_SECONDS,
    )

# ----------------------------
# Startup / shutdown
# ----------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    controller = build_controller(SessionLocal)
    controller.load()
    app.state.controller = controller
    app.state.drive_store = DriveBackupStore(
        settings.GOOGLE_DRIVE_ACCESS_TOKEN,
        timeout=settings.DRIVE_TIMEOUT,
    )

    for route in app.routes:
        methods = ", ".join(sorted(route.methods)) if hasattr(route, "methods") else "N/A"
        logger.debug("PATH: %-40s | METHODS: %s", route.path, methods)

    yield

    controller.close()

app = FastAPI(title="Inventory Master", lifespan=lifespan)

# ----------------------------
# CORS (allow Streamlit UI)
# ----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# ----------------------------
# Request logging
# ----------------------------
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    duration = round((time.time() - start_time) * 1000, 2)
    logger.info(
        f"{request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {duration}ms"
    )
    return response

# ----------------------------
# Health & root endpoints
# ----------------------------
@app.get("/")
def root():
    return {"status": "API running"}

@app.get("/health")
def health():
    return {"ok": True}

@app.get("/db-test")
def db_test():
    if not check_database_connection():
        raise HTTPException(status_code=503, detail="Database unreachable")
    return {"db": "connected"}

# ----------------------------
# Routers
# ----------------------------
app.include_router(products_router.router, prefix="/api/v1")
app.include_router(transactions_router.router, prefix="/api/v1")
app.include_router(analytics_router.router, prefix="/api/v1")
app.include_router(insights_router.router, prefix="/api/v1")
app.include_router(backup_router.router, prefix="/api/v1")
