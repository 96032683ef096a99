import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for inventory domain errors."""


class PersistenceError(InventoryError):
    """The backing store rejected a read or a write."""


class SyncError(InventoryError):
    """A change could not be committed; the last committed state still stands."""


class InsightUnavailable(InventoryError):
    """Insights cannot be requested right now (offline or not configured)."""


class BackupError(InventoryError):
    pass


class BackupNotFound(BackupError):
    pass


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(SyncError)
    @app.exception_handler(PersistenceError)
    async def sync_error_handler(request: Request, exc: InventoryError):
        logger.error("Sync failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={"detail": "Cloud sync error. Please check connection."},
        )

    @app.exception_handler(InsightUnavailable)
    async def insight_unavailable_handler(request: Request, exc: InsightUnavailable):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(BackupNotFound)
    async def backup_not_found_handler(request: Request, exc: BackupNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BackupError)
    async def backup_error_handler(request: Request, exc: BackupError):
        logger.error("Backup failure: %s", exc)
        return JSONResponse(status_code=502, content={"detail": str(exc)})
