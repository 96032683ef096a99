import logging
import time
from typing import Any, Generator, Optional
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

from inventory_master.config import settings

logger = logging.getLogger(__name__)

# -------------------------------
# Declarative base shared by all models
# -------------------------------
Base = declarative_base()

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


# -------------------------------
# Database URL
# -------------------------------
def get_database_url() -> str:
    """
    Pick the store the service runs against.

    Priority:
    1. DATABASE_URL (hosted backend)
    2. POSTGRES_URL (alternative)
    3. Local SQLite file at LOCAL_DATABASE_PATH
    """
    if settings.DATABASE_URL:
        # Hosted providers still hand out postgres:// URLs
        return settings.DATABASE_URL.replace("postgres://", "postgresql://", 1)

    if settings.POSTGRES_URL:
        return settings.POSTGRES_URL

    return f"sqlite:///{settings.LOCAL_DATABASE_PATH}"


# -------------------------------
# Engine
# -------------------------------
def _sqlite_options(url: str) -> dict[str, Any]:
    # Sessions are used from FastAPI's threadpool
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in IN_MEMORY_URLS:
        # One shared connection, or every session would see an empty database
        options["poolclass"] = StaticPool
    return options


def _server_options() -> dict[str, Any]:
    production = settings.ENVIRONMENT == "production"
    return {
        "poolclass": QueuePool,
        "pool_pre_ping": True,
        "pool_size": 10 if production else settings.DB_POOL_SIZE,
        "max_overflow": 20 if production else settings.DB_MAX_OVERFLOW,
        "pool_recycle": 1800 if production else settings.DB_POOL_RECYCLE,
        "pool_timeout": 30,
        "connect_args": {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
        },
    }


def _log_query_timings(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed = time.time() - conn.info["query_start_time"].pop(-1)
        logger.info("SQL took %.3fs: %s", elapsed, statement)


def create_database_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Build the engine for `url` (default: get_database_url()).

    SQLite gets a thread-shareable connection; server databases get a
    pre-pinged connection pool. With echo on, each statement is logged
    with its execution time. Echo is always off in production.
    """
    database_url = url or get_database_url()
    echo = settings.SQL_ECHO if echo is None else echo
    if settings.ENVIRONMENT == "production":
        echo = False

    if database_url.startswith("sqlite"):
        options = _sqlite_options(database_url)
    else:
        options = _server_options()

    engine = create_engine(database_url, echo=echo, **options)
    if echo:
        _log_query_timings(engine)
    return engine


engine = create_database_engine()


# -------------------------------
# Sessions
# -------------------------------
def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
        expire_on_commit=False,  # Rows outlive their session in the cache
    )


SessionLocal = create_session_factory(engine)


@contextmanager
def get_db_context(factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Session scope: commit on success, roll back and re-raise on error.

    Usage:
        with get_db_context() as db:
            ...
    """
    db = (factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# -------------------------------
# Health check & schema
# -------------------------------
def check_database_connection(bind: Optional[Engine] = None) -> bool:
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database connection error: %s", e)
        return False


def init_db(bind: Optional[Engine] = None) -> None:
    """Create any missing tables."""
    bind = bind or engine
    logger.info("Initializing database at %s", bind.url.render_as_string(hide_password=True))

    if not check_database_connection(bind):
        raise RuntimeError("Cannot connect to database")

    # Models must be registered on Base before create_all
    import inventory_master.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ready")
