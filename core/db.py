import logging
import os
import re
import ssl
import time
import urllib.parse
from contextlib import contextmanager

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv(override=False)

logger = logging.getLogger(__name__)

# Check if we're in a testing environment
TESTING = os.getenv("TESTING", "false").lower() == "true"


def _resolve_database_url():
    url = os.getenv("DATABASE_URL")
    if not url:
        if TESTING:
            logger.warning("DATABASE_URL not set, using in-memory SQLite for tests")
            return "sqlite:///:memory:", None
        raise ValueError("DATABASE_URL environment variable is not set")

    if url.startswith("sqlite"):
        return url, None

    # Heroku style URLs
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    parsed = urllib.parse.urlparse(url)
    ssl_mode = urllib.parse.parse_qs(parsed.query).get("sslmode", [None])[0]

    # Route through pg8000, dropping URL-level SSL params
    if url.startswith("postgresql://"):
        match = re.match(r"postgresql://([^:]+):([^@]+)@([^:/]+):?(\d*)/?([^?]*)", url)
        if match:
            username, password, host, port, dbname = match.groups()
            url = f"postgresql+pg8000://{username}:{password}@{host}:{port or '5432'}/{dbname}"

    return url, ssl_mode


DATABASE_URL, _SSL_MODE = _resolve_database_url()

if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    connect_args = {}
    if not (_SSL_MODE == "disable" or TESTING):
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl_context"] = ssl_context

    engine = create_engine(
        DATABASE_URL,
        pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30")),
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE_SECONDS", "300")),
        pool_pre_ping=True,
        echo=False,
        connect_args=connect_args,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def install_slow_query_logging(_engine, threshold_ms=None):
    if threshold_ms is None:
        threshold_ms = float(os.getenv("SLOW_DB_QUERY_MS", "200"))
    if threshold_ms <= 0:
        return

    slow_logger = logging.getLogger("db.slow_query")

    @event.listens_for(_engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(_engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if elapsed_ms < threshold_ms:
            return

        stmt = " ".join(str(statement).split())[:500]
        slow_logger.warning(
            "SLOW_DB_QUERY | ms=%.1f | stmt=%s | params=%s",
            elapsed_ms,
            stmt,
            repr(parameters)[:500],
        )


install_slow_query_logging(engine)


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context():
    """Context manager for sessions used outside a request (jobs, scripts)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all tables"""
    import models  # noqa: F401  registers mappers on Base

    Base.metadata.create_all(bind=engine)


def drop_tables():
    """Drop all tables"""
    Base.metadata.drop_all(bind=engine)
