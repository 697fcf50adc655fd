import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import APPOINTMENT_LOCK_TIMEOUT_MS, DATABASE_URL

logger = logging.getLogger(__name__)

# Get environment-specific pool settings
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "20"))
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "30"))
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "300"))
ENABLE_QUERY_LOGGING = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_THRESHOLD = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def build_engine(url: str, lock_timeout_ms: int = APPOINTMENT_LOCK_TIMEOUT_MS):
    """Create an engine with pooling for server databases, plain settings for SQLite"""
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": lock_timeout_ms / 1000},
        )

        @event.listens_for(sqlite_engine, "connect")
        def _configure_sqlite_connection(dbapi_connection, _connection_record):
            # SQLAlchemy emits BEGIN itself (see below) instead of pysqlite deferring it
            dbapi_connection.isolation_level = None
            # SQLite only enforces ON DELETE CASCADE / RESTRICT with foreign keys switched on
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        # SELECT ... FOR UPDATE is a no-op on SQLite; take the database write lock when the
        # transaction starts so queue read-modify-write sections are serialized.
        # A writer still holding it past the timeout surfaces as "database is locked".
        @event.listens_for(sqlite_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return sqlite_engine

    return create_engine(
        url,
        pool_pre_ping=True,  # Test connections before using
        pool_recycle=POOL_RECYCLE,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        echo=False,  # Don't log all SQL (use slow query logging instead)
    )


def install_slow_query_logging(target_engine, threshold: float = SLOW_QUERY_THRESHOLD):
    @event.listens_for(target_engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(target_engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")


try:
    engine = build_engine(DATABASE_URL)
    logger.info("✅ Database engine created successfully")
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

if ENABLE_QUERY_LOGGING:
    install_slow_query_logging(engine)
    logger.info(f"📊 Slow query logging enabled (threshold: {SLOW_QUERY_THRESHOLD}s)")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
