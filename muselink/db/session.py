from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from muselink.core.config import settings


def _enable_sqlite_immediate_transactions(engine: Engine) -> None:
    """
    SQLite ignores FOR UPDATE. Opening every transaction with BEGIN IMMEDIATE
    takes the database write lock up front, so concurrent unlocks serialize
    the same way row locks serialize them on PostgreSQL.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.sqlite_busy_timeout_seconds,
            },
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle,
        connect_args={"connect_timeout": settings.db_connect_timeout},
    )


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def apply_lock_timeout(db: Session) -> None:
    """Bound row-lock waits for the current transaction (PostgreSQL only)."""
    bind = db.get_bind()
    if bind.dialect.name == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = {int(settings.db_lock_timeout_ms)}"))


# lock_not_available, deadlock_detected, serialization_failure, admin_shutdown
TRANSIENT_PGCODES = {"55P03", "40P01", "40001", "57P01"}
TRANSIENT_MESSAGES = (
    "database is locked",
    "database table is locked",
    "server closed the connection",
    "could not connect to server",
    "connection refused",
    "terminating connection",
)


def is_transient_store_error(exc: Exception) -> bool:
    """Lock timeouts, deadlocks, busy SQLite and dropped connections."""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if not isinstance(exc, OperationalError):
        return False
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode:
        return pgcode in TRANSIENT_PGCODES
    message = str(exc.orig).lower()
    return any(fragment in message for fragment in TRANSIENT_MESSAGES)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
