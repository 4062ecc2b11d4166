from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Generator, Optional
import logging

from core.config import settings
from core.errors import ConflictError, StoreError

logger = logging.getLogger(__name__)

# ============================================================
# ✅ Database URL setup (PostgreSQL preferred)
# ============================================================
DATABASE_URL = settings.DATABASE_URL
IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    logger.warning("⚠️ Using SQLite database at %s", DATABASE_URL)
else:
    logger.info("✅ Using database from environment")


def build_engine(url: str, **kwargs):
    """Create an engine; SQLite gets FK enforcement and cross-thread access."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    new_engine = create_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        connect_args=connect_args,
        **kwargs,
    )

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_fk(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


# ============================================================
# ✅ Create SQLModel engine
# ============================================================
engine = build_engine(DATABASE_URL)


# ============================================================
# ✅ Create tables (called at startup)
# ============================================================
def create_db_and_tables() -> None:
    """
    Create all database tables based on SQLModel models.
    This runs automatically at app startup.
    """
    # Table classes must be registered on the metadata first
    import models.models  # noqa: F401

    try:
        SQLModel.metadata.create_all(engine)
        logger.info("✅ All database tables created successfully.")
    except Exception as e:
        logger.error(f"❌ Failed to create tables: {e}")
        raise


# ============================================================
# ✅ Dependency: FastAPI session generator
# ============================================================
def get_session() -> Generator[Session, None, None]:
    """
    Provides a SQLModel Session to FastAPI dependencies.
    Closes automatically after request completes.
    """
    with Session(engine) as session:
        yield session


# ============================================================
# ✅ Commit / flush helpers (map store failures onto the error taxonomy)
# ============================================================
def is_unique_violation(error: IntegrityError, column: str) -> bool:
    """True when the driver reports a unique-key clash involving `column`."""
    message = str(error.orig).lower()
    return ("unique" in message or "duplicate key" in message) and column in message


def _raise_store_error(
    session: Session,
    error: SQLAlchemyError,
    action: str,
    conflict_message: Optional[str],
    conflict_column: str,
) -> None:
    session.rollback()
    if isinstance(error, IntegrityError):
        if conflict_message and is_unique_violation(error, conflict_column):
            raise ConflictError(conflict_message) from error
        logger.exception("Integrity error while %s", action)
        raise StoreError(f"A database constraint was violated while {action}.", transient=False) from error
    logger.exception("Database error while %s", action)
    raise StoreError(f"A database error occurred while {action}.") from error


def commit_or_raise(
    session: Session,
    action: str,
    conflict_message: Optional[str] = None,
    conflict_column: str = "title_key",
) -> None:
    """
    Commit the unit of work or roll back and raise.
    A unique-key violation on `conflict_column` becomes ConflictError when
    `conflict_message` is given; anything else from the driver becomes StoreError.
    """
    try:
        session.commit()
    except SQLAlchemyError as e:
        _raise_store_error(session, e, action, conflict_message, conflict_column)


def flush_or_raise(
    session: Session,
    action: str,
    conflict_message: Optional[str] = None,
    conflict_column: str = "title_key",
) -> None:
    """Flush pending rows with the same error mapping as `commit_or_raise`."""
    try:
        session.flush()
    except SQLAlchemyError as e:
        _raise_store_error(session, e, action, conflict_message, conflict_column)
