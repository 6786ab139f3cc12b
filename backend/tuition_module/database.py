import errno
import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings


logger = logging.getLogger(__name__)


def ensure_data_dir(path: str) -> None:
    """Create the SQLite data directory, tolerating only an existing one."""
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        if exc.errno == errno.EEXIST and os.path.isdir(path):
            return
        raise


if settings.database_url.startswith("sqlite:///"):
    ensure_data_dir(os.path.dirname(os.path.abspath(settings.database_url[len("sqlite:///"):])))


def enable_sqlite_savepoints(target_engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the outer transaction.

    pysqlite otherwise defers BEGIN to the first DML statement, and releasing
    a SAVEPOINT opened before it commits the whole transaction.
    """

    @event.listens_for(target_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


engine = create_engine(settings.database_url, future=True)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_database(bind=None) -> None:
    # Import registers every table on Base.metadata.
    from . import models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Database tables ready on {target.url}")
