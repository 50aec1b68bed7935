import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.config import DATABASE_URL, DB_MAX_OVERFLOW, DB_POOL_RECYCLE, DB_POOL_SIZE

logger = logging.getLogger(__name__)


def _resolve_database_url(url: str) -> str:
    if url.startswith("postgresql+") or not url.startswith("postgresql://"):
        return url
    try:
        import psycopg2  # noqa: F401
        return url
    except ImportError:
        pass
    try:
        import psycopg  # noqa: F401
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    except ImportError:
        return url


EFFECTIVE_DATABASE_URL = _resolve_database_url(DATABASE_URL)
is_sqlite = EFFECTIVE_DATABASE_URL.startswith("sqlite")

engine_kwargs = {
    "connect_args": {"check_same_thread": False} if is_sqlite else {},
    "pool_pre_ping": True,
    "pool_recycle": DB_POOL_RECYCLE,
}
if not is_sqlite:
    engine_kwargs["pool_size"] = DB_POOL_SIZE
    engine_kwargs["max_overflow"] = DB_MAX_OVERFLOW

engine = create_engine(EFFECTIVE_DATABASE_URL, **engine_kwargs)

if is_sqlite:
    # order lines rely on ON DELETE SET NULL when a game row goes away
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# flushes are explicit so aggregate queries see pending deletes only when asked
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database ready (%s)", engine.url.get_backend_name())


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
