import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from coursedesk.core import config
from coursedesk.core.errors import InternalError

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_size", config.DB_POOL_SIZE)
        kwargs.setdefault("pool_pre_ping", True)

    new_engine = create_engine(url, echo=config.DB_ECHO, **kwargs)
    if new_engine.dialect.name == "sqlite":
        enable_sqlite_foreign_keys(new_engine)
    return new_engine


def enable_sqlite_foreign_keys(target: Engine) -> None:
    # SQLite ignores ON DELETE / FK constraints unless asked per connection.
    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def init_db(bind: Engine | None = None) -> None:
    # Imported for their side effect of registering tables on Base.metadata.
    from coursedesk.models import course, student, user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_guard(db: Session, message: str) -> Iterator[None]:
    """Map storage failures inside the block to a generic InternalError.

    The session is rolled back so a failed multi-row write leaves nothing behind.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(message)
        raise InternalError(message) from exc
