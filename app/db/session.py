from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings


def _install_sqlite_write_locking(engine: Engine) -> None:
    # pysqlite opens transactions lazily and only before DML, so a
    # read-then-insert could interleave with another writer. Take the
    # database write lock at BEGIN instead; other writers wait on the
    # busy timeout rather than deadlocking on lock promotion.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(database_url: str, **kwargs: Any) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", settings.db_storage_timeout_seconds)
        engine = create_engine(url, connect_args=connect_args, **kwargs)
        _install_sqlite_write_locking(engine)
        return engine

    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


def is_postgresql_session(db: Session) -> bool:
    bind = db.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
