# freight_market/db.py
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from freight_market.core.config import settings
from freight_market.models.base import Base

__all__ = ["Base", "engine", "SessionLocal", "get_db", "make_engine", "atomic"]


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        # FastAPI atiende cada request en un hilo del pool
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args

    eng = create_engine(url, echo=settings.SQL_ECHO, **kwargs)

    if eng.dialect.name == "sqlite":
        @event.listens_for(eng, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return eng


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Todo lo que pase dentro se confirma junto o no se confirma:
    commit al salir, rollback ante cualquier excepción (y se relanza).
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
