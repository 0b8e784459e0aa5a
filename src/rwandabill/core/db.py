from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker

from rwandabill.core.config import settings

_url = make_url(settings.database_url)


def is_sqlite() -> bool:
    return _url.drivername.startswith("sqlite")


# SQLite connections are shared across the threadpool FastAPI runs sync routes on.
_connect_args: dict = {"check_same_thread": False} if is_sqlite() else {}

engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def db_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
