from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker


def _connect_args(url: str) -> dict:
    # SQLite connections are handed across FastAPI's threadpool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def build_engine(url: str) -> Engine:
    return create_engine(
        url,
        pool_pre_ping=True,   # checks stale connections
        connect_args=_connect_args(url),
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """One session per request, from the factory create_app put on app.state."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
