from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .core.config import settings


def _ensure_sqlite_directory(url: str) -> None:
    parsed = make_url(url)
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def _create_engine(url: str) -> Engine:
    engine_kwargs: dict[str, object] = {
        "echo": settings.debug,
        "future": True,
        "pool_pre_ping": True,
    }
    if make_url(url).get_backend_name() == "sqlite":
        # sessions are shared with FastAPI worker threads
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        _ensure_sqlite_directory(url)
    else:
        engine_kwargs["pool_recycle"] = 300
    return create_engine(url, **engine_kwargs)


engine = _create_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=True, autocommit=False, future=True)
Base = declarative_base()


@contextmanager
def session_scope(factory: Callable[[], Session] | None = None) -> Iterator[Session]:
    """Commit on success, roll back on any error, always close."""

    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
