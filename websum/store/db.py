from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

class Base(DeclarativeBase):
    pass

def make_engine(url: str) -> Engine:
    """
    Build an engine for the configured URL.
    SQLite is shared between the event loop and FastAPI's threadpool, so we
    disable the same-thread check; in-memory databases get a single static
    connection so every session sees the same tables.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, **kwargs)

def make_session_factory(engine: Engine) -> sessionmaker:
    # expire_on_commit=False: repositories hand detached rows back to callers
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

def init_db(engine: Engine):
    # Tables are created via models import side-effect
    from . import models  # noqa
    Base.metadata.create_all(bind=engine)
