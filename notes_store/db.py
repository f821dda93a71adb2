import os

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./notes.db"


# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL,
    falling back to a local SQLite file.
    """
    load_dotenv()
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


# PUBLIC_INTERFACE
def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Builds an engine for the given URL.

    SQLite connections are shared across FastAPI's worker threads, so the
    same-thread check is disabled; an in-memory database additionally needs a
    single shared connection or every session would see an empty schema.
    """
    kwargs = {"future": True, "echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(database_url, **kwargs)


# PUBLIC_INTERFACE
def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to ``engine``; one session per request."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
