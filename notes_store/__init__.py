from notes_store.db import create_db_engine, get_database_url, make_session_factory
from notes_store.init_db import init_db
from notes_store.models import Base, Note, User

__all__ = [
    "Base",
    "Note",
    "User",
    "create_db_engine",
    "get_database_url",
    "init_db",
    "make_session_factory",
]
