"""
Database initialization script.

Run ``python -m notes_store.init_db`` to create all required tables in the
database named by DATABASE_URL.
"""
from notes_store.db import create_db_engine, get_database_url
from notes_store.models import Base


# PUBLIC_INTERFACE
def init_db(engine=None):
    """Initializes the database by creating all tables if they do not exist."""
    if engine is None:
        engine = create_db_engine(get_database_url())
    Base.metadata.create_all(bind=engine)
    return engine


if __name__ == "__main__":
    init_db()
    print("Database tables created successfully.")
