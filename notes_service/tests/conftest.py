import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from notes_service.config import Settings
from notes_service.dependencies import get_db
from notes_service.main import create_app
from notes_service.notes import NoteStore
from notes_service.security import PasswordHasher, TokenIssuer, TokenVerifier
from notes_service.users import CredentialStore
from notes_store.db import create_db_engine
from notes_store.models import Base


@pytest.fixture(scope="session")
def settings():
    """Test settings: in-memory SQLite and the cheapest bcrypt work factor."""
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret-key",
        bcrypt_rounds=4,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def logger():
    """A propagating logger so caplog can see what the components log."""
    test_logger = logging.getLogger("notes_service_tests")
    test_logger.setLevel(logging.DEBUG)
    return test_logger


@pytest.fixture(scope="session")
def engine(settings):
    """Fixture for a persistent in-memory SQLite engine for the test session."""
    return create_db_engine(settings.database_url)


@pytest.fixture
def tables(engine):
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(engine, tables):
    """Provide a SQLAlchemy session for isolated test usage."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def app(settings, logger):
    return create_app(settings, logger)


@pytest.fixture
def client(app, db_session):
    """Fixture for FastAPI TestClient with test DB dependency override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def hasher(settings):
    return PasswordHasher(settings)


@pytest.fixture
def credential_store(db_session, hasher, settings, logger):
    return CredentialStore(db_session, hasher, settings, logger)


@pytest.fixture
def token_issuer(credential_store, hasher, settings, logger):
    return TokenIssuer(credential_store, hasher, settings, logger)


@pytest.fixture
def token_verifier(settings, logger):
    return TokenVerifier(settings, logger)


@pytest.fixture
def note_store(db_session, settings, logger):
    return NoteStore(db_session, settings, logger)


@pytest.fixture
def user_data():
    """Returns default user data for registration."""
    return {
        "username": "kcmaxwell",
        "name": "K C Maxwell",
        "password": "password123",
    }


@pytest.fixture
def second_user_data():
    """Returns a second user's data."""
    return {
        "username": "mluukkai",
        "name": "Matti Luukkainen",
        "password": "salainen",
    }


def register_and_auth(client, username, name, password):
    """Helper for registering then logging in to get a bearer token."""
    r1 = client.post("/users", json={
        "username": username, "name": name, "password": password
    })
    assert r1.status_code == 201

    r2 = client.post("/login", json={
        "username": username, "password": password
    })
    assert r2.status_code == 200
    return r2.json()["token"]


@pytest.fixture
def auth_header(client, user_data):
    """Returns {'Authorization': 'Bearer <token>'} for default user."""
    token = register_and_auth(client, user_data["username"], user_data["name"], user_data["password"])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def second_auth_header(client, second_user_data):
    """Returns auth header for second user."""
    token = register_and_auth(
        client, second_user_data["username"], second_user_data["name"], second_user_data["password"]
    )
    return {"Authorization": f"Bearer {token}"}
