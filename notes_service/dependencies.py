"""FastAPI dependencies that build the components for a request.

Everything is taken from ``app.state``, which ``create_app`` fills in, so two
apps with different settings can live in the same process.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from notes_service.config import Settings
from notes_service.notes import NoteStore
from notes_service.security import Identity, PasswordHasher, TokenIssuer, TokenVerifier, extract_token
from notes_service.users import CredentialStore


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_logger(request: Request) -> logging.Logger:
    return request.app.state.logger


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_credential_store(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_settings),
    logger: logging.Logger = Depends(get_logger),
) -> CredentialStore:
    return CredentialStore(db, hasher, settings, logger)


def get_token_issuer(
    credentials: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_settings),
    logger: logging.Logger = Depends(get_logger),
) -> TokenIssuer:
    return TokenIssuer(credentials, hasher, settings, logger)


def get_note_store(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    logger: logging.Logger = Depends(get_logger),
) -> NoteStore:
    return NoteStore(db, settings, logger)


def require_identity(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """Resolves the caller from the bearer token or raises a 401 error."""
    return verifier.verify(extract_token(request.headers))
