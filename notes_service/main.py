import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notes_service.config import Settings
from notes_service.dependencies import (
    get_credential_store,
    get_note_store,
    get_token_issuer,
    require_identity,
)
from notes_service.errors import AuthenticationError, NotesServiceError, TokenInvalid
from notes_service.log import get_logger
from notes_service.notes import NoteStore
from notes_service.schemas import LoginIn, LoginOut, NoteIn, NoteOut, UserCreate, UserOut
from notes_service.security import Identity, PasswordHasher, TokenIssuer, TokenVerifier
from notes_service.users import CredentialStore
from notes_store.db import create_db_engine, make_session_factory
from notes_store.models import Base


def register_exception_handlers(app: FastAPI, logger: logging.Logger) -> None:
    @app.exception_handler(NotesServiceError)
    def notes_service_error_handler(request: Request, exc: NotesServiceError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    def request_validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "ValidationError",
                "detail": "Malformed request.",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    def http_exception_handler(request: Request, exc: StarletteHTTPException):
        error = "UnknownEndpoint" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTPError"
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": error, "detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "InternalServerError", "detail": "Internal server error."},
        )


def register_routes(app: FastAPI) -> None:
    # Root Health Check
    @app.get("/", summary="Health Check", tags=["General"])
    def health_check():
        """Simple health check endpoint."""
        return {"message": "Healthy"}

    #####################
    # USERS & LOGIN
    #####################

    # PUBLIC_INTERFACE
    @app.post("/users", response_model=UserOut, status_code=201, summary="Register a new user", tags=["Authentication"])
    def register(user: UserCreate, credentials: CredentialStore = Depends(get_credential_store)):
        """
        Register a new user.
        Returns the newly created user record (excluding the password hash).
        """
        return credentials.register(user.username, user.name, user.password)

    # PUBLIC_INTERFACE
    @app.get("/users", response_model=List[UserOut], summary="List users with their notes", tags=["Authentication"])
    def list_users(credentials: CredentialStore = Depends(get_credential_store)):
        return credentials.list_users()

    # PUBLIC_INTERFACE
    @app.get("/users/me", response_model=UserOut, summary="Get current user profile", tags=["Authentication"])
    def get_profile(
        identity: Identity = Depends(require_identity),
        credentials: CredentialStore = Depends(get_credential_store),
    ):
        user = credentials.get(identity.user_id)
        if user is None:
            raise TokenInvalid("Token user no longer exists.")
        return user

    # PUBLIC_INTERFACE
    @app.post("/login", response_model=LoginOut, summary="Login and get a bearer token", tags=["Authentication"])
    def login(form: LoginIn, issuer: TokenIssuer = Depends(get_token_issuer)):
        """
        User login.
        Returns a signed token to send as ``Authorization: Bearer <token>``.
        """
        return issuer.login(form.username, form.password)

    #####################
    # NOTES ENDPOINTS
    #####################

    # PUBLIC_INTERFACE
    @app.get("/resources", response_model=List[NoteOut], summary="List all notes", tags=["Notes"])
    def list_notes(notes: NoteStore = Depends(get_note_store)):
        """
        Get every note. Reads are public; each note names its owner.
        """
        return notes.list_all()

    # PUBLIC_INTERFACE
    @app.get("/resources/{note_id}", response_model=NoteOut, summary="Get a single note", tags=["Notes"])
    def get_note(note_id: int, notes: NoteStore = Depends(get_note_store)):
        return notes.get(note_id)

    # PUBLIC_INTERFACE
    @app.post("/resources", response_model=NoteOut, status_code=201, summary="Create a new note", tags=["Notes"])
    def create_note(
        note: NoteIn,
        identity: Identity = Depends(require_identity),
        notes: NoteStore = Depends(get_note_store),
    ):
        """
        Create a new note owned by the authenticated user.
        """
        return notes.create(identity, note.content, note.important)

    # PUBLIC_INTERFACE
    @app.put("/resources/{note_id}", response_model=NoteOut, summary="Replace a note", tags=["Notes"])
    def update_note(
        note_id: int,
        note: NoteIn,
        identity: Identity = Depends(require_identity),
        notes: NoteStore = Depends(get_note_store),
    ):
        """
        Replace the content and importance of a note owned by the authenticated user.
        """
        return notes.update(identity, note_id, note.content, note.important)

    # PUBLIC_INTERFACE
    @app.delete("/resources/{note_id}", status_code=204, summary="Delete a note", tags=["Notes"])
    def delete_note(
        note_id: int,
        identity: Identity = Depends(require_identity),
        notes: NoteStore = Depends(get_note_store),
    ):
        """
        Delete a note owned by the authenticated user. Deleting a missing note succeeds.
        """
        notes.delete(identity, note_id)
        return Response(status_code=204)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> FastAPI:
    """Builds the FastAPI application from explicit settings and an injected logger."""
    if settings is None:
        settings = Settings.from_env()
    if logger is None:
        logger = get_logger(settings.log_level)
    if settings.uses_dev_secret:
        logger.warning("SECRET_KEY not set; signing tokens with the development secret")

    engine = create_db_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)
        logger.info("Notes service started")
        yield
        engine.dispose()

    app = FastAPI(
        title="Notes Service API",
        description="Token-authenticated notes API: users register, log in for a bearer token, and manage the notes they own.",
        version="1.0.0",
        openapi_tags=[
            {"name": "Authentication", "description": "User registration and login"},
            {"name": "Notes", "description": "Create, list, update and delete notes"},
        ],
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.logger = logger
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.password_hasher = PasswordHasher(settings)
    app.state.token_verifier = TokenVerifier(settings, logger)

    register_exception_handlers(app, logger)
    register_routes(app)
    return app


app = create_app()
