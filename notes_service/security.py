"""Password hashing and bearer-token handling.

Tokens are stateless JWTs: a token is valid when its signature checks out
against ``SECRET_KEY`` and its ``exp`` claim has not passed. Nothing is stored
server side, so a token cannot be revoked before it expires.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict

from notes_service.config import Settings
from notes_service.errors import InvalidCredentials, TokenExpired, TokenInvalid, TokenMissing


class Identity(BaseModel):
    """The authenticated caller, as decoded from a verified token."""

    user_id: int
    username: str

    model_config = ConfigDict(frozen=True)


class IssuedToken(BaseModel):
    token: str
    username: str
    name: str
    expires_at: datetime


class PasswordHasher:
    """Thin wrapper around passlib's bcrypt context."""

    def __init__(self, settings: Settings):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.bcrypt_rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)

    def dummy_verify(self) -> None:
        # Spends the same time as a real verify so unknown usernames can't be
        # told apart from wrong passwords by response time.
        self._context.dummy_verify()


# PUBLIC_INTERFACE
def extract_token(headers: Mapping[str, str]) -> Optional[str]:
    """
    Pulls the token out of an ``Authorization: Bearer <token>`` header.

    Returns None when the header is absent, uses another scheme, or carries
    no token.
    """
    authorization = None
    for key, value in headers.items():
        if key.lower() == "authorization":
            authorization = value
            break
    if not authorization:
        return None

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class TokenIssuer:
    """Checks credentials and signs access tokens."""

    def __init__(self, credentials, hasher: PasswordHasher, settings: Settings, logger: logging.Logger):
        self.credentials = credentials
        self.hasher = hasher
        self.settings = settings
        self.logger = logger

    def login(self, username: str, password: str) -> IssuedToken:
        """
        Returns a signed token for ``username`` if ``password`` matches.

        An unknown username and a wrong password raise the same
        InvalidCredentials error.
        """
        user = self.credentials.find_by_username(username)
        if user is None:
            self.hasher.dummy_verify()
            self.logger.info("Login failed for username=%r", username)
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            self.logger.info("Login failed for username=%r", username)
            raise InvalidCredentials()

        issued = self.issue(user.id, user.username, user.name)
        self.logger.info("Issued token for user id=%s username=%r", user.id, user.username)
        return issued

    def issue(self, user_id: int, username: str, name: str = "") -> IssuedToken:
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=self.settings.token_expire_seconds)
        claims = {
            "id": user_id,
            "username": username,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(claims, self.settings.secret_key, algorithm=self.settings.jwt_algorithm)
        return IssuedToken(token=token, username=username, name=name, expires_at=expires_at)


class TokenVerifier:
    """Validates bearer tokens and resolves them to an Identity."""

    def __init__(self, settings: Settings, logger: logging.Logger):
        self.settings = settings
        self.logger = logger

    def verify(self, token: Optional[str]) -> Identity:
        if not token:
            raise TokenMissing()
        try:
            payload = jwt.decode(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.jwt_algorithm],
            )
        except ExpiredSignatureError:
            self.logger.debug("Rejected expired token")
            raise TokenExpired()
        except JWTError as exc:
            self.logger.debug("Rejected invalid token: %s", exc)
            raise TokenInvalid()

        user_id = payload.get("id")
        username = payload.get("username")
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(username, str):
            self.logger.debug("Rejected token without user identity")
            raise TokenInvalid()
        return Identity(user_id=user_id, username=username)
