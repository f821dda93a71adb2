import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notes_service.config import Settings
from notes_service.errors import DuplicateUsername, ValidationError
from notes_service.security import PasswordHasher
from notes_store.models import User


def normalize_username(username: str) -> str:
    """Usernames are stored and looked up without surrounding whitespace."""
    return (username or "").strip()


class CredentialStore:
    """Registers users and looks them up. Raw passwords never reach the database."""

    def __init__(self, db: Session, hasher: PasswordHasher, settings: Settings, logger: logging.Logger):
        self.db = db
        self.hasher = hasher
        self.settings = settings
        self.logger = logger

    def register(self, username: str, name: str, password: str) -> User:
        username = normalize_username(username)
        if len(username) < self.settings.username_min_length:
            raise ValidationError(
                f"Username must be at least {self.settings.username_min_length} characters long."
            )
        if len(password or "") < self.settings.password_min_length:
            raise ValidationError(
                f"Password must be at least {self.settings.password_min_length} characters long."
            )
        if self.find_by_username(username) is not None:
            raise DuplicateUsername()

        user = User(
            username=username,
            name=(name or "").strip(),
            password_hash=self.hasher.hash(password),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same username.
            self.db.rollback()
            raise DuplicateUsername()
        self.db.refresh(user)
        self.logger.info("Registered user id=%s username=%r", user.id, user.username)
        return user

    def find_by_username(self, username: str) -> Optional[User]:
        username = normalize_username(username)
        return self.db.query(User).filter(User.username == username).first()

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()
