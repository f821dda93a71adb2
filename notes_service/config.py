import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from notes_store.db import DEFAULT_DATABASE_URL

DEV_SECRET_KEY = "temporary_dev_secret"


class Settings(BaseModel):
    """Runtime configuration, handed to the app factory and each component."""

    database_url: str = DEFAULT_DATABASE_URL
    secret_key: str = DEV_SECRET_KEY
    jwt_algorithm: str = "HS256"
    token_expire_seconds: int = 60 * 60
    bcrypt_rounds: int = Field(12, ge=4, le=31)
    note_content_min_length: int = Field(5, ge=1)
    username_min_length: int = Field(3, ge=1)
    password_min_length: int = Field(3, ge=1)
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = ConfigDict(frozen=True)

    @property
    def uses_dev_secret(self) -> bool:
        return self.secret_key == DEV_SECRET_KEY

    @classmethod
    def from_env(cls) -> "Settings":
        """Reads settings from the process environment (and a .env file if present)."""
        load_dotenv()
        values = {
            "database_url": os.getenv("DATABASE_URL"),
            "secret_key": os.getenv("SECRET_KEY"),
            "jwt_algorithm": os.getenv("JWT_ALGORITHM"),
            "token_expire_seconds": os.getenv("TOKEN_EXPIRE_SECONDS"),
            "bcrypt_rounds": os.getenv("BCRYPT_ROUNDS"),
            "note_content_min_length": os.getenv("NOTE_CONTENT_MIN_LENGTH"),
            "username_min_length": os.getenv("USERNAME_MIN_LENGTH"),
            "password_min_length": os.getenv("PASSWORD_MIN_LENGTH"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        origins = os.getenv("CORS_ORIGINS")
        if origins:
            values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]
        return cls(**{k: v for k, v in values.items() if v is not None})
