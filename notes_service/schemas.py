from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    username: str = Field(..., max_length=64, description="Unique login name")
    name: str = Field("", max_length=128, description="Display name")
    password: str = Field(..., max_length=256)


class UserNoteOut(BaseModel):
    id: int
    content: str
    important: bool

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    id: int
    username: str
    name: str
    notes: List[UserNoteOut] = []

    model_config = ConfigDict(from_attributes=True)


class LoginIn(BaseModel):
    username: str
    password: str


class LoginOut(BaseModel):
    token: str
    username: str
    name: str
    expires_at: datetime


class NoteIn(BaseModel):
    content: str = Field(..., description="Note text")
    important: bool = False


class NoteOwnerOut(BaseModel):
    id: int
    username: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class NoteOut(BaseModel):
    id: int
    content: str
    important: bool
    created_at: Optional[datetime] = None
    user: NoteOwnerOut = Field(validation_alias="owner")

    model_config = ConfigDict(from_attributes=True)
