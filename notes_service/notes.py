import logging
from typing import List

from sqlalchemy.orm import Session

from notes_service.config import Settings
from notes_service.errors import Forbidden, NotFound, TokenInvalid, ValidationError
from notes_service.security import Identity
from notes_store.models import Note, User

# Largest id a 64-bit signed INTEGER column can hold.
MAX_NOTE_ID = 2 ** 63 - 1


class NoteStore:
    """
    Notes scoped by ownership.

    Reads are public: ``list_all`` and ``get`` return every user's notes.
    Only the owner may update or delete a note. Deleting a note that does not
    exist succeeds, so callers cannot probe for note ids.
    """

    def __init__(self, db: Session, settings: Settings, logger: logging.Logger):
        self.db = db
        self.settings = settings
        self.logger = logger

    def _check_content(self, content: str) -> str:
        content = content or ""
        minimum = self.settings.note_content_min_length
        if len(content.strip()) < minimum:
            raise ValidationError(f"Content must be at least {minimum} characters long.")
        return content

    def _owned(self, identity: Identity, note_id: int) -> Note:
        note = self.get(note_id)
        if note.user_id != identity.user_id:
            self.logger.info(
                "User id=%s denied access to note id=%s owned by user id=%s",
                identity.user_id, note.id, note.user_id,
            )
            raise Forbidden()
        return note

    def create(self, identity: Identity, content: str, important: bool = False) -> Note:
        content = self._check_content(content)
        owner = self.db.get(User, identity.user_id)
        if owner is None:
            raise TokenInvalid("Token user no longer exists.")

        note = Note(content=content, important=bool(important), user_id=owner.id)
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)
        self.logger.info("User id=%s created note id=%s", owner.id, note.id)
        return note

    def list_all(self) -> List[Note]:
        return self.db.query(Note).order_by(Note.id).all()

    def get(self, note_id: int) -> Note:
        if not 0 < note_id <= MAX_NOTE_ID:
            raise NotFound("Note not found.")
        note = self.db.get(Note, note_id)
        if note is None:
            raise NotFound("Note not found.")
        return note

    def update(self, identity: Identity, note_id: int, content: str, important: bool = False) -> Note:
        """Replaces the note's content and importance flag."""
        note = self._owned(identity, note_id)
        note.content = self._check_content(content)
        note.important = bool(important)
        self.db.commit()
        self.db.refresh(note)
        self.logger.info("User id=%s updated note id=%s", identity.user_id, note.id)
        return note

    def delete(self, identity: Identity, note_id: int) -> None:
        try:
            note = self._owned(identity, note_id)
        except NotFound:
            self.logger.debug("Delete of absent note id=%s treated as success", note_id)
            return
        self.db.delete(note)
        self.db.commit()
        self.logger.info("User id=%s deleted note id=%s", identity.user_id, note_id)
