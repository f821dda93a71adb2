from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
class User(Base):
    """
    SQLAlchemy model for a registered user.

    ``password_hash`` holds the salted bcrypt digest and must never leave the
    service; ``notes`` lists the user's notes in creation order.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(128), nullable=False, default="")
    password_hash = Column(String(256), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    notes = relationship("Note", back_populates="owner", order_by="Note.id")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} username={self.username!r}>"


# PUBLIC_INTERFACE
class Note(Base):
    """
    SQLAlchemy model for a note. Every note has exactly one owner.
    """
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    important = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner = relationship("User", back_populates="notes")

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Note id={self.id} user_id={self.user_id} important={self.important}>"
