from datetime import datetime
from typing import List

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

TAG_MAX_LENGTH = 100

Base = declarative_base()


class User(Base):
    """
    User entity with unique email and either a password hash, a Google id, or both.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(255), unique=True, nullable=True)
    name = Column(String(255), nullable=True)
    avatar = Column(String(1024), nullable=True)
    reset_token = Column(String(255), nullable=True)
    reset_token_expiry = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    notes = relationship("Note", back_populates="owner", cascade="all, delete-orphan")


class Note(Base):
    """
    Note entity owned by a user with tags, a favorite flag and timestamps.
    """
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    content = Column(Text, default="", nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="notes")
    tag_rows = relationship(
        "NoteTag",
        back_populates="note",
        cascade="all, delete-orphan",
        order_by="NoteTag.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_notes_user_title", "user_id", "title"),
        Index("ix_notes_user_created", "user_id", "created_at"),
    )

    @property
    def tags(self) -> List[str]:
        return [row.name for row in self.tag_rows]

    @tags.setter
    def tags(self, names: List[str]) -> None:
        # Order is kept, duplicates are not collapsed.
        self.tag_rows = [NoteTag(name=name, position=i) for i, name in enumerate(names or [])]


class NoteTag(Base):
    """
    One tag of a note; ``position`` keeps the order the tags were given in.
    """
    __tablename__ = "note_tags"

    id = Column(Integer, primary_key=True)
    note_id = Column(Integer, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(TAG_MAX_LENGTH), nullable=False, index=True)

    note = relationship("Note", back_populates="tag_rows")
