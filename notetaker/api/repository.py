"""Owner-scoped note storage.

Every method takes the owner id first and filters on it; a note owned by
someone else behaves exactly like a note that does not exist.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, NamedTuple, Optional, Sequence

from sqlalchemy.orm import Session

from notetaker.api.errors import NoteAccessDenied
from notetaker.api.models import Note
from notetaker.api.queries import NotePage, NoteQuery, apply_filters, paginate

logger = logging.getLogger(__name__)


class NoteDraft(NamedTuple):
    title: str
    content: str
    tags: Sequence[str] = ()


class NoteRepository:
    def __init__(self, db: Session):
        self.db = db

    def _owned(self, owner_id: int):
        return self.db.query(Note).filter(Note.user_id == owner_id)

    def _new_note(self, owner_id: int, draft: NoteDraft, now: datetime) -> Note:
        note = Note(
            title=draft.title,
            content=draft.content,
            user_id=owner_id,
            favorite=False,
            created_at=now,
            updated_at=now,
        )
        note.tags = list(draft.tags or [])
        return note

    def create(self, owner_id: int, title: str, content: str, tags: Optional[List[str]] = None) -> Note:
        note = self._new_note(owner_id, NoteDraft(title, content, tags or []), datetime.utcnow())
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)
        return note

    def create_many(self, owner_id: int, drafts: Iterable[NoteDraft]) -> List[Note]:
        """
        Store several notes in one transaction, in the order given.

        Either every note is stored or none is.
        """
        notes = []
        try:
            for draft in drafts:
                note = self._new_note(owner_id, draft, datetime.utcnow())
                self.db.add(note)
                # flush keeps server ids in input order
                self.db.flush()
                notes.append(note)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        for note in notes:
            self.db.refresh(note)
        return notes

    def get(self, owner_id: int, note_id: int) -> Note:
        """
        Raises:
            NoteAccessDenied if the note is missing or not owned by ``owner_id``.
        """
        note = self._owned(owner_id).filter(Note.id == note_id).first()
        if note is None:
            raise NoteAccessDenied()
        return note

    def _touch(self, note: Note) -> None:
        now = datetime.utcnow()
        previous = note.updated_at or note.created_at
        # updated_at must move forward even within one clock tick
        if previous is not None and now <= previous:
            now = previous + timedelta(microseconds=1)
        note.updated_at = now

    def update(
        self,
        owner_id: int,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        tags: Optional[List[str]] = None,
        favorite: Optional[bool] = None,
    ) -> Note:
        note = self.get(owner_id, note_id)
        if title is not None:
            note.title = title
        if content is not None:
            note.content = content
        if tags is not None:
            note.tags = list(tags)
        if favorite is not None:
            note.favorite = favorite
        self._touch(note)
        self.db.commit()
        self.db.refresh(note)
        return note

    def delete(self, owner_id: int, note_id: int) -> None:
        note = self.get(owner_id, note_id)
        self.db.delete(note)
        self.db.commit()

    def toggle_favorite(self, owner_id: int, note_id: int) -> Note:
        note = self.get(owner_id, note_id)
        note.favorite = not note.favorite
        self._touch(note)
        self.db.commit()
        self.db.refresh(note)
        return note

    def list(self, owner_id: int, note_query: NoteQuery) -> NotePage:
        return paginate(apply_filters(self._owned(owner_id), note_query), note_query)
