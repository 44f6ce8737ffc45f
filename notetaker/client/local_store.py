"""Notes kept on the device while the user is signed out.

Local notes live under one storage key as a JSON list, most recent first.
Their ids carry the ``local_`` prefix; server note ids are integers, so a
local id can never be mistaken for a server one.
"""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from notetaker.client.storage import KeyValueStorage

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX = "local_"
LOCAL_NOTES_KEY = "localNotes"
EDITABLE_FIELDS = frozenset({"title", "content", "tags", "favorite"})


class LocalId(str):
    """Id of a device-local note: ``local_<milliseconds>``."""

    def __new__(cls, value: str):
        if not value.startswith(LOCAL_ID_PREFIX):
            raise ValueError(f"local note ids start with {LOCAL_ID_PREFIX!r}: {value!r}")
        return super().__new__(cls, value)

    @classmethod
    def generate(cls, taken: Iterable[str] = ()) -> "LocalId":
        taken = set(taken)
        stamp = int(time.time() * 1000)
        while f"{LOCAL_ID_PREFIX}{stamp}" in taken:
            stamp += 1
        return cls(f"{LOCAL_ID_PREFIX}{stamp}")


def is_local_id(note_id: Union[int, str]) -> bool:
    return isinstance(note_id, str) and note_id.startswith(LOCAL_ID_PREFIX)


class LocalNote(BaseModel):
    id: str
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    favorite: bool = False
    created_at: datetime
    is_local: Literal[True] = True

    @property
    def updated_at(self) -> datetime:
        # local notes have no separate edit time
        return self.created_at

    def as_draft(self) -> dict:
        return {"title": self.title, "content": self.content, "tags": list(self.tags)}


class LocalNoteCache:
    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def _read(self) -> List[LocalNote]:
        raw = self.storage.get_item(LOCAL_NOTES_KEY)
        if not raw:
            return []
        try:
            return [LocalNote.model_validate(item) for item in json.loads(raw)]
        except (ValueError, TypeError) as exc:
            logger.error("Failed to read local notes: %s", exc)
            return []

    def _write(self, notes: List[LocalNote]) -> None:
        self.storage.set_item(
            LOCAL_NOTES_KEY, json.dumps([n.model_dump(mode="json") for n in notes])
        )

    def save(
        self, title: str, content: str, tags: Optional[List[str]] = None, favorite: bool = False
    ) -> LocalNote:
        """Store a new note at the front of the list and return it."""
        notes = self._read()
        note = LocalNote(
            id=LocalId.generate(n.id for n in notes),
            title=title,
            content=content,
            tags=list(tags or []),
            favorite=favorite,
            created_at=datetime.now(timezone.utc),
        )
        notes.insert(0, note)
        self._write(notes)
        return note

    def get(self, note_id: str) -> Optional[LocalNote]:
        return next((n for n in self._read() if n.id == note_id), None)

    def update(self, note_id: str, **changes) -> Optional[LocalNote]:
        """Merge ``changes`` into the note; ``None`` if there is no such note."""
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise TypeError(f"cannot update local note fields: {sorted(unknown)}")
        notes = self._read()
        for index, note in enumerate(notes):
            if note.id == note_id:
                updated = LocalNote.model_validate({**note.model_dump(), **changes})
                notes[index] = updated
                self._write(notes)
                return updated
        return None

    def delete(self, note_id: str) -> bool:
        """Remove a note; False if it was already gone."""
        notes = self._read()
        remaining = [n for n in notes if n.id != note_id]
        if len(remaining) == len(notes):
            return False
        self._write(remaining)
        return True

    def list_all(self) -> List[LocalNote]:
        """All local notes, most recent first."""
        return self._read()

    def retain(self, note_ids: Iterable[str]) -> None:
        """Drop every note whose id is not in ``note_ids``."""
        keep = set(note_ids)
        remaining = [n for n in self._read() if n.id in keep]
        if remaining:
            self._write(remaining)
        else:
            self.clear_all()

    def clear_all(self) -> None:
        self.storage.remove_item(LOCAL_NOTES_KEY)
