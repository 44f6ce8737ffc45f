"""Client façade used by views.

Notes go to the device cache while signed out and to the server once
signed in. Every successful sign-in (register, login, Google) runs the
migration exactly once before returning.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from notetaker.api.queries import NotePage, NoteQuery
from notetaker.client.api_client import ApiError, NotesApiClient
from notetaker.client.filters import filter_local_notes
from notetaker.client.local_store import LocalNote, LocalNoteCache, is_local_id
from notetaker.client.migration import MigrationMode, MigrationReconciler, MigrationResult
from notetaker.client.session import Session, SessionStore

logger = logging.getLogger(__name__)

NoteId = Union[int, str]


@dataclass(frozen=True)
class SignInOutcome:
    session: Session
    migration: MigrationResult


class NotesApp:
    def __init__(
        self,
        api: NotesApiClient,
        cache: LocalNoteCache,
        sessions: Optional[SessionStore] = None,
        migration_mode: MigrationMode = MigrationMode.ATOMIC,
    ):
        self.api = api
        self.cache = cache
        self.sessions = sessions or SessionStore()
        self.reconciler = MigrationReconciler(cache, mode=migration_mode)

    @property
    def session(self) -> Optional[Session]:
        return self.sessions.current

    def _remote(self) -> NotesApiClient:
        session = self.sessions.current
        if session is None:
            raise ApiError(401, "Authentication required")
        return self.api.authorized(session.token)

    def _signed_in(self, auth_response: dict) -> SignInOutcome:
        session = self.sessions.begin(Session.from_auth_response(auth_response))
        migration = self.reconciler.run(self.api.authorized(session.token))
        return SignInOutcome(session=session, migration=migration)

    # Auth

    def register(self, email: str, password: str, name: Optional[str] = None) -> SignInOutcome:
        return self._signed_in(self.api.register(email, password, name))

    def login(self, email: str, password: str) -> SignInOutcome:
        return self._signed_in(self.api.login(email, password))

    def sign_in_with_google(self, code: str) -> SignInOutcome:
        return self._signed_in(self.api.google_sign_in(code))

    def logout(self) -> None:
        self.sessions.end()

    # Notes

    def save_note(
        self, title: str, content: str, tags: Optional[List[str]] = None, favorite: bool = False
    ) -> Union[LocalNote, dict]:
        if not self.sessions.is_authenticated:
            return self.cache.save(title, content, tags, favorite)
        remote = self._remote()
        note = remote.create_note(title, content, tags)
        if favorite:
            note = remote.toggle_favorite(note["id"])
        return note

    def update_note(self, note_id: NoteId, **changes) -> Union[LocalNote, dict, None]:
        if is_local_id(note_id):
            return self.cache.update(note_id, **changes)
        return self._remote().update_note(note_id, **changes)

    def toggle_favorite(self, note_id: NoteId) -> Union[LocalNote, dict, None]:
        if is_local_id(note_id):
            note = self.cache.get(note_id)
            if note is None:
                return None
            return self.cache.update(note_id, favorite=not note.favorite)
        return self._remote().toggle_favorite(note_id)

    def delete_note(self, note_id: NoteId) -> bool:
        if is_local_id(note_id):
            return self.cache.delete(note_id)
        try:
            self._remote().delete_note(note_id)
        except ApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    def list_notes(self, note_query: Optional[NoteQuery] = None) -> NotePage:
        note_query = note_query or NoteQuery()
        if not self.sessions.is_authenticated:
            return filter_local_notes(self.cache.list_all(), note_query)
        data = self._remote().list_notes(note_query)
        pagination = data["pagination"]
        return NotePage(
            items=data["notes"],
            total=pagination["total"],
            page=pagination["page"],
            limit=pagination["limit"],
        )
