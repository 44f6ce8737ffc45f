"""In-process search, filter and sort for device-local notes.

Same rules as ``GET /notes`` so the list behaves identically before and
after sign-in. One exception: search here folds case with ``str.lower()``,
while the server relies on the database ``ILIKE``. On SQLite that only folds
ASCII, so "É" finds "é" locally but not on a SQLite-backed server.
"""
from typing import List

from notetaker.api.queries import NotePage, NoteQuery
from notetaker.client.local_store import LocalNote


def matches(note: LocalNote, note_query: NoteQuery) -> bool:
    term = note_query.search_term
    if term:
        needle = term.lower()
        haystack = [note.title.lower(), note.content.lower()] + [t.lower() for t in note.tags]
        if not any(needle in text for text in haystack):
            return False
    if note_query.tags and not set(note_query.tags) & set(note.tags):
        return False
    if note_query.favorites_only and not note.favorite:
        return False
    return True


def _sort_key(note: LocalNote, sort_by: str):
    if sort_by == "title":
        primary = note.title
    elif sort_by == "updatedAt":
        primary = note.updated_at
    else:
        primary = note.created_at
    return primary, note.id


def filter_local_notes(notes: List[LocalNote], note_query: NoteQuery) -> NotePage:
    selected = [n for n in notes if matches(n, note_query)]
    selected.sort(
        key=lambda n: _sort_key(n, note_query.sort_by),
        reverse=note_query.sort_order == "desc",
    )
    start = note_query.offset
    return NotePage(
        items=selected[start:start + note_query.limit],
        total=len(selected),
        page=note_query.page,
        limit=note_query.limit,
    )
