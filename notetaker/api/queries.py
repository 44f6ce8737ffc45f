"""Search, filter, sort and pagination of a user's notes."""
import math
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Query

from notetaker.api.models import Note, NoteTag

SORT_FIELDS = ("createdAt", "updatedAt", "title")
SORT_ORDERS = ("asc", "desc")
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

T = TypeVar("T")


@dataclass
class NoteQuery:
    """Listing parameters, already validated by the HTTP layer."""
    search: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    favorites_only: bool = False
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    page: int = 1
    limit: int = DEFAULT_LIMIT

    def __post_init__(self):
        if self.sort_by not in SORT_FIELDS:
            raise ValueError(f"sort_by must be one of {SORT_FIELDS}")
        if self.sort_order not in SORT_ORDERS:
            raise ValueError(f"sort_order must be one of {SORT_ORDERS}")
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def search_term(self) -> Optional[str]:
        term = (self.search or "").strip()
        return term or None


@dataclass
class NotePage(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def parse_tags(values: Optional[Sequence[str]]) -> List[str]:
    """Accept repeated ``tags`` params as well as comma-separated ones."""
    tags = []
    for value in values or []:
        tags.extend(part.strip() for part in value.split(",") if part.strip())
    return tags


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def apply_filters(query: Query, note_query: NoteQuery) -> Query:
    """Narrow an already owner-scoped ``Note`` query."""
    term = note_query.search_term
    if term:
        like = f"%{_escape_like(term)}%"
        query = query.filter(
            or_(
                Note.title.ilike(like, escape="\\"),
                Note.content.ilike(like, escape="\\"),
                Note.tag_rows.any(NoteTag.name.ilike(like, escape="\\")),
            )
        )
    if note_query.tags:
        query = query.filter(Note.tag_rows.any(NoteTag.name.in_(note_query.tags)))
    if note_query.favorites_only:
        query = query.filter(Note.favorite.is_(True))
    return query


def apply_ordering(query: Query, note_query: NoteQuery) -> Query:
    column = {
        "createdAt": Note.created_at,
        "updatedAt": Note.updated_at,
        "title": Note.title,
    }[note_query.sort_by]
    # id breaks ties so pages never overlap
    if note_query.sort_order == "asc":
        return query.order_by(column.asc(), Note.id.asc())
    return query.order_by(column.desc(), Note.id.desc())


def paginate(query: Query, note_query: NoteQuery) -> NotePage:
    total = query.count()
    items = apply_ordering(query, note_query).offset(note_query.offset).limit(note_query.limit).all()
    return NotePage(items=items, total=total, page=note_query.page, limit=note_query.limit)
