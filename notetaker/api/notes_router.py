import time
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from notetaker.api.auth import CurrentUser, get_current_user
from notetaker.api.database import get_db
from notetaker.api.queries import MAX_LIMIT, NoteQuery, parse_tags
from notetaker.api.repository import NoteDraft, NoteRepository
from notetaker.api.schemas import (
    ConvertLocalNotesRequest,
    ConvertLocalNotesResponse,
    LocalNoteRequest,
    LocalNoteResponse,
    MessageResponse,
    NoteCreateRequest,
    NoteResponse,
    NoteUpdateRequest,
    PaginatedNotesResponse,
    Pagination,
)

LOCAL_ID_PREFIX = "local_"

router = APIRouter(prefix="/notes", tags=["Notes"])


def get_repository(db: Session = Depends(get_db)) -> NoteRepository:
    return NoteRepository(db)


# PUBLIC_INTERFACE
@router.get("", response_model=PaginatedNotesResponse, summary="List notes with search, filters and pagination")
def list_notes(
    page: int = Query(1, ge=1, description="Page number starting at 1"),
    limit: int = Query(10, ge=1, le=MAX_LIMIT, description="Items per page"),
    search: Optional[str] = Query(None, description="Matches title, content or tags"),
    tags: Optional[List[str]] = Query(None, description="Only notes with any of these tags"),
    favorites: bool = Query(False, description="Only favorite notes"),
    sort_by: Literal["createdAt", "updatedAt", "title"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    """
    List notes belonging to the current user.

    Search is a case-insensitive substring match over title, content and
    tags. Results are ordered by ``sortBy`` then by id.
    """
    note_query = NoteQuery(
        search=search,
        tags=parse_tags(tags),
        favorites_only=favorites,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    result = repo.list(current_user.id, note_query)
    return PaginatedNotesResponse(
        notes=[NoteResponse.model_validate(n) for n in result.items],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
    )


# PUBLIC_INTERFACE
@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED, summary="Create a new note")
def create_note(
    payload: NoteCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    """Create a new note for the authenticated user."""
    note = repo.create(current_user.id, payload.title, payload.content, payload.tags)
    return NoteResponse.model_validate(note)


# PUBLIC_INTERFACE
@router.post(
    "/local",
    response_model=LocalNoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Acknowledge a note kept on the device",
)
def create_local_note(payload: LocalNoteRequest):
    """
    Echo a note for a signed-out client. Nothing is stored server-side.
    """
    return LocalNoteResponse(
        id=f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}",
        title=payload.title,
        content=payload.content,
        tags=payload.tags,
        is_local=True,
        message="Note saved locally. Sign up to save permanently!",
    )


# PUBLIC_INTERFACE
@router.post(
    "/convert-local",
    response_model=ConvertLocalNotesResponse,
    summary="Store device-local notes under the current account",
)
def convert_local_notes(
    payload: ConvertLocalNotesRequest,
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    """
    Create one note per local note, in the order given, in a single transaction.
    """
    notes = repo.create_many(
        current_user.id, [NoteDraft(n.title, n.content, n.tags) for n in payload.notes]
    )
    return ConvertLocalNotesResponse(
        message="Local notes converted successfully",
        notes=[NoteResponse.model_validate(n) for n in notes],
    )


# PUBLIC_INTERFACE
@router.get("/{note_id}", response_model=NoteResponse, summary="Get a note by ID")
def get_note(
    note_id: int = Path(..., ge=1),
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    """
    Retrieve a single note by ID. Only the owner can access it.
    """
    return NoteResponse.model_validate(repo.get(current_user.id, note_id))


# PUBLIC_INTERFACE
@router.put("/{note_id}", response_model=NoteResponse, summary="Update a note by ID")
def update_note(
    payload: NoteUpdateRequest,
    note_id: int = Path(..., ge=1),
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    """
    Update a note. Only the owner can modify it.
    """
    note = repo.update(
        current_user.id,
        note_id,
        title=payload.title,
        content=payload.content,
        tags=payload.tags,
        favorite=payload.favorite,
    )
    return NoteResponse.model_validate(note)


# PUBLIC_INTERFACE
@router.patch("/{note_id}/favorite", response_model=NoteResponse, summary="Toggle a note's favorite flag")
def toggle_favorite(
    note_id: int = Path(..., ge=1),
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    return NoteResponse.model_validate(repo.toggle_favorite(current_user.id, note_id))


# PUBLIC_INTERFACE
@router.delete("/{note_id}", response_model=MessageResponse, summary="Delete a note by ID")
def delete_note(
    note_id: int = Path(..., ge=1),
    current_user: CurrentUser = Depends(get_current_user),
    repo: NoteRepository = Depends(get_repository),
):
    """
    Delete a note. Only the owner can delete it.
    """
    repo.delete(current_user.id, note_id)
    return MessageResponse(message="Note deleted successfully")
