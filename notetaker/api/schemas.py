from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from notetaker.api.models import TAG_MAX_LENGTH

TagName = Annotated[str, Field(min_length=1, max_length=TAG_MAX_LENGTH)]


class ApiModel(BaseModel):
    """Base model: camelCase on the wire, snake_case accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# Users

class UserCreateRequest(ApiModel):
    """Request model to register a new user"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=6, description="Plaintext password (min 6 chars)")
    name: Optional[str] = Field(None, max_length=255, description="Display name")


class LoginRequest(ApiModel):
    """Email/password login request"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=1, description="Plaintext password")


class GoogleAuthRequest(ApiModel):
    """Authorization code returned by Google's consent screen"""
    code: str = Field(..., min_length=1)


class ForgotPasswordRequest(ApiModel):
    email: EmailStr


class ResetPasswordRequest(ApiModel):
    """Reset a password with the one-time code sent by email"""
    email: EmailStr
    otp: str = Field(..., min_length=1, description="Numeric one-time code")
    new_password: str = Field(..., min_length=6, description="New plaintext password (min 6 chars)")


class UserResponse(ApiModel):
    """User response without sensitive fields"""
    id: int
    email: EmailStr
    name: Optional[str] = None


# Auth / Tokens

class AuthResponse(ApiModel):
    """Token plus public user view, returned by every successful sign-in"""
    token: str = Field(..., description="JWT access token")
    user: UserResponse


class UrlResponse(ApiModel):
    url: str


class MessageResponse(ApiModel):
    message: str


class HealthResponse(ApiModel):
    status: str
    timestamp: datetime


# Notes

class NoteCreateRequest(ApiModel):
    """Create note request"""
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., max_length=10000, description="Note content")
    tags: List[TagName] = Field(default_factory=list)


class LocalNoteRequest(NoteCreateRequest):
    """Note saved by a signed-out client; the server only echoes it back"""
    is_local: bool = Field(True, description="Marks the note as device-local")


class NoteUpdateRequest(ApiModel):
    """Update note request (partial)"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, max_length=10000)
    tags: Optional[List[TagName]] = None
    favorite: Optional[bool] = None


class ConvertLocalNotesRequest(ApiModel):
    """Batch of device-local notes to store under the caller's account"""
    notes: List[NoteCreateRequest] = Field(
        ..., validation_alias=AliasChoices("notes", "localNotes")
    )


class NoteResponse(ApiModel):
    """Note response model"""
    id: int
    title: str
    content: str
    tags: List[str]
    favorite: bool
    user_id: int
    created_at: datetime
    updated_at: datetime


class LocalNoteResponse(ApiModel):
    """Echo of a device-local note"""
    id: str
    title: str
    content: str
    tags: List[str]
    is_local: bool = True
    message: str


class ConvertLocalNotesResponse(ApiModel):
    message: str
    notes: List[NoteResponse]


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class PaginatedNotesResponse(ApiModel):
    """Paginated response for notes listing"""
    notes: List[NoteResponse]
    pagination: Pagination
