"""HTTP client for the notes API."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from notetaker.api.queries import NoteQuery

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class ApiError(Exception):
    """Non-2xx response, or no response at all (``status_code`` 0)."""

    def __init__(self, status_code: int, error: str, details: Optional[List[Dict[str, str]]] = None):
        self.status_code = status_code
        self.error = error
        self.details = details or []
        super().__init__(f"{status_code}: {error}")


class NotesApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http: Optional[httpx.Client] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token = token

    def authorized(self, token: Optional[str]) -> "NotesApiClient":
        """Client sharing the same connection pool but sending ``token``."""
        return NotesApiClient(http=self.http, token=token)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiError(0, str(exc)) from exc

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise ApiError(
                response.status_code,
                body.get("error") or response.reason_phrase,
                body.get("details"),
            )
        return response.json()

    # Auth

    def register(self, email: str, password: str, name: Optional[str] = None) -> dict:
        payload = {"email": email, "password": password}
        if name is not None:
            payload["name"] = name
        return self._request("POST", "/auth/register", json=payload)

    def login(self, email: str, password: str) -> dict:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def google_sign_in(self, code: str) -> dict:
        return self._request("POST", "/auth/google", json={"code": code})

    def google_auth_url(self) -> str:
        return self._request("GET", "/auth/google/url")["url"]

    def forgot_password(self, email: str) -> dict:
        return self._request("POST", "/auth/forgot-password", json={"email": email})

    def reset_password(self, email: str, otp: str, new_password: str) -> dict:
        return self._request(
            "POST",
            "/auth/reset-password",
            json={"email": email, "otp": otp, "newPassword": new_password},
        )

    # Notes

    def list_notes(self, note_query: Optional[NoteQuery] = None) -> dict:
        note_query = note_query or NoteQuery()
        params = {
            "page": note_query.page,
            "limit": note_query.limit,
            "sortBy": note_query.sort_by,
            "sortOrder": note_query.sort_order,
        }
        if note_query.search_term:
            params["search"] = note_query.search_term
        if note_query.tags:
            params["tags"] = note_query.tags
        if note_query.favorites_only:
            params["favorites"] = "true"
        return self._request("GET", "/notes", params=params)

    def get_note(self, note_id: int) -> dict:
        return self._request("GET", f"/notes/{note_id}")

    def create_note(self, title: str, content: str, tags: Optional[List[str]] = None) -> dict:
        return self._request(
            "POST", "/notes", json={"title": title, "content": content, "tags": tags or []}
        )

    def create_local_note(self, title: str, content: str, tags: Optional[List[str]] = None) -> dict:
        return self._request(
            "POST",
            "/notes/local",
            json={"title": title, "content": content, "tags": tags or [], "isLocal": True},
        )

    def update_note(self, note_id: int, **changes) -> dict:
        return self._request("PUT", f"/notes/{note_id}", json=changes)

    def toggle_favorite(self, note_id: int) -> dict:
        return self._request("PATCH", f"/notes/{note_id}/favorite")

    def delete_note(self, note_id: int) -> dict:
        return self._request("DELETE", f"/notes/{note_id}")

    def convert_local_notes(self, notes: List[dict]) -> dict:
        return self._request("POST", "/notes/convert-local", json={"notes": notes})

    def health(self) -> dict:
        return self._request("GET", "/health")
