"""Signed-in state of the client.

A ``Session`` is immutable; signing in swaps in a new one and signing out
drops it, so views never see a half-updated user.
"""
import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional

from notetaker.client.storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


@dataclass(frozen=True)
class UserView:
    id: int
    email: str
    name: Optional[str] = None


@dataclass(frozen=True)
class Session:
    token: str
    user: UserView

    @classmethod
    def from_auth_response(cls, data: dict) -> "Session":
        user = data["user"]
        return cls(
            token=data["token"],
            user=UserView(id=user["id"], email=user["email"], name=user.get("name")),
        )


class SessionStore:
    def __init__(self, storage: Optional[KeyValueStorage] = None):
        self.storage = storage or MemoryStorage()
        self._current = self._restore()

    def _restore(self) -> Optional[Session]:
        token = self.storage.get_item(TOKEN_KEY)
        user = self.storage.get_item(USER_KEY)
        if not token or not user:
            return None
        try:
            return Session(token=token, user=UserView(**json.loads(user)))
        except (ValueError, TypeError) as exc:
            logger.warning("Discarding unreadable stored session: %s", exc)
            self.storage.remove_item(TOKEN_KEY)
            self.storage.remove_item(USER_KEY)
            return None

    @property
    def current(self) -> Optional[Session]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def begin(self, session: Session) -> Session:
        self.storage.set_item(TOKEN_KEY, session.token)
        self.storage.set_item(USER_KEY, json.dumps(asdict(session.user)))
        self._current = session
        return session

    def end(self) -> None:
        """Forget the session. Tokens are not revoked server-side."""
        self._current = None
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)
