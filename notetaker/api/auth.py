import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from notetaker.api.config import Settings, get_settings
from notetaker.api.errors import Unauthorized

logger = logging.getLogger(__name__)

# Setup password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer scheme; errors are raised by get_current_user so every failure looks the same
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class CurrentUser:
    """Identity attached to an authenticated request."""
    id: int


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plaintext password against its hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a plaintext password."""
    return pwd_context.hash(password)


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Create a signed JWT carrying only the user id and an expiry."""
    settings = settings or get_settings()
    expire = datetime.now(tz=timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> int:
    """
    Return the user id from a token.

    Raises:
        Unauthorized for a bad signature, an expired token or a malformed payload.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
        subject = payload.get("sub")
        if subject is None:
            raise Unauthorized()
        return int(subject)
    except (JWTError, ValueError, TypeError):
        raise Unauthorized()


# PUBLIC_INTERFACE
def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Dependency that returns the caller's identity from the JWT bearer token.

    Validation is stateless (signature and expiry only).

    Raises:
        401 if the token is missing, malformed, badly signed or expired.
    """
    if not token:
        raise Unauthorized()
    try:
        return CurrentUser(id=decode_access_token(token, settings))
    except Unauthorized:
        logger.info("Rejected bearer token")
        raise
