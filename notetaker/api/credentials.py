"""Credential store: password and Google identities, password reset codes."""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notetaker.api.auth import create_access_token, get_password_hash, verify_password
from notetaker.api.config import Settings, get_settings
from notetaker.api.errors import (
    Conflict,
    InvalidCredentials,
    InvalidOrExpiredCode,
    NotFound,
)
from notetaker.api.mailer import RESET_SUBJECT, Mailer, render_reset_email
from notetaker.api.models import User
from notetaker.api.oauth import OAuthIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User


def generate_reset_code() -> str:
    """Six-digit numeric one-time code."""
    return str(100000 + secrets.randbelow(900000))


class CredentialStore:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def _issue(self, user: User) -> AuthResult:
        return AuthResult(token=create_access_token(user.id, settings=self.settings), user=user)

    def register(self, email: str, password: str, name: Optional[str] = None) -> AuthResult:
        """
        Create a password account.

        Raises:
            Conflict if the email is already registered.
        """
        if self._find_by_email(email):
            raise Conflict()
        user = User(email=email, password_hash=get_password_hash(password), name=name)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise Conflict()
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return self._issue(user)

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check an email/password pair.

        Unknown email, Google-only account and wrong password all raise the
        same InvalidCredentials error.
        """
        user = self._find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise InvalidCredentials()
        return self._issue(user)

    def authenticate_oauth(self, identity: OAuthIdentity) -> AuthResult:
        """
        Find or create the user behind a verified Google identity.

        A password account with the same email gets the Google id linked to it
        rather than a second account being created.

        The Google subject wins over the email, so an account keeps working
        after its Google address changes.
        """
        user = self.db.query(User).filter(User.google_id == identity.subject).first()
        if user is None:
            user = self._find_by_email(identity.email)
        if user is None:
            user = User(
                email=identity.email,
                name=identity.name,
                google_id=identity.subject,
                avatar=identity.picture,
            )
            self.db.add(user)
            logger.info("Created account from Google sign-in")
        elif not user.google_id:
            user.google_id = identity.subject
            user.avatar = identity.picture
            logger.info("Linked Google identity to user %s", user.id)
        self.db.commit()
        self.db.refresh(user)
        return self._issue(user)

    def request_password_reset(self, email: str, mailer: Mailer) -> str:
        """
        Store a fresh reset code for the account and mail it out.

        Returns the code. Any earlier code is replaced.

        Raises:
            NotFound if no account uses the email.
            UpstreamFailure if the mailer cannot deliver.
        """
        user = self._find_by_email(email)
        if not user:
            raise NotFound("User not found")

        code = generate_reset_code()
        ttl = self.settings.reset_code_ttl_minutes
        user.reset_token = get_password_hash(code)
        user.reset_token_expiry = datetime.utcnow() + timedelta(minutes=ttl)
        self.db.commit()

        mailer.send(email, RESET_SUBJECT, render_reset_email(code, ttl, user.name))
        logger.info("Password reset requested for user %s", user.id)
        return code

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Replace the password if ``code`` matches the unexpired code on file.

        The code is single use.

        Raises:
            InvalidOrExpiredCode otherwise.
        """
        user = self._find_by_email(email)
        if not user or not user.reset_token or not user.reset_token_expiry:
            raise InvalidOrExpiredCode()
        if datetime.utcnow() > user.reset_token_expiry:
            raise InvalidOrExpiredCode()
        if not verify_password(code, user.reset_token):
            raise InvalidOrExpiredCode()

        user.password_hash = get_password_hash(new_password)
        user.reset_token = None
        user.reset_token_expiry = None
        self.db.commit()
        logger.info("Password reset for user %s", user.id)
