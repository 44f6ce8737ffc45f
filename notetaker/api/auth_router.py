from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from notetaker.api.config import Settings, get_settings
from notetaker.api.credentials import AuthResult, CredentialStore
from notetaker.api.database import get_db
from notetaker.api.mailer import Mailer, get_mailer
from notetaker.api.oauth import GoogleOAuthProvider, get_oauth_provider
from notetaker.api.schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    GoogleAuthRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    UrlResponse,
    UserCreateRequest,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_credential_store(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> CredentialStore:
    return CredentialStore(db, settings)


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(token=result.token, user=UserResponse.model_validate(result.user))


# PUBLIC_INTERFACE
@router.post("/register", response_model=AuthResponse, summary="Register a new user")
def register_user(payload: UserCreateRequest, store: CredentialStore = Depends(get_credential_store)):
    """
    Register a new user and sign them in.

    Body:
        email: valid email address
        password: plaintext password (min 6 chars)
        name: optional display name

    Returns:
        Token and public user view.

    Raises:
        400 if email already in use.
    """
    return _auth_response(store.register(payload.email, payload.password, payload.name))


# PUBLIC_INTERFACE
@router.post("/login", response_model=AuthResponse, summary="Login and obtain JWT access token")
def login(payload: LoginRequest, store: CredentialStore = Depends(get_credential_store)):
    """
    Login with email and password.

    Raises:
        400 on invalid credentials, whether or not the email is known.
    """
    return _auth_response(store.login(payload.email, payload.password))


# PUBLIC_INTERFACE
@router.post("/google", response_model=AuthResponse, summary="Sign in with a Google authorization code")
def google_auth(
    payload: GoogleAuthRequest,
    store: CredentialStore = Depends(get_credential_store),
    provider: GoogleOAuthProvider = Depends(get_oauth_provider),
):
    """
    Exchange a Google authorization code, then find, link or create the account.

    Raises:
        500 if Google rejects the code.
    """
    identity = provider.exchange_code(payload.code)
    return _auth_response(store.authenticate_oauth(identity))


# PUBLIC_INTERFACE
@router.get("/google/url", response_model=UrlResponse, summary="Google consent screen URL")
def google_auth_url(provider: GoogleOAuthProvider = Depends(get_oauth_provider)):
    return UrlResponse(url=provider.authorization_url())


# PUBLIC_INTERFACE
@router.post("/forgot-password", response_model=MessageResponse, summary="Email a password reset code")
def forgot_password(
    payload: ForgotPasswordRequest,
    store: CredentialStore = Depends(get_credential_store),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Send a one-time reset code, valid for 10 minutes, to the account's email.

    Raises:
        404 if no account uses the email.
    """
    store.request_password_reset(payload.email, mailer)
    return MessageResponse(message="Reset email sent successfully")


# PUBLIC_INTERFACE
@router.post("/reset-password", response_model=MessageResponse, summary="Reset password with a code")
def reset_password(payload: ResetPasswordRequest, store: CredentialStore = Depends(get_credential_store)):
    """
    Raises:
        400 if the code is wrong, expired or already used.
    """
    store.reset_password(payload.email, payload.otp, payload.new_password)
    return MessageResponse(message="Password reset successfully")
