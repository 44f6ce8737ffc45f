"""Google "Sign in" support: consent URL, code exchange and ID-token check."""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import Depends

from notetaker.api.config import Settings, get_settings
from notetaker.api.errors import UpstreamFailure

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")
SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]


@dataclass(frozen=True)
class OAuthIdentity:
    """Identity asserted by the provider after verification."""
    subject: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class GoogleOAuthProvider:
    def __init__(self, settings: Settings, http: Optional[httpx.Client] = None):
        self.settings = settings
        self.http = http

    def authorization_url(self) -> str:
        params = {
            "client_id": self.settings.google_client_id or "",
            "redirect_uri": self.settings.google_redirect_uri,
            "response_type": "code",
            "access_type": "offline",
            "scope": " ".join(SCOPES),
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def _fetch_claims(self, client: httpx.Client, code: str) -> dict:
        response = client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": self.settings.google_client_id,
                "client_secret": self.settings.google_client_secret,
                "redirect_uri": self.settings.google_redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        response.raise_for_status()
        id_token = response.json().get("id_token")
        if not id_token:
            raise UpstreamFailure("Google authentication failed")

        info = client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
        info.raise_for_status()
        return info.json()

    def exchange_code(self, code: str) -> OAuthIdentity:
        """
        Trade an authorization code for a verified identity.

        Raises:
            UpstreamFailure if Google rejects the code or the ID token does not check out.
        """
        try:
            if self.http is not None:
                claims = self._fetch_claims(self.http, code)
            else:
                with httpx.Client(timeout=10.0) as client:
                    claims = self._fetch_claims(client, code)
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Google token exchange failed: %s", exc)
            raise UpstreamFailure("Google authentication failed") from exc

        if claims.get("aud") != self.settings.google_client_id:
            raise UpstreamFailure("Google authentication failed")
        if claims.get("iss") not in GOOGLE_ISSUERS:
            raise UpstreamFailure("Google authentication failed")
        if not claims.get("email") or not claims.get("sub"):
            raise UpstreamFailure("Google authentication failed")

        return OAuthIdentity(
            subject=claims["sub"],
            email=claims["email"],
            name=claims.get("name"),
            picture=claims.get("picture"),
        )


# PUBLIC_INTERFACE
def get_oauth_provider(settings: Settings = Depends(get_settings)) -> GoogleOAuthProvider:
    """Dependency returning the Google OAuth provider."""
    return GoogleOAuthProvider(settings)
