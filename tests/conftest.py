"""Common fixtures: in-memory database, fake collaborators and an API client."""
import re

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from notetaker.api.database import get_db
from notetaker.api.errors import UpstreamFailure
from notetaker.api.mailer import Mailer, get_mailer
from notetaker.api.main import app
from notetaker.api.models import Base
from notetaker.api.oauth import OAuthIdentity, get_oauth_provider

CODE_RE = re.compile(r"\b(\d{6})\b")


class RecordingMailer(Mailer):
    def __init__(self):
        self.sent = []

    def send(self, to, subject, body):
        self.sent.append((to, subject, body))

    def last_code(self):
        return CODE_RE.search(self.sent[-1][2]).group(1)


class FakeOAuthProvider:
    """Maps authorization codes to identities; unknown codes fail like Google would."""

    def __init__(self):
        self.identities = {}

    def authorization_url(self):
        return "https://accounts.example.test/o/oauth2/auth?client_id=test"

    def exchange_code(self, code):
        if code not in self.identities:
            raise UpstreamFailure("Google authentication failed")
        return self.identities[code]

    def add(self, code, email, subject="google-sub-1", name=None, picture=None):
        self.identities[code] = OAuthIdentity(subject=subject, email=email, name=name, picture=picture)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def oauth():
    return FakeOAuthProvider()


@pytest.fixture
def client(session_factory, mailer, oauth):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_oauth_provider] = lambda: oauth
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user and return ``(user_id, headers)``."""

    def _register(email="alice@example.com", password="secret123", name=None):
        payload = {"email": email, "password": password}
        if name:
            payload["name"] = name
        response = client.post("/auth/register", json=payload)
        assert response.status_code == 200, response.text
        data = response.json()
        return data["user"]["id"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def auth_headers(register):
    return register()[1]
