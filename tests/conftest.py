"""Shared fixtures: in-memory SQLite database, organizations and an API client."""

import os

# Configuration is read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["FORM_INGEST_SECRET"] = "test-ingest-secret"
os.environ["DEFAULT_ORG_SLUG"] = "zen-zone"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.setdefault("FIREBASE_PROJECT_ID", "cleandesk-test")

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from cleandesk.auth import get_current_user
from cleandesk.database import Base, SessionLocal, engine, get_db
from cleandesk.main import app
from cleandesk.models import Membership, Organization, User
from cleandesk.seed import seed_lookup_tables

ORG_SLUG = "zen-zone"
BASE = f"/t/{ORG_SLUG}"


@pytest.fixture
def db():
    """Fresh schema per test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db):
    user = User(firebase_uid="uid-owner", email="owner@zenzone.test", full_name="Olivia Owner")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def org(db, owner):
    """The organization the website form feeds, owned by `owner`."""
    org = Organization(name="Zen Zone Cleaning", slug=ORG_SLUG, industry="home-cleaning")
    db.add(org)
    db.flush()
    db.add(Membership(user_id=owner.id, org_id=org.id, role="OWNER"))
    db.commit()
    return org


@pytest.fixture
def other_org(db):
    """A second organization with its own owner, for isolation checks."""
    user = User(firebase_uid="uid-other", email="owner@sparkle.test", full_name="Sam Sparkle")
    org = Organization(name="Sparkle Co", slug="sparkle-co")
    db.add_all([user, org])
    db.flush()
    db.add(Membership(user_id=user.id, org_id=org.id, role="OWNER"))
    db.commit()
    return org


@pytest.fixture
def make_user(db):
    """Factory for users, optionally added to an organization with a role."""

    def _make(email, org=None, role="MEMBER", is_super_admin=False):
        user = User(
            firebase_uid=f"uid-{email}",
            email=email,
            full_name=email.split("@")[0].title(),
            is_super_admin=is_super_admin,
        )
        db.add(user)
        db.flush()
        if org is not None:
            db.add(Membership(user_id=user.id, org_id=org.id, role=role))
        db.commit()
        return user

    return _make


@pytest.fixture
def lookups(db):
    """Industries, service types and hear-about options used by the website form."""
    created = seed_lookup_tables(db)
    db.commit()
    return created


class AuthState:
    """Which user the overridden authentication dependency resolves to."""

    def __init__(self, user_id):
        self.user_id = user_id

    def act_as(self, user):
        self.user_id = user.id


@pytest.fixture
def auth(owner):
    return AuthState(owner.id)


@pytest.fixture
def api(db, org, auth):
    """TestClient signed in as `auth.user_id` (the org owner by default)."""

    def current_user(session: Session = Depends(get_db)):
        return session.get(User, auth.user_id)

    app.dependency_overrides[get_current_user] = current_user
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_client(api):
    """Create a client through the API and return its JSON."""

    def _make(**fields):
        payload = {"first_name": "Jane", "last_name": "Doe", "emails": ["jane@example.com"]}
        payload.update(fields)
        response = api.post(f"{BASE}/clients", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_invoice(api, make_client):
    """Create a draft invoice (2 x 50.00 + 1 x 150.00 at 13% by default)."""

    def _make(client_id=None, line_items=None, **fields):
        if client_id is None:
            client_id = make_client()["id"]
        payload = {
            "client_id": client_id,
            "tax_rate": 13,
            "line_items": line_items
            or [
                {"name": "Standard clean", "quantity": 2, "unit_price": "50.00"},
                {"name": "Oven", "quantity": 1, "unit_price": "150.00"},
            ],
        }
        payload.update(fields)
        response = api.post(f"{BASE}/invoices", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
