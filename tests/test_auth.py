"""Tests for Firebase ID token verification and first sign-in handling."""

import asyncio
import base64
import json
import time
from datetime import datetime, timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import NameOID
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from cleandesk import auth
from cleandesk.models import User

PROJECT_ID = "cleandesk-test"
KID = "test-key-1"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


@pytest.fixture(scope="module")
def signing_key():
    """RSA key and a self-signed certificate in the format Google publishes."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.test")])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime.utcnow() - timedelta(days=1))
        .not_valid_after(datetime.utcnow() + timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return key, cert.public_bytes(serialization.Encoding.PEM).decode()


@pytest.fixture(autouse=True)
def google_keys(monkeypatch, signing_key):
    _, pem = signing_key

    async def fake_keys(refresh=False):
        return {KID: pem}

    monkeypatch.setattr(auth, "get_google_public_keys", fake_keys)
    monkeypatch.setattr(auth, "FIREBASE_PROJECT_ID", PROJECT_ID)


def make_token(signing_key, kid=KID, **claims):
    key, _ = signing_key
    now = int(time.time())
    payload = {
        "aud": PROJECT_ID,
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "sub": "firebase-uid-1",
        "email": "owner@zenzone.test",
        "iat": now,
        "exp": now + 3600,
    }
    payload.update(claims)
    header = _b64(json.dumps({"alg": "RS256", "kid": kid}).encode())
    body = _b64(json.dumps(payload).encode())
    signature = key.sign(f"{header}.{body}".encode(), padding.PKCS1v15(), hashes.SHA256())
    return f"{header}.{body}.{_b64(signature)}"


def verify(token):
    return asyncio.run(auth.verify_firebase_token(token))


def test_valid_token(signing_key):
    claims = verify(make_token(signing_key))
    assert claims["sub"] == "firebase-uid-1"


@pytest.mark.parametrize(
    "claims,detail",
    [
        ({"aud": "someone-else"}, "Invalid token audience"),
        ({"iss": "https://evil.test"}, "Invalid token issuer"),
        ({"exp": int(time.time()) - 10}, "Token has expired. Please refresh your session."),
        ({"iat": int(time.time()) + 600}, "Invalid token"),
    ],
)
def test_rejected_claims(signing_key, claims, detail):
    with pytest.raises(HTTPException) as exc:
        verify(make_token(signing_key, **claims))
    assert exc.value.status_code == 401
    assert exc.value.detail == detail


def test_tampered_payload(signing_key):
    header, _, signature = make_token(signing_key).split(".")
    forged = _b64(json.dumps({"sub": "attacker", "aud": PROJECT_ID}).encode())
    with pytest.raises(HTTPException) as exc:
        verify(f"{header}.{forged}.{signature}")
    assert exc.value.detail == "Invalid token signature"


def test_unknown_key_id(signing_key):
    with pytest.raises(HTTPException) as exc:
        verify(make_token(signing_key, kid="rotated-away"))
    assert exc.value.status_code == 401


def test_malformed_token():
    with pytest.raises(HTTPException) as exc:
        verify("not-a-jwt")
    assert exc.value.detail == "Invalid token format"


def test_missing_project_configuration(monkeypatch, signing_key):
    monkeypatch.setattr(auth, "FIREBASE_PROJECT_ID", None)
    with pytest.raises(HTTPException) as exc:
        verify(make_token(signing_key))
    assert exc.value.status_code == 500


def _current_user(db, token):
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    return asyncio.run(auth.get_current_user(credentials, db))


def test_first_sign_in_creates_user(db, signing_key):
    user = _current_user(db, make_token(signing_key, sub="new-uid", email="new@example.com", name="New Person"))
    assert user.id is not None
    assert user.full_name == "New Person"
    assert _current_user(db, make_token(signing_key, sub="new-uid")).id == user.id


def test_invited_user_is_linked_by_email(db, signing_key):
    invited = User(firebase_uid="invited:abc", email="helper@example.com")
    db.add(invited)
    db.commit()

    user = _current_user(db, make_token(signing_key, sub="real-uid", email="helper@example.com"))
    assert user.id == invited.id
    assert user.firebase_uid == "real-uid"
