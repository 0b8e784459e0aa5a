from __future__ import annotations

import base64
import json

from jose import jwt

from rwandabill.core.security import (
    TokenClaims,
    create_access_token,
    decode_access_token,
    strip_bearer,
)


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def test_issued_token_round_trips_claims():
    token = create_access_token(account_id=42, email="alice@x.com")

    assert decode_access_token(token) == TokenClaims(account_id=42, email="alice@x.com")


def test_expired_token_is_invalid():
    token = create_access_token(account_id=42, email="alice@x.com", expires_minutes=-1)

    assert decode_access_token(token) is None


def test_tampered_payload_is_invalid():
    token = create_access_token(account_id=42, email="alice@x.com")
    header, payload, signature = token.split(".")
    claims = jwt.get_unverified_claims(token)
    claims["sub"] = "1"
    forged = ".".join([header, _b64(claims), signature])

    assert decode_access_token(forged) is None


def test_token_signed_with_other_secret_is_invalid():
    token = jwt.encode(
        {"sub": "42", "email": "alice@x.com", "exp": 4102444800},
        "some-other-secret",
        algorithm="HS256",
    )

    assert decode_access_token(token) is None


def test_token_missing_expiry_or_email_is_invalid():
    from rwandabill.core.config import settings

    no_exp = jwt.encode({"sub": "42", "email": "alice@x.com"}, settings.secret_key, "HS256")
    no_email = jwt.encode({"sub": "42", "exp": 4102444800}, settings.secret_key, "HS256")

    assert decode_access_token(no_exp) is None
    assert decode_access_token(no_email) is None


def test_garbage_is_invalid():
    assert decode_access_token("") is None
    assert decode_access_token(None) is None
    assert decode_access_token("not.a.jwt") is None


def test_validator_does_not_accept_bearer_prefix():
    token = create_access_token(account_id=7, email="bob@x.com")

    assert decode_access_token(f"Bearer {token}") is None
    assert decode_access_token(strip_bearer(f"Bearer {token}")) == TokenClaims(7, "bob@x.com")
    assert strip_bearer(token) == token
    assert strip_bearer("Bearer ") is None
