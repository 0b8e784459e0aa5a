from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from rwandabill.core.config import settings
from rwandabill.core.errors import InvalidInput

ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_PASSWORD_MIN_LENGTH = 8
_PASSWORD_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[0-9]"), "one digit"),
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"[^A-Za-z0-9\s]"), "one special character"),
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


# Compared against when the login email is unknown, so both paths pay for one hash check.
DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(16))


def check_password_strength(password: str) -> None:
    if len(password) < _PASSWORD_MIN_LENGTH:
        raise InvalidInput(f"Password must be at least {_PASSWORD_MIN_LENGTH} characters long")
    missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(password)]
    if missing:
        raise InvalidInput("Password must contain at least " + ", ".join(missing))


@dataclass(frozen=True)
class TokenClaims:
    account_id: int
    email: str


def create_access_token(
    *, account_id: int, email: str, expires_minutes: int | None = None
) -> str:
    expire_minutes = (
        expires_minutes if expires_minutes is not None else settings.access_token_exp_minutes
    )
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(account_id),
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str | None) -> TokenClaims | None:
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    email = payload.get("email")
    if not isinstance(subject, str) or not isinstance(email, str) or not email:
        return None
    if "exp" not in payload:
        return None
    try:
        account_id = int(subject)
    except ValueError:
        return None
    return TokenClaims(account_id=account_id, email=email)


def strip_bearer(value: str | None) -> str | None:
    if value is None:
        return None
    parts = value.strip().split(None, 1)
    if not parts:
        return None
    if parts[0].lower() == BEARER_PREFIX.strip().lower():
        return parts[1].strip() if len(parts) == 2 else None
    return value.strip()
