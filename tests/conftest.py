from __future__ import annotations

import os

import pytest

# Set env before any rwandabill imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.rwandabill_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-rwandabill-identity-tests")
os.environ.setdefault("ALLOW_SUPER_ADMIN_BOOTSTRAP", "true")

STRONG_PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def _reset_db() -> None:
    import rwandabill.models  # noqa: F401
    from rwandabill.core.db import engine
    from rwandabill.core.models import Base

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield


@pytest.fixture
def session():
    from rwandabill.core.db import SessionLocal

    with SessionLocal() as session:
        yield session


@pytest.fixture
def super_admin(session):
    from rwandabill.modules.identity.authz import CallerContext
    from rwandabill.modules.identity.service import ensure_super_admin

    account = ensure_super_admin(
        session, email="root@rwandabill.rw", password=STRONG_PASSWORD, full_name="Root"
    )
    return CallerContext.from_account(account)


@pytest.fixture
def admin(session, super_admin):
    from rwandabill.modules.identity.authz import CallerContext
    from rwandabill.modules.identity.schemas import AccountProfile
    from rwandabill.modules.identity.service import signup_admin

    account = signup_admin(
        session,
        profile=AccountProfile(email="water.admin@rwandabill.rw", full_name="Water Admin"),
        password=STRONG_PASSWORD,
        service_type="water",
        caller=super_admin,
    )
    return CallerContext.from_account(account)
