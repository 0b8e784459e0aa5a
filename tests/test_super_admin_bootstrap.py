from __future__ import annotations

import threading

import pytest
from sqlalchemy import update

from rwandabill.core.db import SessionLocal
from rwandabill.core.errors import Forbidden
from rwandabill.modules.identity import service
from rwandabill.modules.identity.models import Account, ServiceType, UserRole
from rwandabill.modules.identity.resolver import count_role
from rwandabill.modules.identity.schemas import AccountProfile
from rwandabill.modules.identity.service import (
    BOOTSTRAP_APPROVER,
    ensure_super_admin,
    signup_super_admin,
    signup_user,
    super_admin_bootstrap_open,
)

STRONG_PASSWORD = "Passw0rd!"


def test_first_super_admin_may_sign_up_anonymously_once(session):
    assert super_admin_bootstrap_open(session)

    first = signup_super_admin(
        session, profile=AccountProfile(email="first@rwandabill.rw"), password=STRONG_PASSWORD
    )
    assert first.role == UserRole.SUPER_ADMIN
    assert first.approved_by == BOOTSTRAP_APPROVER
    assert not super_admin_bootstrap_open(session)

    with pytest.raises(Forbidden):
        signup_super_admin(
            session, profile=AccountProfile(email="second@rwandabill.rw"),
            password=STRONG_PASSWORD,
        )


def test_bootstrap_can_be_disabled(session, monkeypatch):
    from rwandabill.core.config import settings

    monkeypatch.setattr(settings, "allow_super_admin_bootstrap", False)

    with pytest.raises(Forbidden):
        signup_super_admin(
            session, profile=AccountProfile(email="first@rwandabill.rw"), password=STRONG_PASSWORD
        )


def test_ensure_super_admin_is_idempotent(session):
    first = ensure_super_admin(session, email="ops@rwandabill.rw", password=STRONG_PASSWORD)
    again = ensure_super_admin(session, email="OPS@rwandabill.rw", password=STRONG_PASSWORD)

    assert first.id == again.id
    assert again.role == UserRole.SUPER_ADMIN
    assert again.is_active and again.approved


def test_ensure_super_admin_never_promotes_existing_account(session):
    user = signup_user(
        session, profile=AccountProfile(email="ops@rwandabill.rw"), password=STRONG_PASSWORD
    )

    existing = ensure_super_admin(session, email="ops@rwandabill.rw", password=STRONG_PASSWORD)

    assert existing.id == user.id
    assert existing.role == UserRole.USER


def test_startup_bootstrap_creates_configured_super_admin(session, monkeypatch):
    from rwandabill.bootstrap import bootstrap
    from rwandabill.core.config import settings
    from rwandabill.modules.identity.resolver import resolve_by_email

    monkeypatch.setattr(settings, "init_super_admin_email", "boot@rwandabill.rw")
    monkeypatch.setattr(settings, "init_super_admin_password", STRONG_PASSWORD)

    bootstrap()
    bootstrap()

    account = resolve_by_email(session, "boot@rwandabill.rw")
    assert account is not None
    assert account.role == UserRole.SUPER_ADMIN
    assert account.full_name == settings.init_super_admin_full_name


def test_concurrent_anonymous_bootstraps_create_one_super_admin(monkeypatch):
    # Both callers pass the zero-count check before either one inserts.
    barrier = threading.Barrier(2, timeout=10)

    def count_then_wait(session, role):
        n = count_role(session, role)
        barrier.wait()
        return n

    monkeypatch.setattr(service, "count_role", count_then_wait)
    outcomes: dict[str, str] = {}

    def attempt(email: str) -> None:
        with SessionLocal() as s:
            try:
                signup_super_admin(s, profile=AccountProfile(email=email), password=STRONG_PASSWORD)
                outcomes[email] = "created"
            except Forbidden:
                outcomes[email] = "forbidden"
            except Exception as e:  # surfaced through the assertion below
                outcomes[email] = repr(e)

    threads = [
        threading.Thread(target=attempt, args=(email,))
        for email in ("one@rwandabill.rw", "two@rwandabill.rw")
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes.values()) == ["created", "forbidden"]
    with SessionLocal() as s:
        assert count_role(s, UserRole.SUPER_ADMIN) == 1
        loser = next(email for email, outcome in outcomes.items() if outcome == "forbidden")
        assert not service.exists_anywhere(s, loser)


def test_anonymous_bootstrap_is_single_use(session):
    first = signup_super_admin(
        session, profile=AccountProfile(email="first@rwandabill.rw"), password=STRONG_PASSWORD
    )

    # Demoting the only super-admin does not reopen the anonymous path.
    session.execute(
        update(Account)
        .where(Account.id == first.id)
        .values(role=UserRole.ADMIN, service_type=ServiceType.WATER)
    )
    session.commit()
    assert count_role(session, UserRole.SUPER_ADMIN) == 0
    assert not super_admin_bootstrap_open(session)

    with pytest.raises(Forbidden):
        signup_super_admin(
            session, profile=AccountProfile(email="second@rwandabill.rw"),
            password=STRONG_PASSWORD,
        )
