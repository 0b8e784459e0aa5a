from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rwandabill.core.config import settings
from rwandabill.core.errors import (
    AccountInactive,
    AlreadyApproved,
    AlreadyExists,
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    InvalidToken,
    NotFound,
    PendingApproval,
)
from rwandabill.core.logging import get_logger, log_event
from rwandabill.core.security import (
    DUMMY_PASSWORD_HASH,
    check_password_strength,
    create_access_token,
    decode_access_token,
    hash_password,
    strip_bearer,
    verify_password,
)
from rwandabill.modules.audit.service import record_event
from rwandabill.modules.identity.authz import CallerContext, authorize
from rwandabill.modules.identity.models import (
    BOOTSTRAP_CLAIM_ID,
    Account,
    BootstrapClaim,
    ServiceType,
    UserRole,
)
from rwandabill.modules.identity.resolver import (
    count_role,
    exists_anywhere,
    get_account,
    normalize_email,
    resolve_by_email,
)
from rwandabill.modules.identity.schemas import AccountProfile

logger = get_logger(__name__)

BOOTSTRAP_APPROVER = "bootstrap"
_BOOTSTRAP_CLOSED = "Super admin signup requires an existing super admin"


@dataclass(frozen=True)
class LoginResult:
    account: Account
    token: str


def parse_service_type(value: str | ServiceType | None) -> ServiceType:
    if isinstance(value, ServiceType):
        return value
    if value is None or not value.strip():
        raise InvalidInput("Service is required for admin registration")
    try:
        return ServiceType(value.strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in ServiceType)
        raise InvalidInput(f"Unknown service type '{value}' (expected one of: {allowed})") from None


def _create_account(
    session: Session,
    *,
    profile: AccountProfile,
    password: str,
    role: UserRole,
    service_type: ServiceType | None = None,
    approved_by: str | None = None,
    actor_account_id: int | None = None,
    claim_bootstrap: bool = False,
) -> Account:
    check_password_strength(password)
    email = normalize_email(str(profile.email))
    if exists_anywhere(session, email):
        raise AlreadyExists()

    # Only regular users start out pending; privileged accounts are approved by their creator.
    pending = role == UserRole.USER
    account = Account(
        email=email,
        password_hash=hash_password(password),
        full_name=profile.full_name,
        telephone=profile.telephone,
        district=profile.district,
        sector=profile.sector,
        role=role,
        service_type=service_type,
        is_active=not pending,
        approved=not pending,
        approved_at=None if pending else datetime.now(UTC),
        approved_by=None if pending else approved_by,
    )
    session.add(account)
    try:
        session.flush()
        if claim_bootstrap:
            session.add(BootstrapClaim(id=BOOTSTRAP_CLAIM_ID, account_id=account.id))
            session.flush()
    except IntegrityError as e:
        session.rollback()
        if exists_anywhere(session, email):
            raise AlreadyExists() from e
        if claim_bootstrap:
            # Another anonymous bootstrap committed first.
            raise Forbidden(_BOOTSTRAP_CLOSED) from e
        raise

    record_event(
        session,
        event_type="identity.signup",
        actor_account_id=actor_account_id,
        subject_account_id=account.id,
        email=email,
        role=role.value,
        service_type=service_type.value if service_type else None,
    )
    session.commit()
    session.refresh(account)
    return account


def signup_user(session: Session, *, profile: AccountProfile, password: str) -> Account:
    return _create_account(session, profile=profile, password=password, role=UserRole.USER)


def signup_admin(
    session: Session,
    *,
    profile: AccountProfile,
    password: str,
    service_type: str | ServiceType | None,
    caller: CallerContext | None,
) -> Account:
    creator = authorize(session, caller, UserRole.SUPER_ADMIN)
    return _create_account(
        session,
        profile=profile,
        password=password,
        role=UserRole.ADMIN,
        service_type=parse_service_type(service_type),
        approved_by=creator.email,
        actor_account_id=creator.id,
    )


def super_admin_bootstrap_open(session: Session) -> bool:
    if not settings.allow_super_admin_bootstrap:
        return False
    if count_role(session, UserRole.SUPER_ADMIN) != 0:
        return False
    return session.get(BootstrapClaim, BOOTSTRAP_CLAIM_ID, populate_existing=True) is None


def signup_super_admin(
    session: Session,
    *,
    profile: AccountProfile,
    password: str,
    caller: CallerContext | None = None,
) -> Account:
    """Create a super-admin.

    Anyone may do this exactly once, while no super-admin exists yet. After that
    the caller must currently hold SUPER_ADMIN. The anonymous path also claims
    the single bootstrap row in the same transaction as the insert, so callers
    racing past the zero-count check cannot both succeed.
    """
    bootstrap = super_admin_bootstrap_open(session)
    if bootstrap:
        approved_by = BOOTSTRAP_APPROVER
        actor_account_id = caller.account_id if caller else None
    else:
        if caller is None:
            raise Forbidden(_BOOTSTRAP_CLOSED)
        creator = authorize(session, caller, UserRole.SUPER_ADMIN)
        approved_by = creator.email
        actor_account_id = creator.id

    return _create_account(
        session,
        profile=profile,
        password=password,
        role=UserRole.SUPER_ADMIN,
        approved_by=approved_by,
        actor_account_id=actor_account_id,
        claim_bootstrap=bootstrap,
    )


def ensure_super_admin(
    session: Session, *, email: str, password: str, full_name: str | None = None
) -> Account:
    existing = resolve_by_email(session, email)
    if existing:
        if existing.role != UserRole.SUPER_ADMIN:
            log_event(
                logger,
                "identity.bootstrap.role_conflict",
                level=logging.WARNING,
                email=existing.email,
                role=existing.role.value,
            )
        return existing
    return _create_account(
        session,
        profile=AccountProfile(email=email, full_name=full_name),
        password=password,
        role=UserRole.SUPER_ADMIN,
        approved_by=BOOTSTRAP_APPROVER,
    )


def _login_failed(email: str, reason: str) -> None:
    log_event(
        logger,
        "identity.login.failure",
        level=logging.WARNING,
        email=normalize_email(email),
        reason=reason,
    )


def login(session: Session, *, email: str, password: str) -> LoginResult:
    account = resolve_by_email(session, email)
    if account is None:
        verify_password(password, DUMMY_PASSWORD_HASH)
        _login_failed(email, "unknown_email")
        raise InvalidCredentials()
    if not verify_password(password, account.password_hash):
        _login_failed(email, "bad_password")
        raise InvalidCredentials()

    # A pending regular user is also inactive; report the state they can act on.
    if account.is_regular_user and not account.approved:
        _login_failed(email, "pending_approval")
        raise PendingApproval()
    if not account.is_active:
        _login_failed(email, "inactive")
        raise AccountInactive()

    token = create_access_token(account_id=account.id, email=account.email)
    record_event(
        session,
        event_type="identity.login",
        actor_account_id=account.id,
        subject_account_id=account.id,
        role=account.role.value,
    )
    session.commit()
    return LoginResult(account=account, token=token)


def get_current_identity(session: Session, *, token: str | None) -> Account:
    claims = decode_access_token(strip_bearer(token))
    if claims is None:
        raise InvalidToken()
    account = get_account(session, claims.account_id, refresh=True)
    if account is None or account.email != claims.email:
        raise InvalidToken()
    if not account.is_active:
        raise AccountInactive()
    return account


def get_identity_by_id(session: Session, *, account_id: int) -> Account:
    account = get_account(session, account_id)
    if account is None:
        raise NotFound()
    return account


def get_identity_by_email(session: Session, *, email: str) -> Account:
    account = resolve_by_email(session, email)
    if account is None:
        raise NotFound()
    return account


def approve_account(session: Session, *, target_id: int, caller: CallerContext | None) -> Account:
    approver = authorize(session, caller, UserRole.ADMIN)
    target = get_account(session, target_id, refresh=True)
    if target is None:
        raise NotFound()
    if target.approved:
        raise AlreadyApproved()

    now = datetime.now(UTC)
    # Conditional on approved=false so two racing approvals stamp approved_at once.
    result = session.execute(
        update(Account)
        .where(Account.id == target.id, Account.approved.is_(False))
        .values(
            approved=True,
            is_active=True,
            approved_at=now,
            approved_by=approver.email,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.rollback()
        raise AlreadyApproved()

    record_event(
        session,
        event_type="identity.approve",
        actor_account_id=approver.id,
        subject_account_id=target.id,
        approved_by=approver.email,
    )
    session.commit()
    session.refresh(target)
    return target


def list_accounts(
    session: Session, *, caller: CallerContext | None, role: UserRole | None = None
) -> list[Account]:
    authorize(session, caller, UserRole.ADMIN)
    q = select(Account)
    if role is not None:
        q = q.where(Account.role == role)
    return list(session.scalars(q.order_by(Account.id)))


def list_pending_accounts(session: Session, *, caller: CallerContext | None) -> list[Account]:
    authorize(session, caller, UserRole.ADMIN)
    q = select(Account).where(Account.role == UserRole.USER, Account.approved.is_(False))
    return list(session.scalars(q.order_by(Account.created_at, Account.id)))


def list_admins(session: Session, *, caller: CallerContext | None) -> list[Account]:
    authorize(session, caller, UserRole.SUPER_ADMIN)
    q = select(Account).where(Account.role.in_([UserRole.ADMIN, UserRole.SUPER_ADMIN]))
    return list(session.scalars(q.order_by(Account.id)))
