from __future__ import annotations

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from rwandabill.api.deps import get_caller, get_optional_caller, require_privilege
from rwandabill.core.db import db_session
from rwandabill.core.errors import Forbidden
from rwandabill.modules.identity.authz import CallerContext, has_privilege
from rwandabill.modules.identity.models import Account, UserRole
from rwandabill.modules.identity.resolver import normalize_email
from rwandabill.modules.identity.schemas import (
    AccountOut,
    AccountProfile,
    AdminSignupIn,
    AuthOut,
    LoginIn,
    SignupIn,
)
from rwandabill.modules.identity.service import (
    approve_account,
    get_current_identity,
    get_identity_by_email,
    get_identity_by_id,
    list_accounts,
    list_admins,
    list_pending_accounts,
    login,
    signup_admin,
    signup_super_admin,
    signup_user,
)

router = APIRouter(tags=["identity"])

_PENDING_MESSAGE = (
    "Registration successful! Your account is pending admin approval. "
    "You will be able to log in once an administrator approves it."
)
_DETAILS_MESSAGES = {
    UserRole.USER: "User details retrieved successfully",
    UserRole.ADMIN: "Admin details retrieved successfully",
    UserRole.SUPER_ADMIN: "Super Admin details retrieved successfully",
}


def _profile(payload: SignupIn) -> AccountProfile:
    return AccountProfile(
        email=payload.email,
        full_name=payload.full_name,
        telephone=payload.telephone,
        district=payload.district,
        sector=payload.sector,
    )


def _details(account: Account) -> AuthOut:
    return AuthOut.from_account(account, message=_DETAILS_MESSAGES[account.role])


def _ensure_can_view(caller: CallerContext, *, is_self: bool) -> None:
    # Checked before the lookup so non-admins cannot discover which accounts exist.
    if not is_self and not has_privilege(caller.role, UserRole.ADMIN):
        raise Forbidden()


@router.post("/auth/signup", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def signup_endpoint(payload: SignupIn, session: Session = Depends(db_session)) -> AuthOut:
    account = signup_user(session, profile=_profile(payload), password=payload.password)
    return AuthOut.from_account(account, message=_PENDING_MESSAGE)


@router.post("/auth/signup/admin", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def signup_admin_endpoint(
    payload: AdminSignupIn,
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(get_caller),
) -> AuthOut:
    account = signup_admin(
        session,
        profile=_profile(payload),
        password=payload.password,
        service_type=payload.service_type,
        caller=caller,
    )
    return AuthOut.from_account(account, message="Admin registered successfully")


@router.post(
    "/auth/signup/super-admin", response_model=AuthOut, status_code=status.HTTP_201_CREATED
)
def signup_super_admin_endpoint(
    payload: SignupIn,
    session: Session = Depends(db_session),
    caller: CallerContext | None = Depends(get_optional_caller),
) -> AuthOut:
    account = signup_super_admin(
        session, profile=_profile(payload), password=payload.password, caller=caller
    )
    return AuthOut.from_account(account, message="Super admin registered successfully")


@router.post("/auth/login", response_model=AuthOut)
@router.post("/auth/signin", response_model=AuthOut, include_in_schema=False)
def login_endpoint(payload: LoginIn, session: Session = Depends(db_session)) -> AuthOut:
    result = login(session, email=payload.email, password=payload.password)
    return AuthOut.from_account(result.account, message="Login successful", token=result.token)


@router.get("/auth/me", response_model=AuthOut)
# Registered before /users/{account_id} so "me" is not read as an id.
@router.get("/users/me", response_model=AuthOut, include_in_schema=False)
def me(
    authorization: str | None = Header(default=None),
    session: Session = Depends(db_session),
) -> AuthOut:
    account = get_current_identity(session, token=authorization)
    return _details(account)


@router.get("/users", response_model=list[AccountOut])
def list_users_endpoint(
    role: UserRole | None = None,
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(require_privilege(UserRole.ADMIN)),
) -> list[AccountOut]:
    accounts = list_accounts(session, caller=caller, role=role)
    return [AccountOut.model_validate(a, from_attributes=True) for a in accounts]


@router.get("/users/pending", response_model=list[AccountOut])
def list_pending_endpoint(
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(require_privilege(UserRole.ADMIN)),
) -> list[AccountOut]:
    accounts = list_pending_accounts(session, caller=caller)
    return [AccountOut.model_validate(a, from_attributes=True) for a in accounts]


@router.get("/users/admins", response_model=list[AccountOut])
def list_admins_endpoint(
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(require_privilege(UserRole.SUPER_ADMIN)),
) -> list[AccountOut]:
    accounts = list_admins(session, caller=caller)
    return [AccountOut.model_validate(a, from_attributes=True) for a in accounts]


@router.get("/users/email/{email}", response_model=AuthOut)
def get_user_by_email_endpoint(
    email: str,
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(get_caller),
) -> AuthOut:
    _ensure_can_view(caller, is_self=normalize_email(email) == caller.email)
    account = get_identity_by_email(session, email=email)
    return _details(account)


@router.get("/users/{account_id}", response_model=AuthOut)
def get_user_endpoint(
    account_id: int,
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(get_caller),
) -> AuthOut:
    _ensure_can_view(caller, is_self=account_id == caller.account_id)
    account = get_identity_by_id(session, account_id=account_id)
    return _details(account)


@router.post("/users/{account_id}/approve", response_model=AuthOut)
def approve_endpoint(
    account_id: int,
    session: Session = Depends(db_session),
    caller: CallerContext = Depends(get_caller),
) -> AuthOut:
    account = approve_account(session, target_id=account_id, caller=caller)
    return AuthOut.from_account(account, message="Account approved successfully")
