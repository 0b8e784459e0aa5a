from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from rwandabill.core.errors import Forbidden
from rwandabill.modules.identity.models import Account, UserRole
from rwandabill.modules.identity.resolver import get_account

# Not a linear order: each role lists the privilege levels it may exercise.
ROLE_GRANTS: dict[UserRole, frozenset[UserRole]] = {
    UserRole.SUPER_ADMIN: frozenset({UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.USER}),
    UserRole.ADMIN: frozenset({UserRole.ADMIN, UserRole.USER}),
    UserRole.USER: frozenset({UserRole.USER}),
}


@dataclass(frozen=True)
class CallerContext:
    """Who is invoking an operation, resolved once at the request boundary."""

    account_id: int
    email: str
    role: UserRole

    @classmethod
    def from_account(cls, account: Account) -> CallerContext:
        return cls(account_id=account.id, email=account.email, role=account.role)


def has_privilege(role: UserRole, required: UserRole) -> bool:
    return required in ROLE_GRANTS.get(role, frozenset())


def authorize(session: Session, caller: CallerContext | None, required: UserRole) -> Account:
    """Check ``caller`` against the persisted account, not the context it was built from.

    Returns the freshly loaded account so callers can use its current email and role.
    """
    if caller is None:
        raise Forbidden()
    account = get_account(session, caller.account_id, refresh=True)
    if account is None or not account.is_active:
        raise Forbidden()
    if account.email != caller.email:
        raise Forbidden()
    if not has_privilege(account.role, required):
        raise Forbidden()
    return account
