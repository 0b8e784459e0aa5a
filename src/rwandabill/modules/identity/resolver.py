from __future__ import annotations

from sqlalchemy import case, exists, func, select
from sqlalchemy.orm import Session

from rwandabill.modules.identity.models import Account, UserRole

# First match wins. Emails are unique table-wide, so this only matters if that breaks.
RESOLUTION_ORDER: tuple[UserRole, ...] = (UserRole.USER, UserRole.ADMIN, UserRole.SUPER_ADMIN)

_precedence = case(
    *[(Account.role == role, rank) for rank, role in enumerate(RESOLUTION_ORDER)],
    else_=len(RESOLUTION_ORDER),
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def resolve_by_email(session: Session, email: str) -> Account | None:
    return session.scalar(
        select(Account)
        .where(Account.email == normalize_email(email))
        .order_by(_precedence, Account.id)
        .limit(1)
    )


def exists_anywhere(session: Session, email: str) -> bool:
    return bool(session.scalar(select(exists().where(Account.email == normalize_email(email)))))


def get_account(session: Session, account_id: int, *, refresh: bool = False) -> Account | None:
    return session.get(Account, account_id, populate_existing=refresh)


def count_role(session: Session, role: UserRole) -> int:
    return session.scalar(select(func.count(Account.id)).where(Account.role == role)) or 0
